# linkcamp/models/vote.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from linkcamp.utils.datetime_utils import DateTimeUtils


class VoteType(Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


def vote_document_id(post_id: str, voter_email: str) -> str:
    """(게시물, 투표자) 조합이 곧 문서 ID 이므로 한 쌍당 문서는 최대 하나입니다."""
    return f"{post_id}_{voter_email}"


@dataclass
class Vote:
    """Firestore 'votes' 컬렉션의 문서 구조."""
    post_id: str
    voter_email: str
    vote_type: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: Optional[datetime] = None
