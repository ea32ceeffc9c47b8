# linkcamp/models/comment.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from linkcamp.utils.datetime_utils import DateTimeUtils


@dataclass
class Comment:
    """
    Firestore 'comments' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    post_id 는 소유 관계가 아닌 역참조입니다.
    """
    comment_id: str
    post_id: str
    author_email: str
    content: str
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    edited_at: Optional[datetime] = None
