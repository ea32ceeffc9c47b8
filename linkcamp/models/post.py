# linkcamp/models/post.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from linkcamp.utils.datetime_utils import DateTimeUtils


class PostType(Enum):
    """콘텐츠 종류. 저장 파티션과 실시간 피드 룸을 결정합니다."""
    GENERAL = "general"
    TEACHER = "teacher"
    ADMIN = "admin"


# 파티션(컬렉션) 이름 -> 해당 파티션의 기본 post_type
# 'posts' 파티션에는 post_type 이 teacher/admin 인 게시물도 함께 저장될 수 있습니다.
PARTITIONS = (
    ('posts', PostType.GENERAL.value),
    ('announcements', PostType.TEACHER.value),
    ('notices', PostType.ADMIN.value),
)


@dataclass
class Post:
    """
    'posts' / 'announcements' / 'notices' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    repost_of 는 항상 원본(root) 게시물 ID 를 가리킵니다.
    """
    post_id: str
    author_email: str
    content: Optional[str] = None
    photo: Optional[str] = None
    post_type: str = PostType.GENERAL.value
    repost_of: Optional[str] = None
    report_count: int = 0
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: Optional[datetime] = None
