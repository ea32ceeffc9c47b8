# linkcamp/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from linkcamp.utils.datetime_utils import DateTimeUtils


class Role(Enum):
    """사용자 역할. 역할에 따라 작성 가능한 게시물 종류가 달라집니다."""
    MEMBER = "member"
    TEACHER = "teacher"
    ADMIN = "admin"


class Approval(Enum):
    """계정 승인 상태. blocked 는 모든 요청이, pending 은 쓰기 요청이 거부됩니다."""
    PENDING = "pending"
    APPROVED = "approved"
    BLOCKED = "blocked"


@dataclass
class Profile:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID 는 email 입니다.
    """
    email: str
    name: str
    photo: Optional[str] = None
    role: str = Role.MEMBER.value
    approval: str = Approval.PENDING.value
    gender: Optional[str] = None
    department: Optional[str] = None
    session: Optional[str] = None
    student_id: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)


# 본인이 직접 수정할 수 있는 프로필 필드 (role/approval 은 관리자 전용)
SELF_EDITABLE_FIELDS = ('name', 'gender', 'department', 'session', 'student_id')
