# linkcamp/models/report.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from linkcamp.utils.datetime_utils import DateTimeUtils

DEFAULT_REPORT_REASON = "No reason provided"


class ReportKind(Enum):
    POST = "post"
    COMMENT = "comment"


def report_document_id(target_id: str, reporter_email: str) -> str:
    return f"{target_id}_{reporter_email}"


@dataclass
class Report:
    """Firestore 'reports' 컬렉션 문서. (게시물, 신고자) 당 하나."""
    post_id: str
    reported_by: str
    reason: str = DEFAULT_REPORT_REASON
    reported_at: datetime = field(default_factory=DateTimeUtils.now)


@dataclass
class CommentReport:
    """Firestore 'comment_reports' 컬렉션 문서. (댓글, 신고자) 당 하나."""
    comment_id: str
    reported_by: str
    post_id: Optional[str] = None
    reason: str = DEFAULT_REPORT_REASON
    reported_at: datetime = field(default_factory=DateTimeUtils.now)
