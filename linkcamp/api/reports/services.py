# linkcamp/api/reports/services.py
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists
from google.cloud.firestore_v1.base_query import FieldFilter

from linkcamp.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from linkcamp.models.report import (
    CommentReport, DEFAULT_REPORT_REASON, Report, ReportKind, report_document_id,
)
from linkcamp.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

# 신고 종류별 (컬렉션, 대상 ID 필드)
_REPORT_SOURCES = {
    ReportKind.POST.value: ('reports', 'post_id'),
    ReportKind.COMMENT.value: ('comment_reports', 'comment_id'),
}


class ModerationService:
    """
    게시물/댓글 신고와 관리자 신고 처리 대기열을 담당하는 서비스 클래스.
    - 신고 문서 ID 는 (대상, 신고자) 조합이며 create() 로 중복을 원자적으로 막습니다.
    - 삭제(purge)는 일반 삭제 경로를 그대로 사용하므로 연쇄 삭제와 이벤트가 동일합니다.
    """
    def __init__(self, content_store, post_service, comment_service, profile_service):
        self.store = content_store
        self.db = content_store.db
        self.posts = post_service
        self.comments = comment_service
        self.profiles = profile_service

    # --- 신고 ---
    def report_item(self, post_id: str, reporter_email: str, reason: Optional[str] = None) -> Dict[str, Any]:
        located = self.store.locate(post_id)
        if located is None:
            raise NotFoundError("Post not found")

        report = Report(post_id=post_id, reported_by=reporter_email, reason=self._reason(reason))
        self._create_report('reports', report_document_id(post_id, reporter_email), asdict(report),
                            "You have already reported this post")
        located.ref.update({'report_count': firestore.Increment(1)})
        logger.info(f"게시물 신고 접수: {post_id} (by {reporter_email})")
        return asdict(report)

    def report_comment(self, comment_id: str, reporter_email: str, reason: Optional[str] = None) -> Dict[str, Any]:
        _, comment = self.comments.get(comment_id)

        report = CommentReport(
            comment_id=comment_id,
            reported_by=reporter_email,
            post_id=comment.get('post_id'),
            reason=self._reason(reason),
        )
        self._create_report('comment_reports', report_document_id(comment_id, reporter_email), asdict(report),
                            "You have already reported this comment")
        logger.info(f"댓글 신고 접수: {comment_id} (by {reporter_email})")
        return asdict(report)

    def _create_report(self, collection_name: str, doc_id: str, data: Dict[str, Any], duplicate_message: str):
        try:
            self.db.collection(collection_name).document(doc_id).create(DateTimeUtils.for_firestore(data))
        except AlreadyExists:
            raise ConflictError(duplicate_message)

    @staticmethod
    def _reason(reason: Optional[str]) -> str:
        return (reason or '').strip() or DEFAULT_REPORT_REASON

    # --- 관리자 대기열 ---
    def queue(self, kind: str, page: int = 1, limit: int = 20,
              target_filter: Optional[str] = None) -> Dict[str, Any]:
        """
        신고를 대상별로 묶어(건수, 최근 신고 시각) 최근 신고 순으로 정렬한 뒤
        페이지 번호 방식으로 잘라 대상 정보를 채워 반환합니다.
        대상이 이미 삭제된 신고 묶음은 건너뜁니다.
        """
        collection_name, id_field = self._source(kind)
        query = self.db.collection(collection_name)
        if target_filter:
            query = query.where(filter=FieldFilter(id_field, '==', target_filter))

        grouped: Dict[str, Dict[str, Any]] = {}
        for doc in query.stream():
            data = DateTimeUtils.from_firestore(doc.to_dict())
            target_id = data.get(id_field)
            if not target_id:
                continue
            group = grouped.setdefault(target_id, {"count": 0, "latest": None, "post_id": data.get('post_id')})
            group['count'] += 1
            reported_at = data.get('reported_at')
            if group['latest'] is None or DateTimeUtils.sort_key(reported_at) > DateTimeUtils.sort_key(group['latest']):
                group['latest'] = reported_at

        target_ids = sorted(grouped, key=lambda tid: DateTimeUtils.sort_key(grouped[tid]['latest']), reverse=True)
        total = len(target_ids)
        start = (page - 1) * limit
        page_ids = target_ids[start:start + limit]

        if kind == ReportKind.POST.value:
            items = self._hydrate_posts(page_ids, grouped)
        else:
            items = self._hydrate_comments(page_ids, grouped)
        return {"items": items, "total": total}

    def _hydrate_posts(self, page_ids: List[str], grouped: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
        posts = self.store.get_many(page_ids)
        summaries = self.profiles.get_summaries(p.get('author_email') for p in posts.values())
        items = []
        for post_id in page_ids:
            post = posts.get(post_id)
            if not post:
                continue
            items.append({
                **post,
                'report_count': grouped[post_id]['count'],
                'latest_report_at': grouped[post_id]['latest'],
                'user': summaries.get(post.get('author_email')),
            })
        return items

    def _hydrate_comments(self, page_ids: List[str], grouped: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
        comments_ref = self.db.collection('comments')
        comments = {}
        if page_ids:
            for doc in self.db.get_all([comments_ref.document(cid) for cid in page_ids]):
                if doc.exists:
                    data = DateTimeUtils.from_firestore(doc.to_dict())
                    data['comment_id'] = doc.id
                    comments[doc.id] = data

        parents = self.store.get_many(c.get('post_id') for c in comments.values() if c.get('post_id'))
        summaries = self.profiles.get_summaries(c.get('author_email') for c in comments.values())
        items = []
        for comment_id in page_ids:
            comment = comments.get(comment_id)
            if not comment:
                continue
            items.append({
                **comment,
                'report_count': grouped[comment_id]['count'],
                'latest_report_at': grouped[comment_id]['latest'],
                'post': parents.get(comment.get('post_id')),
                'user': summaries.get(comment.get('author_email')),
            })
        return items

    # --- 관리자 처리 ---
    def dismiss(self, target_id: str, kind: str) -> int:
        """신고만 삭제합니다. 게시물이면 report_count 를 0 으로 되돌립니다."""
        collection_name, id_field = self._source(kind)
        label = "post ID" if kind == ReportKind.POST.value else "comment ID"
        self.store.validate_id(target_id, label)

        removed = self.store.delete_where(collection_name, id_field, target_id)
        if kind == ReportKind.POST.value:
            located = self.store.locate(target_id)
            if located is not None:
                located.ref.update({'report_count': 0})
        logger.info(f"신고 기각: {kind} {target_id} ({removed}건)")
        return removed

    def purge(self, target_id: str, kind: str) -> None:
        """신고된 대상을 삭제합니다. 대상이 없으면 NotFoundError."""
        if kind == ReportKind.POST.value:
            located = self.store.locate(target_id)
            if located is None:
                raise NotFoundError("Post not found")
            self.posts.delete_located(located)
        else:
            comment_ref, data = self.comments.get(target_id)
            self.comments.delete_comment(comment_ref, data)
        logger.info(f"신고 대상 삭제: {kind} {target_id}")

    @staticmethod
    def _source(kind: str) -> Tuple[str, str]:
        if kind not in _REPORT_SOURCES:
            raise InvalidInputError(f"Unknown report kind: {kind}")
        return _REPORT_SOURCES[kind]
