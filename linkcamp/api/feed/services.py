# linkcamp/api/feed/services.py
import logging
from collections import Counter
from typing import Any, Dict, List, Optional, Union

from google.cloud.firestore_v1.base_query import FieldFilter

from linkcamp.core.exceptions import NotFoundError
from linkcamp.models.post import PARTITIONS
from linkcamp.utils.pagination import Pagination, build_page, chunked, is_valid_document_id

logger = logging.getLogger(__name__)

FeedResult = Union[Dict[str, Any], List[Dict[str, Any]]]


class FeedService:
    """
    세 개의 콘텐츠 파티션을 하나의 시간순 피드로 합쳐 조회하는 서비스.
    - 커서 페이지네이션: created_at < cursor, 파티션별 limit 조회 후 병합/정렬/자르기
    - 리포스트 원본과 작성자 요약 정보를 페이지 단위로 일괄 조회하여 붙입니다.
    """
    def __init__(self, content_store, profile_service):
        self.store = content_store
        self.profiles = profile_service

    # --- 피드 조회 ---
    def list_feed(self, pagination: Pagination) -> FeedResult:
        sources = self.store.sources_for_feed(pagination.feed_type)
        return self._run(sources, pagination)

    def get_user_activity(self, email: str, pagination: Pagination) -> FeedResult:
        """한 사용자가 세 파티션에 작성한 모든 항목."""
        sources = [(name, [('author_email', '==', email)]) for name, _ in PARTITIONS]
        return self._run(sources, pagination)

    def get_post(self, post_id: str) -> Dict[str, Any]:
        located = self.store.locate(post_id)
        if located is None:
            raise NotFoundError("Post not found")
        return self.enrich([located.data])[0]

    def _run(self, sources, pagination: Pagination) -> FeedResult:
        if not pagination.paginated:
            return self.enrich(self.store.merged_query(sources, None, None))
        items = self.store.merged_query(sources, pagination.cursor, pagination.limit)
        return build_page(self.enrich(items), pagination.limit)

    # --- 응답 보강 ---
    def enrich(self, items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        각 항목에 originalPost(리포스트 원본)와 user(작성자 요약)를 붙입니다.
        원본과 작성자는 페이지 전체에서 ID 당 한 번씩만 조회합니다.
        """
        root_ids = [item['repost_of'] for item in items if item.get('repost_of')]
        originals = self.store.get_many(root_ids) if root_ids else {}

        emails = [item.get('author_email') for item in items]
        emails += [original.get('author_email') for original in originals.values()]
        summaries = self.profiles.get_summaries(email for email in emails if email)

        enriched = []
        for item in items:
            entry = dict(item)
            entry['user'] = summaries.get(item.get('author_email'))
            original = originals.get(item.get('repost_of')) if item.get('repost_of') else None
            if original:
                original = dict(original)
                original['user'] = summaries.get(original.get('author_email'))
            entry['original_post'] = original
            enriched.append(entry)
        return enriched

    # --- 리포스트 ---
    def resolve_repost_target(self, target_id: Optional[str]) -> Optional[str]:
        """
        리포스트 대상의 원본(root) ID 를 반환합니다.
        대상이 리포스트이면 그 원본을 가리키므로 체인은 항상 한 단계입니다.
        대상이 없거나 ID 가 잘못된 경우 경고만 남기고 None 을 반환합니다.
        """
        if not target_id:
            return None
        if not is_valid_document_id(target_id):
            logger.warning(f"잘못된 리포스트 대상 ID, 일반 게시물로 생성합니다: {target_id!r}")
            return None
        located = self.store.locate(target_id)
        if located is None:
            logger.warning(f"리포스트 대상이 존재하지 않아 일반 게시물로 생성합니다: {target_id}")
            return None
        return located.data.get('repost_of') or located.data['post_id']

    def repost_counts(self, ids: List[str]) -> List[Dict[str, Any]]:
        """원본 게시물별 리포스트 수. ids 가 비어 있으면 리포스트된 모든 원본."""
        posts_ref = self.store.partitions['posts']
        counter: Counter = Counter()
        if ids:
            for chunk in chunked([pid for pid in ids if is_valid_document_id(pid)]):
                query = posts_ref.where(filter=FieldFilter('repost_of', 'in', chunk))
                counter.update(doc.to_dict().get('repost_of') for doc in query.stream())
        else:
            query = posts_ref.where(filter=FieldFilter('repost_of', '!=', None))
            counter.update(doc.to_dict().get('repost_of') for doc in query.stream())
        return [{"_id": root_id, "count": count} for root_id, count in counter.items() if root_id]
