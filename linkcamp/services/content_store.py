# linkcamp/services/content_store.py
"""
세 개의 콘텐츠 컬렉션(posts / announcements / notices)을 하나의 논리적 피드로
다루기 위한 공용 저장소 클래스.

피드, 투표, 댓글, 신고 서비스가 모두 이 클래스를 통해 게시물을 찾습니다.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from linkcamp.core.exceptions import InvalidInputError
from linkcamp.models.post import PARTITIONS, PostType
from linkcamp.utils.datetime_utils import DateTimeUtils
from linkcamp.utils.pagination import is_valid_document_id

logger = logging.getLogger(__name__)

# (필드, 연산자, 값) 형태의 where 조건
Filter = Tuple[str, str, Any]


@dataclass
class LocatedPost:
    """게시물 문서와 그것이 저장된 파티션."""
    partition: str
    ref: Any
    data: Dict[str, Any]

    @property
    def post_type(self) -> str:
        return self.data['post_type']

    @property
    def author_email(self) -> Optional[str]:
        return self.data.get('author_email')


class ContentStore:
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.partitions = {name: self.db.collection(name) for name, _ in PARTITIONS}
        self.default_types = dict(PARTITIONS)

    # --- 파티션 매핑 ---
    def partition_for_type(self, post_type: str) -> str:
        """전용 파티션 이름. general 은 'posts' 입니다."""
        for name, default_type in PARTITIONS:
            if default_type == post_type:
                return name
        return 'posts'

    def normalize(self, doc_id: str, data: Dict[str, Any], partition: str) -> Dict[str, Any]:
        """저장된 문서를 응답용 dict 로 정규화합니다. (post_type 누락 문서는 파티션 기본값)"""
        item = DateTimeUtils.from_firestore(dict(data))
        item['post_id'] = doc_id
        item['post_type'] = item.get('post_type') or self.default_types[partition]
        item.setdefault('repost_of', None)
        item.setdefault('report_count', 0)
        return item

    # --- 단건/다건 조회 ---
    def validate_id(self, post_id: Any, label: str = "post ID") -> str:
        if not is_valid_document_id(post_id):
            raise InvalidInputError(f"Invalid {label}")
        return post_id

    def locate(self, post_id: str) -> Optional[LocatedPost]:
        """모든 파티션을 순서대로 조회하여 게시물을 찾습니다. 잘못된 ID 는 InvalidInputError."""
        self.validate_id(post_id)
        for name, collection in self.partitions.items():
            ref = collection.document(post_id)
            doc = ref.get()
            if doc.exists:
                return LocatedPost(partition=name, ref=ref, data=self.normalize(doc.id, doc.to_dict(), name))
        return None

    def get_many(self, post_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """ID 목록을 파티션별 일괄 조회(get_all)하여 {post_id: item} 으로 반환합니다."""
        ids = [pid for pid in dict.fromkeys(post_ids) if is_valid_document_id(pid)]
        found: Dict[str, Dict[str, Any]] = {}
        if not ids:
            return found
        for name, collection in self.partitions.items():
            missing = [pid for pid in ids if pid not in found]
            if not missing:
                break
            for doc in self.db.get_all([collection.document(pid) for pid in missing]):
                if doc.exists:
                    found[doc.id] = self.normalize(doc.id, doc.to_dict(), name)
        return found

    # --- 목록 조회 ---
    def query_partition(self, partition: str, filters: List[Filter], cursor: Optional[datetime],
                        limit: Optional[int]) -> List[Dict[str, Any]]:
        """
        하나의 파티션에서 created_at 내림차순으로 조회합니다.
        cursor 가 있으면 그보다 이전(created_at < cursor) 항목만 가져옵니다.
        """
        query = self.partitions[partition]
        for field_path, op, value in filters:
            query = query.where(filter=FieldFilter(field_path, op, value))
        if cursor:
            query = query.where(filter=FieldFilter('created_at', '<', cursor))
        query = query.order_by('created_at', direction=firestore.Query.DESCENDING)
        if limit:
            query = query.limit(limit)
        return [self.normalize(doc.id, doc.to_dict(), partition) for doc in query.stream()]

    def sources_for_feed(self, feed_type: str) -> List[Tuple[str, List[Filter]]]:
        """
        피드 필터별 조회 대상 (파티션, 조건) 목록.
        teacher/admin 피드는 전용 파티션과 'posts' 파티션의 같은 타입 게시물을 합칩니다.
        """
        if feed_type == PostType.GENERAL.value:
            return [('posts', [('post_type', '==', PostType.GENERAL.value)])]
        if feed_type in (PostType.TEACHER.value, PostType.ADMIN.value):
            return [
                (self.partition_for_type(feed_type), []),
                ('posts', [('post_type', '==', feed_type)]),
            ]
        return [(name, []) for name, _ in PARTITIONS]

    def merged_query(self, sources: List[Tuple[str, List[Filter]]], cursor: Optional[datetime],
                     limit: Optional[int]) -> List[Dict[str, Any]]:
        """
        여러 소스를 각각 limit 만큼 조회한 뒤 합치고, 정렬한 다음 잘라냅니다.
        (자르기 전에 반드시 합치고 정렬해야 항목이 누락되지 않습니다.)
        """
        merged: Dict[str, Dict[str, Any]] = {}
        for partition, filters in sources:
            for item in self.query_partition(partition, filters, cursor, limit):
                merged[item['post_id']] = item
        items = sorted(merged.values(), key=lambda p: DateTimeUtils.sort_key(p.get('created_at')), reverse=True)
        return items[:limit] if limit else items

    # --- 쓰기 ---
    def delete_where(self, collection_name: str, field_path: str, value: Any) -> int:
        """조건에 맞는 문서를 하나씩 삭제합니다. (트랜잭션 없음)"""
        deleted = 0
        query = self.db.collection(collection_name).where(filter=FieldFilter(field_path, '==', value))
        for doc in query.stream():
            doc.reference.delete()
            deleted += 1
        return deleted
