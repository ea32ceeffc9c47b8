# linkcamp/api/comments/services.py
import uuid
import logging
from collections import Counter
from dataclasses import asdict
from typing import Any, Dict, List

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from linkcamp.api.comments.schemas import CommentResponseSchema
from linkcamp.core.exceptions import AuthorizationError, InvalidInputError, NotFoundError
from linkcamp.core.security import is_admin
from linkcamp.models.comment import Comment
from linkcamp.utils.datetime_utils import DateTimeUtils
from linkcamp.utils.pagination import chunked, is_valid_document_id

logger = logging.getLogger(__name__)


class CommentService:
    """
    게시물 댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    댓글 이벤트는 해당 게시물의 상세 룸(item:<id>)에만 전송됩니다.
    """
    def __init__(self, content_store, profile_service, broadcaster=None):
        self.store = content_store
        self.profiles = profile_service
        self.comments_ref = content_store.db.collection('comments')
        self.broadcaster = broadcaster

    def add(self, post_id: str, author_email: str, text: str) -> Dict[str, Any]:
        content = (text or '').strip()
        if not content:
            raise InvalidInputError("Comment content is required")
        if self.store.locate(post_id) is None:
            raise NotFoundError("Post not found")

        comment = Comment(
            comment_id=str(uuid.uuid4()),
            post_id=post_id,
            author_email=author_email,
            content=content,
        )
        comment_data = DateTimeUtils.for_firestore(asdict(comment))
        self.comments_ref.document(comment.comment_id).set(comment_data)

        created = self._with_authors([comment_data])[0]
        if self.broadcaster:
            self.broadcaster.comment_created(post_id, CommentResponseSchema().dump(created))
        return created

    def edit(self, comment_id: str, requester: Dict[str, Any], text: str) -> Dict[str, Any]:
        comment_ref, data = self._locate_owned(comment_id, requester, "edit")
        content = (text or '').strip()
        if not content:
            raise InvalidInputError("Comment content is required")

        update = {'content': content, 'edited_at': DateTimeUtils.now()}
        comment_ref.update(update)

        updated = self._with_authors([{**data, **update}])[0]
        if self.broadcaster:
            self.broadcaster.comment_updated(data['post_id'], CommentResponseSchema().dump(updated))
        return updated

    def remove(self, comment_id: str, requester: Dict[str, Any]) -> None:
        comment_ref, data = self._locate_owned(comment_id, requester, "delete")
        self.delete_comment(comment_ref, data)

    def delete_comment(self, comment_ref, data: Dict[str, Any]) -> None:
        """댓글과 그 댓글에 대한 신고를 삭제하고 comment:deleted 를 전송합니다."""
        self.store.delete_where('comment_reports', 'comment_id', comment_ref.id)
        comment_ref.delete()
        logger.info(f"댓글 삭제: {comment_ref.id} (post_id: {data.get('post_id')})")
        if self.broadcaster:
            self.broadcaster.comment_deleted(data.get('post_id'), comment_ref.id)

    def get(self, comment_id: str):
        """(문서 참조, 데이터) 를 반환합니다. 없으면 NotFoundError."""
        self.store.validate_id(comment_id, "comment ID")
        comment_ref = self.comments_ref.document(comment_id)
        doc = comment_ref.get()
        if not doc.exists:
            raise NotFoundError("Comment not found")
        data = DateTimeUtils.from_firestore(doc.to_dict())
        data['comment_id'] = doc.id
        return comment_ref, data

    def list_for(self, post_id: str) -> List[Dict[str, Any]]:
        """게시물의 댓글을 작성 시간 오름차순으로 조회합니다."""
        self.store.validate_id(post_id)
        query = (
            self.comments_ref
            .where(filter=FieldFilter('post_id', '==', post_id))
            .order_by('created_at', direction=firestore.Query.ASCENDING)
        )
        comments = []
        for doc in query.stream():
            data = DateTimeUtils.from_firestore(doc.to_dict())
            data['comment_id'] = doc.id
            comments.append(data)
        return self._with_authors(comments)

    def comment_counts(self, post_ids: List[str]) -> List[Dict[str, Any]]:
        counter: Counter = Counter()
        if post_ids:
            for chunk in chunked([pid for pid in post_ids if is_valid_document_id(pid)]):
                query = self.comments_ref.where(filter=FieldFilter('post_id', 'in', chunk))
                counter.update(doc.to_dict().get('post_id') for doc in query.stream())
        else:
            counter.update(doc.to_dict().get('post_id') for doc in self.comments_ref.stream())
        return [{"_id": post_id, "count": count} for post_id, count in counter.items()]

    # --- 내부 헬퍼 ---
    def _locate_owned(self, comment_id: str, requester: Dict[str, Any], action: str):
        comment_ref, data = self.get(comment_id)
        if data.get('author_email') != requester['email'] and not is_admin(requester):
            raise AuthorizationError(f"You can only {action} your own comments")
        return comment_ref, data

    def _with_authors(self, comments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        summaries = self.profiles.get_summaries(c.get('author_email') for c in comments)
        return [{**c, 'user': summaries.get(c.get('author_email'))} for c in comments]
