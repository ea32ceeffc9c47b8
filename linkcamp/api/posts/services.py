# linkcamp/api/posts/services.py
import uuid
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from google.cloud.firestore_v1.base_query import FieldFilter
from werkzeug.datastructures import FileStorage

from linkcamp.api.posts.schemas import PostResponseSchema
from linkcamp.core.exceptions import AuthorizationError, InvalidInputError, NotFoundError
from linkcamp.core.security import is_admin
from linkcamp.models.post import Post, PostType
from linkcamp.services.content_store import LocatedPost
from linkcamp.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)


class PostService:
    """
    게시물/공지/알림의 생성, 수정, 삭제(연쇄 삭제 포함)를 담당하는 서비스 클래스.
    조회는 FeedService 가 담당합니다.
    """
    def __init__(self, content_store, feed_service, storage_service=None, broadcaster=None):
        self.store = content_store
        self.feed = feed_service
        self.storage_service = storage_service
        self.broadcaster = broadcaster

    # --- 생성 ---
    def create_post(self, author: Dict[str, Any], content: Optional[str], photo: Optional[FileStorage],
                    post_type: Optional[str] = None, repost_of: Optional[str] = None) -> Dict[str, Any]:
        """
        일반 게시물 파티션('posts')에 게시물을 생성합니다.
        - 관리자가 아니면 general 또는 본인 역할의 타입만 사용할 수 있습니다.
        - repost_of 는 항상 원본 게시물 ID 로 저장됩니다.
        """
        post_type = post_type or PostType.GENERAL.value
        if post_type not in (PostType.GENERAL.value, PostType.TEACHER.value, PostType.ADMIN.value):
            raise InvalidInputError("Invalid postType")
        if post_type != PostType.GENERAL.value and not is_admin(author) and post_type != author.get('role'):
            raise AuthorizationError("You are not allowed to create this post type")

        root_id = self.feed.resolve_repost_target(repost_of)
        return self._create('posts', author, content, photo, post_type, root_id)

    def create_announcement(self, author: Dict[str, Any], content: Optional[str],
                            photo: Optional[FileStorage]) -> Dict[str, Any]:
        return self._create('announcements', author, content, photo, PostType.TEACHER.value, None)

    def create_notice(self, author: Dict[str, Any], content: Optional[str],
                      photo: Optional[FileStorage]) -> Dict[str, Any]:
        return self._create('notices', author, content, photo, PostType.ADMIN.value, None)

    def _create(self, partition: str, author: Dict[str, Any], content: Optional[str],
                photo: Optional[FileStorage], post_type: str, root_id: Optional[str]) -> Dict[str, Any]:
        content = (content or '').strip() or None
        has_photo = bool(photo and photo.filename)
        if not content and not has_photo and not root_id:
            raise InvalidInputError("Post must have content, a photo or a repost target")

        email = author['email']
        photo_url = self.storage_service.upload_image(photo, email, "post_image") if has_photo else None

        post = Post(
            post_id=str(uuid.uuid4()),
            author_email=email,
            content=content,
            photo=photo_url,
            post_type=post_type,
            repost_of=root_id,
        )
        post_data = DateTimeUtils.for_firestore(asdict(post))
        self.store.partitions[partition].document(post.post_id).set(post_data)
        logger.info(f"{partition} 생성: {post.post_id} (author: {email}, repost_of: {root_id})")

        created = self.store.normalize(post.post_id, post_data, partition)
        if self.broadcaster:
            payload = PostResponseSchema().dump(self.feed.enrich([created])[0])
            self.broadcaster.post_created(payload, post_type, email)
            if root_id:
                self.broadcaster.repost_created(
                    root_id, post.post_id, DateTimeUtils.to_iso_string(post.created_at), post_type, email
                )
        return created

    # --- 수정 ---
    def update_post(self, post_id: str, requester: Dict[str, Any], content: Optional[str],
                    photo: Optional[FileStorage] = None, remove_photo: bool = False) -> Dict[str, Any]:
        """작성자 또는 관리자만 수정할 수 있습니다. 타입과 작성자는 바뀌지 않습니다."""
        located = self._locate_owned(post_id, requester, "edit")

        update: Dict[str, Any] = {}
        if content is not None:
            update['content'] = content.strip() or None

        old_photo = located.data.get('photo')
        if photo and photo.filename:
            update['photo'] = self.storage_service.upload_image(photo, requester['email'], "post_image")
        elif remove_photo:
            update['photo'] = None

        merged = {**located.data, **update}
        if not merged.get('content') and not merged.get('photo') and not merged.get('repost_of'):
            raise InvalidInputError("Post must have content, a photo or a repost target")

        update['updated_at'] = DateTimeUtils.now()
        located.ref.update(update)
        if 'photo' in update and old_photo and old_photo != update['photo']:
            self._delete_photo(old_photo)

        updated = {**located.data, **update}
        if self.broadcaster:
            payload = PostResponseSchema().dump(self.feed.enrich([updated])[0])
            self.broadcaster.post_updated(payload, located.post_type, located.author_email)
        return updated

    # --- 삭제 ---
    def delete_post(self, post_id: str, requester: Dict[str, Any]) -> None:
        located = self._locate_owned(post_id, requester, "delete")
        self.delete_located(located)

    def delete_located(self, located: LocatedPost) -> None:
        """
        게시물과 그에 딸린 데이터를 순서대로 삭제합니다.
        투표 -> 댓글(및 댓글 신고) -> 게시물 신고 -> 이미지 -> 게시물
        중간에 실패하면 남은 고아 데이터는 조회 시 보이지 않습니다.
        """
        post_id = located.data['post_id']
        db = self.store.db

        votes_deleted = self.store.delete_where('votes', 'post_id', post_id)

        comments_query = db.collection('comments').where(filter=FieldFilter('post_id', '==', post_id))
        comments_deleted = 0
        for comment_doc in comments_query.stream():
            self.store.delete_where('comment_reports', 'comment_id', comment_doc.id)
            comment_doc.reference.delete()
            comments_deleted += 1

        self.store.delete_where('reports', 'post_id', post_id)
        self._delete_photo(located.data.get('photo'))
        located.ref.delete()
        logger.info(f"게시물 삭제: {post_id} (votes: {votes_deleted}, comments: {comments_deleted})")

        if self.broadcaster:
            self.broadcaster.post_deleted(post_id, located.post_type, located.author_email)

    # --- 내부 헬퍼 ---
    def _locate_owned(self, post_id: str, requester: Dict[str, Any], action: str) -> LocatedPost:
        located = self.store.locate(post_id)
        if located is None:
            raise NotFoundError("Post not found")
        if located.author_email != requester['email'] and not is_admin(requester):
            raise AuthorizationError(f"You can only {action} your own posts")
        return located

    def _delete_photo(self, url: Optional[str]) -> None:
        if url and self.storage_service:
            self.storage_service.delete_by_url(url)
