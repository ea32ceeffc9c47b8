# linkcamp/services/realtime_service.py
import logging
from typing import Any, Dict, List, Optional

from flask import Flask
from flask_socketio import SocketIO

from linkcamp.models.post import PostType

logger = logging.getLogger(__name__)

FEED_ROOMS = ('all', 'teacher', 'admin')


def feed_room(feed_type: str) -> str:
    return f"feed:{feed_type}"


def item_room(post_id: str) -> str:
    return f"item:{post_id}"


def user_room(email: str) -> str:
    return f"user:{email}"


class FeedBroadcaster:
    """
    실시간 피드 이벤트를 Socket.IO 룸으로 전송하는 서비스 클래스.
    요청 처리 코드는 룸 레지스트리에 직접 접근하지 않고 이 클래스의 메서드만 사용합니다.
    모든 메서드는 저장소 쓰기가 끝난 뒤에 호출되어야 합니다.
    """
    def __init__(self):
        self.socketio: Optional[SocketIO] = None
        self.enabled = False

    def init_app(self, app: Flask, socketio: SocketIO):
        self.socketio = socketio
        self.enabled = bool(app.config.get('REALTIME_ENABLED', True))
        logger.info(f"FeedBroadcaster initialized (enabled={self.enabled})")

    # --- 룸 계산 ---
    @staticmethod
    def feed_rooms(post_type: Optional[str], author_email: Optional[str] = None) -> List[str]:
        """feed:all + (teacher/admin 이면) 타입 룸 + 작성자 개인 룸"""
        rooms = [feed_room('all')]
        if post_type in (PostType.TEACHER.value, PostType.ADMIN.value):
            rooms.append(feed_room(post_type))
        if author_email:
            rooms.append(user_room(author_email))
        return rooms

    def publish(self, event: str, payload: Dict[str, Any], rooms: List[str]) -> None:
        """여러 룸에 한 번에 전송합니다. 여러 룸에 속한 소켓도 이벤트를 한 번만 받습니다."""
        if not self.enabled or self.socketio is None or not rooms:
            return
        self.socketio.emit(event, payload, to=rooms)
        logger.debug(f"{event} -> {rooms}")

    # --- 게시물 이벤트 ---
    def post_created(self, post: Dict[str, Any], post_type: str, author_email: Optional[str]) -> None:
        self.publish("post:created", {"post": post}, self.feed_rooms(post_type, author_email))

    def repost_created(self, root_id: str, repost_id: str, created_at: Optional[str],
                       post_type: str, author_email: Optional[str]) -> None:
        payload = {"postId": root_id, "repostId": repost_id, "createdAt": created_at}
        self.publish("repost:created", payload, self.feed_rooms(post_type, author_email))

    def post_updated(self, post: Dict[str, Any], post_type: str, author_email: Optional[str]) -> None:
        self.publish("post:updated", {"post": post}, self.feed_rooms(post_type, author_email))

    def post_deleted(self, post_id: str, post_type: str, author_email: Optional[str]) -> None:
        payload = {"postId": post_id, "postType": post_type, "email": author_email}
        self.publish("post:deleted", payload, self.feed_rooms(post_type, author_email))

    # --- 투표 이벤트 ---
    def vote_changed(self, post_id: str, voter_email: str, previous_vote: Optional[str],
                     vote_type: Optional[str], origin_socket_id: Optional[str],
                     post_type: Optional[str], owner_email: Optional[str]) -> None:
        payload = {
            "postId": post_id,
            "userEmail": voter_email,
            "previousVote": previous_vote,
            "voteType": vote_type,
            "originSocketId": origin_socket_id,
        }
        self.publish("vote:changed", payload, self.feed_rooms(post_type, owner_email))

    # --- 댓글 이벤트 (게시물 상세 룸 전용) ---
    def comment_created(self, post_id: str, comment: Dict[str, Any]) -> None:
        self.publish("comment:created", {"postId": post_id, "comment": comment, "delta": 1}, [item_room(post_id)])

    def comment_updated(self, post_id: str, comment: Dict[str, Any]) -> None:
        self.publish("comment:updated", {"postId": post_id, "comment": comment, "delta": 0}, [item_room(post_id)])

    def comment_deleted(self, post_id: str, comment_id: str) -> None:
        self.publish("comment:deleted", {"postId": post_id, "commentId": comment_id, "delta": -1}, [item_room(post_id)])

    # --- 사용자 이벤트 ---
    def user_updated(self, profile: Dict[str, Any]) -> None:
        email = profile.get('email')
        if not email:
            return
        payload = {
            "email": email,
            "name": profile.get('name'),
            "photo": profile.get('photo'),
            "userType": profile.get('role'),
        }
        rooms = [feed_room(feed_type) for feed_type in FEED_ROOMS] + [user_room(email)]
        self.publish("user:updated", payload, rooms)
