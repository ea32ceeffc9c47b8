# linkcamp/api/realtime/events.py
"""
Socket.IO 연결/구독 이벤트 핸들러.

- 연결 시 핸드셰이크의 auth.token 또는 Authorization 헤더로 인증하고
  사용자 개인 룸(user:<email>)에 참여시킵니다.
- feed:subscribe / feed:unsubscribe: 피드 룸(all | teacher | admin) 구독
- post:join / post:leave: 게시물 상세 룸(item:<id>) 참여
"""
import logging
from flask import request
from flask_socketio import join_room, leave_room

from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import authenticate, extract_token
from linkcamp.core.socket_server import socketio
from linkcamp.services.realtime_service import FEED_ROOMS, feed_room, item_room, user_room

logger = logging.getLogger(__name__)


def _handshake_token(auth):
    if isinstance(auth, dict) and auth.get('token'):
        token = auth['token']
        return token.split(" ", 1)[1] if token.startswith("Bearer ") else token
    return extract_token(request.headers, request.cookies)


@socketio.on('connect')
def handle_connect(auth=None):
    try:
        user = authenticate(_handshake_token(auth))
    except ApiError as e:
        logger.info(f"소켓 연결 거부 ({request.sid}): {e.message}")
        raise ConnectionRefusedError('UNAUTHORIZED')

    join_room(user_room(user['email']))
    logger.debug(f"소켓 연결: {request.sid} ({user['email']})")


@socketio.on('disconnect')
def handle_disconnect(*args):
    # 룸 참여 정보는 서버가 연결 종료 시 정리합니다.
    logger.debug(f"소켓 연결 종료: {request.sid}")


@socketio.on('feed:subscribe')
def handle_feed_subscribe(feed_type):
    if feed_type in FEED_ROOMS:
        join_room(feed_room(feed_type))


@socketio.on('feed:unsubscribe')
def handle_feed_unsubscribe(feed_type):
    if feed_type in FEED_ROOMS:
        leave_room(feed_room(feed_type))


@socketio.on('post:join')
def handle_post_join(post_id):
    if isinstance(post_id, str) and post_id.strip():
        join_room(item_room(post_id.strip()))


@socketio.on('post:leave')
def handle_post_leave(post_id):
    if isinstance(post_id, str) and post_id.strip():
        leave_room(item_room(post_id.strip()))
