# linkcamp/api/feed/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app

from linkcamp.api.posts.schemas import PostResponseSchema
from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import firebase_required
from linkcamp.utils.pagination import parse_pagination, parse_ids_param

feed_bp = Blueprint('feed_bp', __name__)


def _pagination(args, feed_type=None):
    pagination = parse_pagination(
        args,
        default_limit=current_app.config['FEED_DEFAULT_LIMIT'],
        max_limit=current_app.config['FEED_MAX_LIMIT'],
    )
    if feed_type:
        pagination.feed_type = feed_type
    return pagination


def _dump(result):
    """페이지({items, nextCursor}) 또는 전체 목록(배열)을 응답 형식으로 변환합니다."""
    schema = PostResponseSchema(many=True)
    if isinstance(result, dict):
        return {"items": schema.dump(result['items']), "nextCursor": result['nextCursor']}
    return schema.dump(result)


def _feed_response(feed_type=None):
    feed_service = current_app.services['feed']
    try:
        result = feed_service.list_feed(_pagination(request.args, feed_type))
        return jsonify(_dump(result)), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"피드 조회 중 오류 발생 (type: {feed_type or request.args.get('type')}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@feed_bp.route('/posts', methods=['GET'])
@firebase_required()
def get_feed():
    """
    통합 피드를 조회합니다.
    - type: all | general | teacher | admin (그 외는 all)
    - cursor, limit 중 하나라도 있으면 {items, nextCursor}, 없으면 전체 배열
    """
    return _feed_response()


@feed_bp.route('/teacher/announcements', methods=['GET'])
@firebase_required()
def get_announcements():
    return _feed_response('teacher')


@feed_bp.route('/admin/notices', methods=['GET'])
@firebase_required()
def get_notices():
    return _feed_response('admin')


@feed_bp.route('/posts/<string:post_id>', methods=['GET'])
@firebase_required()
def get_post(post_id: str):
    feed_service = current_app.services['feed']
    try:
        post = feed_service.get_post(post_id)
        return jsonify(PostResponseSchema().dump(post)), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code


@feed_bp.route('/user/profile/<string:email>', methods=['GET'])
@firebase_required()
def get_user_activity(email: str):
    feed_service = current_app.services['feed']
    """특정 사용자의 게시물/공지/알림 활동 내역 (리포스트 원본 포함)."""
    try:
        result = feed_service.get_user_activity(email, _pagination(request.args))
        return jsonify(_dump(result)), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"사용자 활동 조회 중 오류 발생 (email: {email}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@feed_bp.route('/repostCounts', methods=['GET'])
@firebase_required()
def get_repost_counts():
    feed_service = current_app.services['feed']
    try:
        counts = feed_service.repost_counts(parse_ids_param(request.args.get('ids')))
        return jsonify(counts), 200
    except Exception as e:
        logging.error(f"리포스트 수 조회 중 오류 발생: {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500
