# linkcamp/api/comments/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError

from linkcamp.api.comments.schemas import CommentCreateSchema, CommentUpdateSchema, CommentResponseSchema
from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import firebase_required
from linkcamp.utils.pagination import parse_ids_param

comments_bp = Blueprint('comments_bp', __name__)


@comments_bp.route('/comments', methods=['POST'])
@firebase_required(require_approved=True)
def create_comment():
    comment_service = current_app.services['comments']
    """
    게시물에 댓글을 작성합니다.
    - 성공 시 작성자 요약 정보가 포함된 댓글을 201 과 함께 반환합니다.
    """
    try:
        data = CommentCreateSchema().load(request.get_json(silent=True) or {})
        comment = comment_service.add(data['post_id'], g.user['email'], data['content'])
        return jsonify({
            "message": "Comment added",
            "commentId": comment['comment_id'],
            "comment": CommentResponseSchema().dump(comment),
        }), 201
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"댓글 생성 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@comments_bp.route('/comments/<string:post_id>', methods=['GET'])
@firebase_required()
def get_comments(post_id: str):
    comment_service = current_app.services['comments']
    """게시물의 댓글 목록 (오래된 순)."""
    try:
        comments = comment_service.list_for(post_id)
        return jsonify(CommentResponseSchema(many=True).dump(comments)), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"댓글 목록 조회 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@comments_bp.route('/comments/<string:comment_id>', methods=['PATCH'])
@firebase_required(require_approved=True)
def update_comment(comment_id: str):
    comment_service = current_app.services['comments']
    """댓글을 수정합니다. (작성자 또는 관리자)"""
    try:
        data = CommentUpdateSchema().load(request.get_json(silent=True) or {})
        comment = comment_service.edit(comment_id, g.user, data['content'])
        return jsonify({"message": "Comment updated", "comment": CommentResponseSchema().dump(comment)}), 200
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code


@comments_bp.route('/comments/<string:comment_id>', methods=['DELETE'])
@firebase_required(require_approved=True)
def delete_comment(comment_id: str):
    comment_service = current_app.services['comments']
    """댓글을 삭제합니다. (작성자 또는 관리자)"""
    try:
        comment_service.remove(comment_id, g.user)
        return jsonify({"message": "Comment deleted"}), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code


@comments_bp.route('/commentCounts', methods=['GET'])
@firebase_required()
def get_comment_counts():
    comment_service = current_app.services['comments']
    try:
        counts = comment_service.comment_counts(parse_ids_param(request.args.get('ids')))
        return jsonify(counts), 200
    except Exception as e:
        logging.error(f"댓글 수 조회 중 오류 발생: {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500
