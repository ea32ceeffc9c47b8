# linkcamp/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError

from linkcamp.api.posts.schemas import PostCreateSchema, AnnouncementCreateSchema, PostUpdateSchema
from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import firebase_required

posts_bp = Blueprint('posts_bp', __name__)


def _validation_response(err: ValidationError):
    return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400


@posts_bp.route('/user/post', methods=['POST'])
@firebase_required(require_approved=True)
def create_post():
    post_service = current_app.services['posts']
    """
    일반 게시물을 작성합니다. (multipart: content, photo, postType, repostOf)
    - 리포스트의 리포스트는 원본 게시물을 가리키도록 저장됩니다.
    """
    try:
        data = PostCreateSchema().load(request.form.to_dict())
        post = post_service.create_post(
            g.user, data['content'], request.files.get('photo'), data['post_type'], data['repost_of']
        )
        return jsonify({"message": "Post created", "postId": post['post_id']}), 201
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"게시물 생성 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@posts_bp.route('/teacher/announcement', methods=['POST'])
@firebase_required(roles=['teacher'], require_approved=True)
def create_announcement():
    post_service = current_app.services['posts']
    try:
        data = AnnouncementCreateSchema().load(request.form.to_dict())
        post = post_service.create_announcement(g.user, data['content'], request.files.get('photo'))
        return jsonify({"message": "Announcement created", "postId": post['post_id']}), 201
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"공지 생성 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@posts_bp.route('/admin/notice', methods=['POST'])
@firebase_required(roles=['admin'], require_approved=True)
def create_notice():
    post_service = current_app.services['posts']
    try:
        data = AnnouncementCreateSchema().load(request.form.to_dict())
        post = post_service.create_notice(g.user, data['content'], request.files.get('photo'))
        return jsonify({"message": "Notice created", "postId": post['post_id']}), 201
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"알림 생성 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@posts_bp.route('/posts/<string:post_id>', methods=['PATCH'])
@firebase_required(require_approved=True)
def update_post(post_id: str):
    post_service = current_app.services['posts']
    """게시물 내용/사진을 수정합니다. (작성자 또는 관리자)"""
    try:
        data = PostUpdateSchema().load(request.form.to_dict())
        post_service.update_post(
            post_id, g.user, data['content'], request.files.get('photo'), data['remove_photo']
        )
        return jsonify({"message": "Post updated"}), 200
    except ValidationError as err:
        return _validation_response(err)
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"게시물 수정 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@posts_bp.route('/posts/<string:post_id>', methods=['DELETE'])
@firebase_required(require_approved=True)
def delete_post(post_id: str):
    post_service = current_app.services['posts']
    """게시물과 그에 딸린 투표/댓글/신고/이미지를 삭제합니다. (작성자 또는 관리자)"""
    try:
        post_service.delete_post(post_id, g.user)
        return jsonify({"message": "Post deleted"}), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"게시물 삭제 중 오류 발생 (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500
