# linkcamp/api/users/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError

from linkcamp.api.users.schemas import (
    RegistrationSchema, NameUpdateSchema, ProfileUpdateSchema,
    AdminUserUpdateSchema, AdminUserQuerySchema, ProfileResponseSchema,
)
from linkcamp.core.exceptions import ApiError
from linkcamp.core.security import firebase_required

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/users', methods=['POST'])
@firebase_required(profile_required=False)
def register_user():
    user_service = current_app.services['users']
    """
    Firebase 로 인증된 사용자의 프로필을 생성합니다. (multipart: name, userType, photo ...)
    - 새 계정은 항상 승인 대기(pending) 상태로 생성됩니다.
    """
    try:
        data = RegistrationSchema().load(request.form.to_dict())
        profile = user_service.register(g.user['email'], data, request.files.get('photo'))
        return jsonify({"message": "User created", "user": ProfileResponseSchema().dump(profile)}), 201
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"회원 가입 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@users_bp.route('/user/<string:email>', methods=['GET'])
@firebase_required()
def get_user(email: str):
    user_service = current_app.services['users']
    """특정 사용자의 프로필을 조회합니다."""
    profile = user_service.get_profile(email)
    if not profile:
        return jsonify({"code": "NOT_FOUND", "message": "User not found"}), 404
    return jsonify(ProfileResponseSchema().dump(profile)), 200


@users_bp.route('/user/name', methods=['PATCH'])
@firebase_required()
def update_my_name():
    user_service = current_app.services['users']
    try:
        data = NameUpdateSchema().load(request.get_json(silent=True) or {})
        user_service.update_name(g.user['email'], data['name'])
        return jsonify({"message": "Name updated"}), 200
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code


@users_bp.route('/user/profile', methods=['PATCH'])
@firebase_required()
def update_my_profile():
    user_service = current_app.services['users']
    """
    본인 프로필을 수정합니다. (multipart)
    - role / verify 는 무시됩니다. 관리자 API 를 사용해야 합니다.
    """
    try:
        data = ProfileUpdateSchema().load(request.form.to_dict())
        profile = user_service.update_profile(g.user['email'], data, request.files.get('photo'))
        return jsonify({"message": "Profile updated", "user": ProfileResponseSchema().dump(profile)}), 200
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        logging.error(f"프로필 수정 중 오류 발생 (email: {g.user['email']}): {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@users_bp.route('/user/upload-photo', methods=['POST'])
@firebase_required()
def upload_my_photo():
    user_service = current_app.services['users']
    try:
        profile = user_service.update_photo(g.user['email'], request.files.get('photo'))
        return jsonify({"message": "Photo updated", "photoUrl": profile.get('photo')}), 200
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code


# --- 관리자 전용 ---

@users_bp.route('/admin/users', methods=['GET'])
@firebase_required(roles=['admin'])
def list_users():
    user_service = current_app.services['users']
    """역할/승인 상태로 필터링된 사용자 목록을 페이지 번호 방식으로 조회합니다."""
    try:
        query = AdminUserQuerySchema().load(request.args.to_dict())
        items, total = user_service.list_profiles(
            query.get('role'), query.get('approval'), query['page'], query['limit'], query['sort']
        )
        return jsonify({"items": ProfileResponseSchema(many=True).dump(items), "total": total}), 200
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"사용자 목록 조회 중 오류 발생: {e}", exc_info=True)
        return jsonify({"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(e)}), 500


@users_bp.route('/admin/users/<string:email>', methods=['GET'])
@firebase_required(roles=['admin'])
def get_user_for_admin(email: str):
    user_service = current_app.services['users']
    profile = user_service.get_profile(email)
    if not profile:
        return jsonify({"code": "NOT_FOUND", "message": "User not found"}), 404
    return jsonify(ProfileResponseSchema().dump(profile)), 200


@users_bp.route('/admin/users/<string:email>', methods=['PATCH'])
@firebase_required(roles=['admin'])
def update_user_for_admin(email: str):
    user_service = current_app.services['users']
    """계정 승인/차단(verify) 또는 역할(userType)을 변경합니다."""
    try:
        data = AdminUserUpdateSchema().load(request.get_json(silent=True) or {})
        user_service.set_account_state(email, approval=data.get('approval'), role=data.get('role'))
        logging.info(f"관리자 {g.user['email']} 가 {email} 계정을 변경했습니다: {data}")
        return jsonify({"message": "User updated"}), 200
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400
    except ApiError as e:
        return jsonify(e.to_dict()), e.status_code
