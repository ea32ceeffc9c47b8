# linkcamp/api/auth/routes.py

import logging
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError

from linkcamp.api.users.schemas import LoginSchema

auth_bp = Blueprint('auth_bp', __name__)


@auth_bp.route('/', methods=['GET'])
def health_check():
    return jsonify({"status": "ok", "service": "linkcamp"}), 200


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    가입 여부 확인용 엔드포인트입니다.
    토큰 발급은 Firebase 클라이언트 SDK 가 담당하므로 프로필 존재 여부만 확인합니다.
    """
    user_service = current_app.services['users']
    try:
        data = LoginSchema().load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return jsonify({"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}), 400

    profile = user_service.get_profile(data['email'])
    if not profile:
        return jsonify({"code": "NOT_FOUND", "message": "User not found"}), 404

    logging.info(f"로그인 확인: {data['email']}")
    return jsonify({"message": "Login successful", "email": data['email']}), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    # 세션 상태가 없으므로 클라이언트가 토큰을 폐기하면 됩니다.
    return jsonify({"message": "Logout successful"}), 200
