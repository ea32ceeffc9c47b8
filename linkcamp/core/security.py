from functools import wraps
from typing import Iterable, Optional

from flask import request, jsonify, g, current_app

from linkcamp.core.exceptions import ApiError, AuthorizationError, NotFoundError
from linkcamp.models.user import Approval, Role


def extract_token(headers=None, cookies=None) -> Optional[str]:
    """Authorization 헤더(Bearer), 'token' 쿠키, x-access-token 헤더 순으로 토큰을 찾습니다."""
    headers = headers if headers is not None else request.headers
    cookies = cookies if cookies is not None else request.cookies
    raw = headers.get("Authorization") or cookies.get("token") or headers.get("x-access-token")
    if not raw:
        return None
    if raw.startswith("Bearer "):
        return raw.split(" ", 1)[1].strip() or None
    return raw


def authenticate(token: Optional[str], roles: Optional[Iterable[str]] = None,
                 require_approved: bool = False, profile_required: bool = True) -> dict:
    """
    토큰을 검증하고 프로필을 조회하여 요청 사용자 정보를 만듭니다.
    - 차단(blocked) 계정은 항상 거부 (ACCOUNT_BLOCKED)
    - require_approved 이면 관리자 외 미승인 계정 거부 (ACCOUNT_PENDING)
    - roles 가 주어지면 토큰 클레임 또는 프로필 역할이 포함되어야 함
    """
    identity = current_app.services['identity'].verify(token)
    email = identity['email']

    profile = current_app.services['users'].get_profile(email)
    if profile is None and profile_required:
        raise NotFoundError("User not found")
    profile = profile or {}

    role = profile.get('role')
    approval = profile.get('approval')

    if approval == Approval.BLOCKED.value:
        raise AuthorizationError("Your account is blocked. Contact campus support.", code="ACCOUNT_BLOCKED")

    if require_approved and role != Role.ADMIN.value and approval != Approval.APPROVED.value:
        raise AuthorizationError("Your account is pending approval.", code="ACCOUNT_PENDING")

    if roles:
        claims = identity['claims']
        claim_role = claims.get('role') or claims.get('userType')
        if claim_role not in roles and role not in roles:
            raise AuthorizationError("User does not have required role")

    return {
        "uid": identity['uid'],
        "email": email,
        "name": profile.get('name'),
        "role": role,
        "approval": approval,
        "claims": identity['claims'],
    }


def firebase_required(roles: Optional[Iterable[str]] = None, require_approved: bool = False,
                      profile_required: bool = True):
    """인증이 필요한 라우트에 사용하는 데코레이터. 성공 시 g.user 를 채웁니다."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                g.user = authenticate(extract_token(), roles, require_approved, profile_required)
            except ApiError as e:
                return jsonify(e.to_dict()), e.status_code
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def is_admin(user: dict) -> bool:
    return user.get('role') == Role.ADMIN.value
