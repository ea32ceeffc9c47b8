# linkcamp/services/identity_service.py
import logging
from typing import Any, Dict, Optional

import jwt
from firebase_admin import auth as firebase_auth
from flask import Flask
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from linkcamp.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

_FIREBASE_TOKEN_ERRORS = (
    firebase_auth.InvalidIdTokenError,
    firebase_auth.ExpiredIdTokenError,
    firebase_auth.RevokedIdTokenError,
    firebase_auth.CertificateFetchError,
    firebase_auth.UserDisabledError,
    ValueError,
)


class IdentityVerifier:
    """
    Bearer 토큰을 검증하여 인증된 신원(uid, email)을 반환합니다.
    - firebase: Firebase ID 토큰 (운영 기본값)
    - jwt: 서버 JWT_SECRET_KEY 로 서명된 HS256 토큰 (레거시 배포 및 테스트)
    HTTP 요청과 Socket.IO 핸드셰이크가 같은 검증기를 사용합니다.
    """
    def __init__(self):
        self.provider: Optional[str] = None

    def init_app(self, app: Flask):
        self.provider = app.config.get('AUTH_PROVIDER', 'firebase')
        logger.info(f"IdentityVerifier: '{self.provider}' 인증 모드로 초기화되었습니다.")

    def verify(self, token: Optional[str]) -> Dict[str, Any]:
        if not token:
            raise AuthenticationError("No token provided")
        if self.provider == 'jwt':
            claims = self._verify_jwt(token)
        else:
            claims = self._verify_firebase(token)

        email = claims.get('email') or claims.get('claims', {}).get('email')
        if not email:
            raise AuthenticationError("Token does not carry an email")
        return {"uid": claims.get('uid') or claims.get('sub'), "email": email, "claims": claims}

    def _verify_firebase(self, token: str) -> Dict[str, Any]:
        try:
            return firebase_auth.verify_id_token(token)
        except _FIREBASE_TOKEN_ERRORS as e:
            logger.warning(f"Firebase 토큰 검증 실패: {e}")
            raise AuthenticationError("Invalid or expired token")

    def _verify_jwt(self, token: str) -> Dict[str, Any]:
        try:
            claims = decode_token(token)
        except (jwt.PyJWTError, JWTExtendedException) as e:
            logger.warning(f"JWT 검증 실패: {e}")
            raise AuthenticationError("Invalid or expired token")
        # identity(sub) 를 email 로 사용합니다.
        claims.setdefault('email', claims.get('sub'))
        return claims
