# linkcamp/core/exceptions.py
"""
API 전역에서 사용하는 예외 계층.

서비스 계층은 아래 예외만 발생시키고, 라우트 계층이 이를 잡아
HTTP 상태 코드와 `{"code", "message"}` 형식의 JSON 으로 변환합니다.
"""
from typing import Any, Dict, Optional


class ApiError(Exception):
    status_code = 500
    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InvalidInputError(ApiError):
    """필수 값 누락, 잘못된 ID 형식 등 (400)."""
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(ApiError):
    """토큰 누락/위조/만료 (401)."""
    status_code = 401
    code = "UNAUTHORIZED"


class AuthorizationError(ApiError):
    """권한, 소유권, 계정 승인 상태 불일치 (403)."""
    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(ApiError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ApiError):
    """같은 사용자의 중복 신고. 기존 클라이언트와의 호환을 위해 400 을 그대로 사용합니다."""
    status_code = 400
    code = "CONFLICT"


class StorageError(ApiError):
    """저장소(Firestore / Storage) 작업 실패. 디버깅을 위해 원본 메시지를 그대로 노출합니다."""
    status_code = 500
    code = "STORAGE_ERROR"
