# linkcamp/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.


def _env_flag(name: str, default: str = 'true') -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # 레거시(JWT) 인증 모드에서 토큰 서명/검증에 사용되는 키입니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    # 'firebase': Firebase ID 토큰 검증, 'jwt': 서버가 서명한 HS256 토큰 검증
    AUTH_PROVIDER = os.getenv('AUTH_PROVIDER', 'firebase')

    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')

    # HTTP CORS 와 Socket.IO 핸드셰이크에서 함께 사용하는 허용 Origin 목록
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ALLOWED_ORIGINS', 'http://localhost:8081,https://linkcamp.vercel.app').split(',')
        if origin.strip()
    ]

    # 실시간 브로드캐스트 기능 플래그. False 이면 모든 publish 가 무시됩니다.
    REALTIME_ENABLED = _env_flag('REALTIME_ENABLED')

    # 업로드 이미지 최대 크기 (8MB)
    MAX_CONTENT_LENGTH = 8 * 1024 * 1024

    FEED_DEFAULT_LIMIT = 20
    FEED_MAX_LIMIT = 50
    MODERATION_PAGE_LIMIT = 20


class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH', Config.FIREBASE_CREDENTIALS_PATH)


class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    # 테스트는 Firebase 없이 서버 서명 JWT 로 인증합니다.
    AUTH_PROVIDER = 'jwt'
    JWT_SECRET_KEY = os.getenv('TEST_JWT_SECRET_KEY', 'linkcamp-test-secret-key-with-enough-length')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    REALTIME_ENABLED = True


class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False


# FLASK_ENV 값에 따라 create_app 에서 설정 클래스를 선택합니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
