# linkcamp/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from google.api_core.exceptions import GoogleAPICallError
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정 및 공용 객체
from linkcamp.core.config import config_by_name
from linkcamp.core.exceptions import ApiError, StorageError
from linkcamp.core.socket_server import socketio

# - API 블루프린트
from linkcamp.api.auth.routes import auth_bp
from linkcamp.api.users.routes import users_bp
from linkcamp.api.feed.routes import feed_bp
from linkcamp.api.posts.routes import posts_bp
from linkcamp.api.votes.routes import votes_bp
from linkcamp.api.comments.routes import comments_bp
from linkcamp.api.reports.routes import reports_bp

# - 실시간 이벤트 핸들러 (임포트 시 socketio 에 등록됨)
from linkcamp.api.realtime import events as realtime_events  # noqa: F401

# - 서비스 모듈
from linkcamp.services.content_store import ContentStore
from linkcamp.services.identity_service import IdentityVerifier
from linkcamp.services.realtime_service import FeedBroadcaster
from linkcamp.services.storage_service import StorageService
from linkcamp.api.users.services import ProfileService
from linkcamp.api.feed.services import FeedService
from linkcamp.api.posts.services import PostService
from linkcamp.api.votes.services import VoteService
from linkcamp.api.comments.services import CommentService
from linkcamp.api.reports.services import ModerationService


def create_app(config_name=None, db=None, storage=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param config_name: 'development' | 'testing' | 'production' (기본값: FLASK_ENV)
    :param db: Firestore 클라이언트. 없으면 Firebase Admin SDK 로 생성합니다.
    :param storage: StorageService 대체 객체. 없으면 Firebase Storage 버킷을 사용합니다.
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    JWTManager(app)
    CORS(app, origins=app.config['CORS_ALLOWED_ORIGINS'], supports_credentials=True)

    # Firestore/Storage 대체 객체가 모두 주입되고 JWT 인증 모드이면 Firebase 앱이 필요 없습니다.
    if db is None or storage is None or app.config['AUTH_PROVIDER'] == 'firebase':
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred, {
                'storageBucket': app.config['FIREBASE_STORAGE_BUCKET']
            })
        db = db or firestore.client()

    socketio.init_app(app, cors_allowed_origins=app.config['CORS_ALLOWED_ORIGINS'])

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # 5-1. 다른 서비스의 기반이 되는 공용/핵심 서비스 먼저 생성
    identity_instance = IdentityVerifier()
    identity_instance.init_app(app)
    app.services['identity'] = identity_instance

    if storage is None:
        try:
            storage = StorageService()
            storage.init_app(app)
            logging.info("Storage service initialized successfully")
        except Exception as e:
            logging.error(f"Failed to initialize storage service: {e}")
            raise
    app.services['storage'] = storage

    broadcaster = FeedBroadcaster()
    broadcaster.init_app(app, socketio)
    app.services['realtime'] = broadcaster

    content_store = ContentStore(db)
    app.services['content'] = content_store

    # 5-2. 다른 서비스를 주입받아야 하는 도메인 서비스 생성
    app.services['users'] = ProfileService(db, storage_service=storage, broadcaster=broadcaster)
    app.services['feed'] = FeedService(content_store, app.services['users'])
    app.services['posts'] = PostService(
        content_store,
        feed_service=app.services['feed'],
        storage_service=storage,
        broadcaster=broadcaster,
    )
    app.services['votes'] = VoteService(content_store, broadcaster=broadcaster)
    app.services['comments'] = CommentService(content_store, app.services['users'], broadcaster=broadcaster)
    app.services['moderation'] = ModerationService(
        content_store,
        post_service=app.services['posts'],
        comment_service=app.services['comments'],
        profile_service=app.services['users'],
    )

    # =====================================================================================
    # 6. 블루프린트 등록 (기존 클라이언트 호환을 위해 루트 경로 사용)
    # =====================================================================================
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(feed_bp)
    app.register_blueprint(posts_bp)
    app.register_blueprint(votes_bp)
    app.register_blueprint(comments_bp)
    app.register_blueprint(reports_bp)

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"code": "VALIDATION_ERROR", "message": "Invalid input", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(err):
        return jsonify({"code": "VALIDATION_ERROR", "message": "Image too large (max 8MB)"}), 400

    @app.errorhandler(GoogleAPICallError)
    def handle_storage_error(err):
        logging.error(f"Firestore/Storage 호출 실패: {err}", exc_info=True)
        error = StorageError(str(err))
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        return jsonify({"code": err.name.upper().replace(' ', '_'), "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"code": "INTERNAL_SERVER_ERROR", "message": "Server error", "error": str(err)}
        return jsonify(response), 500

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
