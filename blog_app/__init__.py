# blog_app/__init__.py

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
from flask import Flask, jsonify, g
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials

# - 설정 및 공용 예외
from blog_app.core.config import config_by_name
from blog_app.core.exceptions import BackendUnavailable, AuthenticationFailed

# - API 블루프린트
from blog_app.api.auth.routes import auth_bp
from blog_app.api.users.routes import users_bp
from blog_app.api.posts.routes import posts_bp
from blog_app.api.comments.routes import comments_bp
from blog_app.api.mypage.routes import mypage_bp
from blog_app.api.search.routes import search_bp

# - 서비스 모듈
from blog_app.api.auth.services import AuthService
from blog_app.api.users.services import UserService
from blog_app.api.posts.services import PostService
from blog_app.api.comments.services import CommentService


def _init_firebase(app: Flask):
    """서비스 계정 키로 Firebase Admin SDK를 초기화합니다. (이미 초기화되었다면 건너뜀)"""
    if firebase_admin._apps:
        return
    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    if not cred_path or not os.path.exists(cred_path):
        raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
    cred = credentials.Certificate(cred_path)
    options = {}
    if app.config.get('FIREBASE_PROJECT_ID'):
        options['projectId'] = app.config['FIREBASE_PROJECT_ID']
    firebase_admin.initialize_app(cred, options)


def create_app(config_name=None, db=None, auth_provider=None):
    """
    Flask 애플리케이션 팩토리 함수.
    - db / auth_provider를 주입하면 Firebase 초기화를 건너뛰고 주입된 객체를 사용합니다. (테스트용)
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
    jwt_manager = JWTManager(app)

    if db is None or auth_provider is None:
        _init_firebase(app)

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # - 인증 서비스 (앱 설정 필요)
    auth_service = AuthService()
    auth_service.init_app(app, db=db, provider=auth_provider)
    app.services['auth'] = auth_service

    # - 콘텐츠 도메인
    app.services['posts'] = PostService(db=db)
    app.services['comments'] = CommentService(db=db)
    app.services['users'] = UserService(
        auth_service=app.services['auth'],
        post_service=app.services['posts']
    )

    @jwt_manager.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(posts_bp, url_prefix='/api/posts')
    # 댓글 라우트는 '/posts/<post_id>/comments' 형태로 정의되어 있습니다.
    app.register_blueprint(comments_bp, url_prefix='/api')
    app.register_blueprint(mypage_bp, url_prefix='/api/mypage')
    app.register_blueprint(search_bp, url_prefix='/api/search')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(BackendUnavailable)
    def handle_backend_unavailable(err):
        response = {"error_code": "BACKEND_UNAVAILABLE", "message": err.message}
        return jsonify(response), 503

    @app.errorhandler(AuthenticationFailed)
    def handle_authentication_failed(err):
        response = {"error_code": "AUTHENTICATION_FAILED", "message": err.message}
        return jsonify(response), 401

    @app.errorhandler(PermissionError)
    def handle_permission_error(err):
        response = {"error_code": "FORBIDDEN", "message": str(err)}
        return jsonify(response), 403

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 404/405 같은 HTTP 예외는 그대로 응답합니다.
        if isinstance(err, HTTPException):
            return err
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "서버 내부에서 예상치 못한 오류가 발생했습니다."}
        return jsonify(response), 500

    @app.teardown_request
    def teardown_session(exc):
        # 요청이 끝나면 요청 범위의 세션을 정리합니다.
        session = g.pop('session', None)
        if session is not None:
            session.teardown()

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
