# blog_app/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.

# 아바타를 지정하지 않았거나 지운 경우 사용하는 기본 이미지입니다.
DEFAULT_AVATAR_URL = "https://upload.wikimedia.org/wikipedia/commons/7/7c/Profile_avatar_placeholder_large.png?20150327203541"

class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # JWT 토큰 서명에 사용하는 키. 토큰의 위변조를 방지합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    # Firebase 웹 API 키. 이메일/비밀번호 로그인(Identity Toolkit REST) 호출에 필요합니다.
    FIREBASE_WEB_API_KEY = os.getenv('FIREBASE_WEB_API_KEY')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    DEFAULT_AVATAR_URL = os.getenv('DEFAULT_AVATAR_URL', DEFAULT_AVATAR_URL)
    # 댓글 SSE 스트림에서 변경이 없을 때 keep-alive 주석을 보내는 간격(초)
    COMMENT_STREAM_KEEPALIVE_SECONDS = int(os.getenv('COMMENT_STREAM_KEEPALIVE_SECONDS', '15'))

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    # 테스트에서는 .env 없이도 토큰을 발급할 수 있어야 합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'test-secret-key-with-enough-length-for-hs256')

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')

# FLASK_ENV 값에 따라 create_app에서 설정 클래스를 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
