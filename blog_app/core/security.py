# blog_app/core/security.py
from functools import wraps
from flask import jsonify, g, current_app
from flask_jwt_extended import verify_jwt_in_request, get_jwt_identity

from blog_app.core.session import SessionContext


def session_required(optional: bool = False):
    """
    Access Token을 검증하고 요청 범위의 SessionContext를 만들어 g.session에 저장하는 데코레이터.
    - optional=False: 로그인하지 않았으면 401을 반환합니다.
    - optional=True: 토큰이 없으면 ANONYMOUS 세션으로 계속 진행합니다.
    """
    def wrapper(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            verify_jwt_in_request(optional=optional)
            auth_service = current_app.services['auth']

            session = SessionContext()
            g.session = session

            identity = None
            user_id = get_jwt_identity()
            if user_id:
                identity = auth_service.provider.get_identity(user_id)
                if identity is None and not optional:
                    # 토큰은 유효하지만 인증 제공자에서 계정이 삭제된 경우
                    return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자 계정을 찾을 수 없습니다."}), 401

            auth_service.on_auth_state_changed(session, identity)
            if not optional and not session.is_authenticated:
                return jsonify({"error_code": "UNAUTHORIZED", "message": "로그인이 필요합니다."}), 401
            return f(*args, **kwargs)

        return decorated_function

    return wrapper


def current_session() -> SessionContext:
    """현재 요청의 세션을 반환합니다. session_required를 거치지 않은 요청은 ANONYMOUS 세션을 받습니다."""
    session = g.get('session')
    if session is None:
        session = SessionContext()
        session.mark_anonymous()
        g.session = session
    return session
