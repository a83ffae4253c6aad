# blog_app/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app, g
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    get_jwt
)
from marshmallow import ValidationError

from blog_app.api.auth.schemas import SignupSchema, LoginSchema, LogoutRequestSchema
from blog_app.api.users.schemas import UserProfileSchema
from blog_app.core.exceptions import AuthenticationFailed
from blog_app.core.security import session_required
from blog_app.core.session import SessionContext

auth_bp = Blueprint('auth_bp', __name__)


def _start_session(identity):
    """인증 제공자가 확인한 사용자로 세션을 만들고 토큰을 발급합니다."""
    auth_service = current_app.services['auth']
    session = SessionContext()
    g.session = session
    auth_service.on_auth_state_changed(session, identity)
    user = session.require_user()
    return {
        "access_token": create_access_token(identity=user.id),
        "refresh_token": create_refresh_token(identity=user.id),
        "user": UserProfileSchema().dump(user)
    }


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """이메일/비밀번호 회원가입 후 바로 로그인 상태의 토큰을 반환합니다."""
    auth_service = current_app.services['auth']
    try:
        data = SignupSchema().load(request.get_json() or {})
        identity = auth_service.signup(data['name'], data['email'], data['password'])
        return jsonify(_start_session(identity)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except AuthenticationFailed as e:
        return jsonify({"error_code": "SIGNUP_FAILED", "message": e.message}), 400


@auth_bp.route('/login', methods=['POST'])
def login():
    """이메일/비밀번호 로그인."""
    auth_service = current_app.services['auth']
    try:
        data = LoginSchema().load(request.get_json() or {})
        identity = auth_service.login(data['email'], data['password'])
        return jsonify(_start_session(identity)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except AuthenticationFailed as e:
        return jsonify({"error_code": "INVALID_CREDENTIALS", "message": e.message}), 401


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True) # Refresh Token만 허용하는 데코레이터
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    current_user_id = get_jwt_identity()
    new_access_token = create_access_token(identity=current_user_id)
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
@session_required()
def logout():
    """로그아웃. 현재 Access Token과 (전달된 경우) Refresh Token을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    try:
        data = LogoutRequestSchema().load(request.get_json(silent=True) or {})
        access_payload = get_jwt()

        refresh_jti = refresh_exp = None
        if data['refresh_token']:
            secret_key = current_app.config['JWT_SECRET_KEY']
            algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')
            # 만료된 토큰도 무효화할 수 있도록 만료 검사는 하지 않습니다.
            decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
            if decoded_refresh.get('sub') != access_payload.get('sub'):
                return jsonify({"error_code": "INVALID_TOKEN", "message": "다른 사용자의 토큰입니다."}), 422
            refresh_jti = decoded_refresh['jti']
            refresh_exp = decoded_refresh['exp']

        auth_service.logout(g.session, access_payload['jti'], access_payload['exp'], refresh_jti, refresh_exp)
        return jsonify({"message": "로그아웃 되었습니다."}), 200

    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except jwt.PyJWTError as e:
        logging.error(f"JWT 해독 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "유효하지 않은 토큰입니다."}), 422
