# blog_app/api/users/routes.py
from flask import Blueprint, request, jsonify, current_app, g
from marshmallow import ValidationError

from blog_app.api.users.schemas import UserProfileSchema, UserPublicResponseSchema, ProfileUpdateSchema
from blog_app.core.exceptions import AuthenticationFailed
from blog_app.core.security import session_required

users_bp = Blueprint('users_bp', __name__)

@users_bp.route('/me', methods=['GET'])
@session_required()
def get_my_profile():
    """현재 로그인된 사용자의 프로필을 조회합니다."""
    return jsonify(UserProfileSchema().dump(g.session.user)), 200


@users_bp.route('/me', methods=['PATCH'])
@session_required()
def update_my_profile():
    """
    현재 로그인된 사용자의 프로필(이름, 소개, 아바타, 표시용 이메일)을 수정합니다.
    변경된 항목만 반영됩니다.
    """
    auth_service = current_app.services['auth']
    try:
        data = ProfileUpdateSchema().load(request.get_json() or {})
        updated_user = auth_service.update_profile(g.session, **data)
        return jsonify(UserProfileSchema().dump(updated_user)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except AuthenticationFailed as e:
        return jsonify({"error_code": "PROFILE_UPDATE_FAILED", "message": e.message}), 400


@users_bp.route('/<string:user_id>', methods=['GET'])
def get_user_profile(user_id: str):
    """특정 사용자의 공개 프로필 정보(게시물 수 포함)를 조회합니다."""
    user_service = current_app.services['users']
    user_profile = user_service.get_user_profile(user_id)
    if not user_profile:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": "사용자를 찾을 수 없습니다."}), 404
    return jsonify(UserPublicResponseSchema().dump(user_profile)), 200
