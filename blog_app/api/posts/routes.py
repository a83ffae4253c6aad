# blog_app/api/posts/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, Response, g
from marshmallow import ValidationError

from blog_app.api.posts.schemas import PostFormSchema, PostResponseSchema
from blog_app.core.security import session_required, current_session

posts_bp = Blueprint('posts_bp', __name__)

# --- 조회 ---
@posts_bp.route('', methods=['GET'])
def get_published_posts():
    """메인 목록. 발행된 게시글을 최신순으로 반환합니다."""
    post_service = current_app.services['posts']
    posts = post_service.get_published_posts()
    return jsonify({"posts": PostResponseSchema(many=True).dump(posts)}), 200


@posts_bp.route('/all', methods=['GET'])
@session_required()
def get_all_posts():
    """
    전체 게시글 목록. 다른 사용자의 초안은 노출하지 않으므로,
    발행된 게시글과 로그인한 사용자 본인의 초안만 반환합니다.
    """
    post_service = current_app.services['posts']
    user_id = g.session.user_id
    posts = [
        post for post in post_service.get_all_posts()
        if post.is_published or post_service.is_owner(post, user_id)
    ]
    return jsonify({"posts": PostResponseSchema(many=True).dump(posts)}), 200


@posts_bp.route('/<string:post_id>', methods=['GET'])
@session_required(optional=True)
def get_post(post_id: str):
    """게시글 상세. 초안은 작성자 본인에게만 보입니다."""
    post_service = current_app.services['posts']
    post = post_service.get_post_by_id(post_id)
    if not post or (not post.is_published and not post_service.is_owner(post, current_session().user_id)):
        return jsonify({"error_code": "POST_NOT_FOUND", "message": "게시물을 찾을 수 없거나 볼 수 있는 권한이 없습니다."}), 404
    return jsonify(PostResponseSchema().dump(post)), 200


# --- 작성/수정/삭제 ---
@posts_bp.route('', methods=['POST'])
@session_required()
def create_post():
    """
    새 게시글을 작성합니다.
    - status가 'draft'이면 초안으로, 'published'이면 바로 발행됩니다.
    - 성공 시, 생성된 게시글 정보를 201 Created 상태 코드와 함께 반환합니다.
    """
    post_service = current_app.services['posts']
    try:
        fields = PostFormSchema().load(request.get_json() or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    new_post = post_service.create_post(fields, g.session.user)
    return jsonify(PostResponseSchema().dump(new_post)), 201


@posts_bp.route('/<string:post_id>', methods=['PATCH'])
@session_required()
def update_post(post_id: str):
    """게시글을 부분 수정합니다. (작성자 본인만 가능) 초안 발행도 status 수정으로 처리합니다."""
    post_service = current_app.services['posts']
    try:
        fields = PostFormSchema(partial=True).load(request.get_json() or {})
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    post = post_service.get_post_by_id(post_id)
    if not post:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": "게시물을 찾을 수 없습니다."}), 404
    if not post_service.is_owner(post, g.session.user_id):
        return jsonify({"error_code": "FORBIDDEN", "message": "게시물을 수정할 권한이 없습니다."}), 403

    updated_post = post_service.update_post(post_id, fields)
    if not updated_post:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": "게시물을 찾을 수 없습니다."}), 404
    return jsonify(PostResponseSchema().dump(updated_post)), 200


@posts_bp.route('/<string:post_id>', methods=['DELETE'])
@session_required()
def delete_post(post_id: str):
    """게시글과 모든 댓글을 삭제합니다. (작성자 본인만 가능)"""
    post_service = current_app.services['posts']
    post = post_service.get_post_by_id(post_id)
    if not post:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": "게시물을 찾을 수 없습니다."}), 404
    if not post_service.is_owner(post, g.session.user_id):
        return jsonify({"error_code": "FORBIDDEN", "message": "게시물을 삭제할 권한이 없습니다."}), 403

    post_service.delete_post(post_id)
    logging.info(f"사용자 {g.session.user_id}가 게시글 {post_id}를 삭제했습니다.")
    return Response(status=204)
