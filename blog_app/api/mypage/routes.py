# blog_app/api/mypage/routes.py
from flask import Blueprint, jsonify, current_app, g

from blog_app.api.posts.schemas import PostResponseSchema
from blog_app.core.security import session_required
from blog_app.models.post import PostStatus

mypage_bp = Blueprint('mypage_bp', __name__)


@mypage_bp.route('/posts', methods=['GET'])
@session_required()
def get_my_posts():
    """로그인된 사용자의 게시글을 초안과 발행글로 나누어 반환합니다. (각각 최신순)"""
    post_service = current_app.services['posts']
    user_id = g.session.user_id
    drafts = post_service.get_posts_by_author_and_status(user_id, PostStatus.DRAFT)
    published = post_service.get_posts_by_author_and_status(user_id, PostStatus.PUBLISHED)

    schema = PostResponseSchema(many=True)
    return jsonify({"drafts": schema.dump(drafts), "published": schema.dump(published)}), 200
