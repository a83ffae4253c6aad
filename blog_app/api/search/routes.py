# blog_app/api/search/routes.py
from flask import Blueprint, request, jsonify, current_app

from blog_app.api.posts.schemas import PostResponseSchema
from blog_app.api.search.services import search_posts

search_bp = Blueprint('search_bp', __name__)

@search_bp.route('', methods=['GET'])
def search():
    """발행된 게시글 중 검색어(q)와 일치하는 게시글을 반환합니다."""
    query = request.args.get('q', '', type=str)
    if not query.strip():
        return jsonify({"query": query, "posts": []}), 200

    post_service = current_app.services['posts']
    results = search_posts(post_service.get_published_posts(), query)
    return jsonify({"query": query, "posts": PostResponseSchema(many=True).dump(results)}), 200
