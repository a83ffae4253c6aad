# blog_app/api/search/services.py
from typing import Iterable, List

from blog_app.models.post import Post


def _searchable_texts(post: Post) -> List[str]:
    return [post.title, post.excerpt, post.author.name, *post.categories, *post.tags]


def search_posts(posts: Iterable[Post], query: str) -> List[Post]:
    """
    이미 조회한 게시글 목록에서 검색어가 포함된 게시글만 골라냅니다.
    - 제목, 요약, 작성자 이름, 카테고리, 태그를 대소문자 구분 없이 부분 일치로 비교합니다.
    - 검색어가 비어 있거나 공백뿐이면 빈 목록을 반환합니다.
    - 입력 순서를 그대로 유지합니다.
    """
    needle = (query or '').strip().lower()
    if not needle:
        return []
    return [
        post for post in posts
        if any(needle in (text or '').lower() for text in _searchable_texts(post))
    ]
