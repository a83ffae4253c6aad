# blog_app/api/users/services.py
from typing import Optional, Dict, Any

from blog_app.api.auth.services import AuthService
from blog_app.api.posts.services import PostService
from blog_app.models.post import PostStatus

class UserService:
    """공개 프로필 조회를 담당하는 서비스. 프로필 문서는 AuthService, 게시글 수는 PostService에서 가져옵니다."""
    def __init__(self, auth_service: AuthService, post_service: PostService):
        self.auth_service = auth_service
        self.post_service = post_service

    def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """특정 사용자의 공개 프로필 정보(발행한 게시글 수 포함)를 조회합니다."""
        profile = self.auth_service.get_profile(user_id)
        if profile is None:
            return None
        published = self.post_service.get_posts_by_author_and_status(user_id, PostStatus.PUBLISHED)
        return {
            "id": profile.id,
            "name": profile.name,
            "avatar_url": profile.avatar_url,
            "bio": profile.bio,
            "post_count": len(published),
        }
