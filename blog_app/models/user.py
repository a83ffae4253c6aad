# blog_app/models/user.py
from dataclasses import dataclass
from typing import Optional, Dict, Any, Mapping

from blog_app.models.post import Author

@dataclass
class UserProfile:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 Firebase Authentication의 uid와 같습니다.
    """
    id: str
    name: str
    email: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: str = ""

    def to_author(self) -> Author:
        """게시글/댓글에 저장할 작성자 스냅샷을 만듭니다."""
        return Author(id=self.id, name=self.name, avatar_url=self.avatar_url)

    @classmethod
    def from_firestore(cls, user_id: str, data: Optional[Dict[str, Any]]) -> "UserProfile":
        data = data if isinstance(data, Mapping) else {}
        return cls(
            id=user_id,
            name=data.get("name") or "User",
            email=data.get("email"),
            avatar_url=data.get("avatarUrl") or None,
            bio=data.get("bio") or "",
        )

@dataclass
class AuthIdentity:
    """인증 제공자(Firebase Authentication)가 알려주는 사용자 정보."""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
