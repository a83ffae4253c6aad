# blog_app/models/post.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict, Any, Mapping

from blog_app.utils.datetime_utils import DateTimeUtils

UNTITLED_POST = "Untitled Post"
UNKNOWN_AUTHOR_ID = "unknown"
UNKNOWN_AUTHOR_NAME = "Unknown Author"

class PostStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"

@dataclass
class Author:
    """Post/Comment 문서 내부에 저장될 작성자 스냅샷. 작성 시점의 값이며 이후 프로필 변경은 반영되지 않습니다."""
    id: str
    name: str
    avatar_url: Optional[str] = None

    def to_firestore(self) -> Dict[str, Any]:
        data = {"id": self.id, "name": self.name}
        # Firestore 문서에는 값이 없는 필드를 저장하지 않습니다.
        if self.avatar_url:
            data["avatarUrl"] = self.avatar_url
        return data

    @classmethod
    def from_firestore(cls, data: Any, fallback_id: Optional[str], default_name: str) -> "Author":
        """저장된 스냅샷을 읽어 Author를 만듭니다. 비어 있거나 형식이 다르면 기본값을 채웁니다."""
        if not isinstance(data, Mapping):
            data = {}
        return cls(
            id=_text(data.get("id"), _text(fallback_id, UNKNOWN_AUTHOR_ID)),
            name=_text(data.get("name"), default_name),
            avatar_url=data.get("avatarUrl") or None,
        )

@dataclass
class Post:
    """
    Firestore 'posts' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 Firestore가 발급하며, 댓글은 'posts/{id}/comments' 하위 컬렉션에 저장됩니다.
    """
    id: str
    title: str
    excerpt: str
    content: str
    author: Author
    author_id: str
    timestamp: datetime
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    status: PostStatus = PostStatus.DRAFT
    image_url: Optional[str] = None
    # 비정규화된 카운터. 댓글 생성/삭제와 트랜잭션으로 묶여 있지 않습니다.
    comment_count: int = 0
    last_modified_at: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.status is PostStatus.PUBLISHED

    @classmethod
    def from_firestore(cls, post_id: str, data: Optional[Dict[str, Any]]) -> "Post":
        """
        Firestore에서 읽은 문서를 Post 객체로 변환합니다.
        누락된 필드는 기본값으로 채우고, timestamp는 형태와 관계없이 UTC datetime으로 변환합니다.
        어떤 입력에 대해서도 예외를 발생시키지 않습니다.
        """
        data = data if isinstance(data, Mapping) else {}
        author_id = _text(data.get("authorId")) or None

        status_value = data.get("status")
        status = PostStatus.DRAFT
        if status_value:
            try:
                status = PostStatus(status_value)
            except ValueError:
                logging.warning(f"Post {post_id}의 status 값 '{status_value}'이 올바르지 않습니다. draft로 처리합니다.")

        last_modified_raw = data.get("lastModifiedAt")
        comment_count = data.get("commentCount")

        return cls(
            id=post_id,
            title=_text(data.get("title"), UNTITLED_POST),
            excerpt=_text(data.get("excerpt")),
            content=_text(data.get("content")),
            author=Author.from_firestore(data.get("author"), author_id, UNKNOWN_AUTHOR_NAME),
            author_id=author_id or UNKNOWN_AUTHOR_ID,
            timestamp=DateTimeUtils.coerce_timestamp(data.get("timestamp"), post_id),
            categories=_string_list(data.get("categories")),
            tags=_string_list(data.get("tags")),
            status=status,
            image_url=data.get("imageUrl") or None,
            comment_count=comment_count if isinstance(comment_count, int) and not isinstance(comment_count, bool) else 0,
            last_modified_at=DateTimeUtils.coerce_timestamp(last_modified_raw, post_id) if last_modified_raw is not None else None,
        )


def _text(value: Any, default: str = "") -> str:
    """비어 있으면 기본값을, 문자열이 아닌 값은 문자열로 바꿔 반환합니다."""
    if not value:
        return default
    return value if isinstance(value, str) else str(value)


def _string_list(value: Any) -> List[str]:
    """리스트가 아닌 값은 빈 리스트로, 항목은 문자열로 맞춥니다."""
    if not isinstance(value, (list, tuple)):
        return []
    return [str(item) for item in value if item is not None]
