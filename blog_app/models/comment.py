# blog_app/models/comment.py
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, Mapping

from blog_app.models.post import Author, _text
from blog_app.utils.datetime_utils import DateTimeUtils

ANONYMOUS_COMMENTER = "Anonymous"

@dataclass
class Comment:
    """
    Firestore 'posts/{post_id}/comments' 하위 컬렉션의 문서 구조를 정의하는 데이터클래스.
    댓글은 작성 후 수정되지 않습니다.
    """
    id: str
    post_id: str
    user: Author
    content: str
    timestamp: datetime

    @classmethod
    def from_firestore(cls, comment_id: str, post_id: str, data: Optional[Dict[str, Any]]) -> "Comment":
        """저장된 댓글 문서를 Comment 객체로 변환합니다. 누락된 필드는 기본값으로 채웁니다."""
        data = data if isinstance(data, Mapping) else {}
        return cls(
            id=comment_id,
            post_id=post_id,
            user=Author.from_firestore(data.get("user"), data.get("userId"), ANONYMOUS_COMMENTER),
            content=_text(data.get("content")),
            timestamp=DateTimeUtils.coerce_timestamp(data.get("timestamp"), comment_id),
        )
