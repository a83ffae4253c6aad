# blog_app/api/comments/services.py

import logging
from typing import Optional, List, Callable
from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPIError

from blog_app.core.exceptions import BackendUnavailable
from blog_app.models.comment import Comment
from blog_app.models.post import PostStatus
from blog_app.models.user import UserProfile


class CommentSubscription:
    """
    댓글 실시간 구독 핸들.
    구독한 쪽이 더 이상 필요하지 않을 때 unsubscribe()를 호출해 리스너를 해제해야 합니다.
    """
    def __init__(self, post_id: str, watch):
        self.post_id = post_id
        self._watch = watch

    @property
    def active(self) -> bool:
        return self._watch is not None

    def unsubscribe(self) -> None:
        """리스너를 해제합니다. 여러 번 호출해도 안전합니다."""
        if self._watch is None:
            return
        self._watch.unsubscribe()
        self._watch = None
        logging.info(f"댓글 구독 해제 (post_id: {self.post_id})")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()


class CommentService:
    """
    댓글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    - 댓글은 'posts/{post_id}/comments' 하위 컬렉션에 저장되며, 작성 후 수정하지 않습니다.
    - 게시글의 commentCount는 여기서 갱신하지 않습니다.
    """
    def __init__(self, db=None):
        """서비스 초기화 시 Firestore 클라이언트 및 컬렉션 참조를 설정합니다."""
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection('posts')

    def _comments_ref(self, post_id: str):
        return self.posts_ref.document(post_id).collection('comments')

    @staticmethod
    def _to_comments(post_id: str, docs) -> List[Comment]:
        """문서 목록을 정규화하고 최신순으로 정렬합니다."""
        comments = [Comment.from_firestore(doc.id, post_id, doc.to_dict()) for doc in docs]
        return sorted(comments, key=lambda comment: comment.timestamp, reverse=True)

    def get_comments(self, post_id: str) -> List[Comment]:
        """특정 게시글의 댓글 목록을 최신순으로 조회합니다."""
        try:
            query = self._comments_ref(post_id).order_by('timestamp', direction=firestore.Query.DESCENDING)
            return self._to_comments(post_id, query.stream())
        except GoogleAPIError as e:
            logging.error(f"댓글 목록 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

    def create_comment(self, post_id: str, content: str, user: UserProfile) -> Comment:
        """발행된 게시글에 새 댓글을 작성합니다. 게시글이 없거나 초안이면 ValueError를 발생시킵니다."""
        try:
            post_doc = self.posts_ref.document(post_id).get()
            if not post_doc.exists:
                raise ValueError("댓글을 작성할 게시물이 존재하지 않습니다.")
            if (post_doc.to_dict() or {}).get('status') != PostStatus.PUBLISHED.value:
                raise ValueError("발행되지 않은 게시물에는 댓글을 작성할 수 없습니다.")

            comment_payload = {
                'userId': user.id,
                'user': user.to_author().to_firestore(),
                'content': content.strip(),
                'timestamp': firestore.SERVER_TIMESTAMP,
            }
            comment_ref = self._comments_ref(post_id).document()
            comment_ref.set(comment_payload)
            created_doc = comment_ref.get()
        except GoogleAPIError as e:
            logging.error(f"댓글 생성 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

        logging.info(f"댓글 생성 완료 (post_id: {post_id}, comment_id: {comment_ref.id})")
        return Comment.from_firestore(comment_ref.id, post_id, created_doc.to_dict() if created_doc.exists else comment_payload)

    def delete_comment(self, post_id: str, comment_id: str, user_id: str) -> None:
        """댓글을 삭제합니다. (작성자 본인만 가능)"""
        comment_ref = self._comments_ref(post_id).document(comment_id)
        try:
            comment_doc = comment_ref.get()
            if not comment_doc.exists:
                raise ValueError("삭제할 댓글이 없습니다.")
            comment = Comment.from_firestore(comment_doc.id, post_id, comment_doc.to_dict())
            if comment.user.id != user_id:
                raise PermissionError("댓글을 삭제할 권한이 없습니다.")
            comment_ref.delete()
        except GoogleAPIError as e:
            logging.error(f"댓글 삭제 실패 (comment_id: {comment_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

    def subscribe(self, post_id: str, on_change: Callable[[List[Comment]], None],
                  on_error: Optional[Callable[[Exception], None]] = None) -> CommentSubscription:
        """
        댓글 목록을 실시간으로 구독합니다.
        댓글이 추가/삭제될 때마다 전체 목록을 다시 계산해(최신순) on_change로 전달합니다.
        반환된 핸들의 unsubscribe()로 구독을 해제합니다.
        """
        query = self._comments_ref(post_id).order_by('timestamp', direction=firestore.Query.DESCENDING)

        def _on_snapshot(docs, changes, read_time):
            try:
                on_change(self._to_comments(post_id, docs))
            except Exception as e:
                logging.error(f"댓글 실시간 갱신 처리 실패 (post_id: {post_id}): {e}", exc_info=True)
                if on_error:
                    on_error(e)

        try:
            watch = query.on_snapshot(_on_snapshot)
        except GoogleAPIError as e:
            logging.error(f"댓글 구독 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        logging.info(f"댓글 구독 시작 (post_id: {post_id})")
        return CommentSubscription(post_id, watch)
