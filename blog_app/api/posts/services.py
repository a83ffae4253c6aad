# blog_app/api/posts/services.py
import logging
from typing import Optional, Dict, Any, List, Union

from firebase_admin import firestore
from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud.firestore_v1.base_query import FieldFilter

from blog_app.core.exceptions import BackendUnavailable
from blog_app.models.post import Post, PostStatus
from blog_app.models.user import UserProfile
from blog_app.utils.datetime_utils import DateTimeUtils

# 수정 요청에서 허용하는 필드 (요청 키 -> Firestore 필드명)
UPDATABLE_FIELDS = {
    'title': 'title',
    'excerpt': 'excerpt',
    'content': 'content',
    'categories': 'categories',
    'tags': 'tags',
    'status': 'status',
    'image_url': 'imageUrl',
}

class PostService:
    """
    게시글 관련 비즈니스 로직을 담당하는 서비스 클래스.
    Firestore 'posts' 컬렉션과의 모든 상호작용을 담당하며, 읽은 문서는 항상 Post.from_firestore로 정규화합니다.
    권한 확인(작성자 본인 여부)은 호출하는 쪽의 책임입니다.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection('posts')

    def _comments_ref(self, post_id: str):
        return self.posts_ref.document(post_id).collection('comments')

    def _to_posts(self, docs) -> List[Post]:
        """문서 목록을 정규화하고 최신순으로 정렬합니다."""
        posts = [Post.from_firestore(doc.id, doc.to_dict()) for doc in docs]
        return sorted(posts, key=lambda post: post.timestamp, reverse=True)

    # --- 조회 ---
    def get_all_posts(self) -> List[Post]:
        """모든 게시글을 최신순으로 조회합니다."""
        try:
            query = self.posts_ref.order_by('timestamp', direction=firestore.Query.DESCENDING)
            return self._to_posts(query.stream())
        except GoogleAPIError as e:
            logging.error(f"전체 게시글 조회 실패: {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

    def get_published_posts(self) -> List[Post]:
        """발행된 게시글만 최신순으로 조회합니다."""
        try:
            query = (self.posts_ref
                     .where(filter=FieldFilter('status', '==', PostStatus.PUBLISHED.value))
                     .order_by('timestamp', direction=firestore.Query.DESCENDING))
            return self._to_posts(query.stream())
        except GoogleAPIError as e:
            logging.error(f"발행 게시글 조회 실패: {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

    def get_posts_by_author_and_status(self, author_id: str, status: Union[PostStatus, str]) -> List[Post]:
        """특정 작성자의 게시글을 상태(draft/published)별로 최신순 조회합니다."""
        status = PostStatus(status)
        try:
            query = (self.posts_ref
                     .where(filter=FieldFilter('authorId', '==', author_id))
                     .where(filter=FieldFilter('status', '==', status.value))
                     .order_by('timestamp', direction=firestore.Query.DESCENDING))
            posts = self._to_posts(query.stream())
        except GoogleAPIError as e:
            logging.error(f"작성자 게시글 조회 실패 (author_id: {author_id}, status: {status.value}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        # 정규화 결과 기준으로 한 번 더 걸러, 다른 작성자의 초안이 섞이지 않도록 합니다.
        return [post for post in posts if post.author_id == author_id and post.status is status]

    def get_post_by_id(self, post_id: str) -> Optional[Post]:
        """게시글 하나를 조회합니다. 존재하지 않으면 None을 반환합니다."""
        try:
            doc = self.posts_ref.document(post_id).get()
        except GoogleAPIError as e:
            logging.error(f"게시글 조회 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        if not doc.exists:
            logging.warning(f"게시글을 찾을 수 없습니다 (post_id: {post_id}).")
            return None
        return Post.from_firestore(doc.id, doc.to_dict())

    # --- 생성/수정/삭제 ---
    def create_post(self, fields: Dict[str, Any], author: UserProfile) -> Post:
        """
        새 게시글을 저장합니다.
        - 작성자 스냅샷과 authorId는 로그인한 사용자 정보로 채웁니다.
        - 작성 시간은 클라이언트 값을 쓰지 않고 Firestore 서버 시간으로 기록합니다.
        """
        status = PostStatus(fields.get('status') or PostStatus.DRAFT)
        snapshot = author.to_author()
        payload = {
            'title': fields.get('title', ''),
            'excerpt': fields.get('excerpt') or '',
            'content': fields.get('content') or '',
            'author': snapshot.to_firestore(),
            'authorId': author.id,
            'categories': list(fields.get('categories') or []),
            'tags': list(fields.get('tags') or []),
            'status': status.value,
            'timestamp': firestore.SERVER_TIMESTAMP,
            'commentCount': 0,
        }
        if fields.get('image_url'):
            payload['imageUrl'] = fields['image_url']

        try:
            doc_ref = self.posts_ref.document()
            doc_ref.set(payload)
            created_doc = doc_ref.get()
        except GoogleAPIError as e:
            logging.error(f"게시글 생성 실패 (author_id: {author.id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

        logging.info(f"게시글 생성 완료 (post_id: {doc_ref.id}, status: {status.value})")
        if created_doc.exists:
            return Post.from_firestore(created_doc.id, created_doc.to_dict())

        # 저장 직후 재조회가 비어 있는 경우, 저장한 값으로 응답을 구성합니다.
        return Post(
            id=doc_ref.id,
            title=payload['title'],
            excerpt=payload['excerpt'],
            content=payload['content'],
            author=snapshot,
            author_id=author.id,
            timestamp=DateTimeUtils.now(),
            categories=payload['categories'],
            tags=payload['tags'],
            status=status,
            image_url=payload.get('imageUrl'),
        )

    def update_post(self, post_id: str, fields: Dict[str, Any]) -> Optional[Post]:
        """
        전달된 필드만 부분 수정합니다. 전달되지 않은 필드는 그대로 유지됩니다.
        image_url에 None을 전달하면 이미지 필드를 삭제합니다.
        수정 시각(lastModifiedAt)은 항상 기록합니다. 게시글이 없으면 None을 반환합니다.
        """
        update_data: Dict[str, Any] = {}
        for key, store_key in UPDATABLE_FIELDS.items():
            if key not in fields:
                continue
            value = fields[key]
            if key == 'image_url' and not value:
                update_data[store_key] = firestore.DELETE_FIELD
            elif value is None:
                continue
            elif key == 'status':
                update_data[store_key] = PostStatus(value).value
            else:
                update_data[store_key] = value
        update_data['lastModifiedAt'] = firestore.SERVER_TIMESTAMP

        post_ref = self.posts_ref.document(post_id)
        try:
            if not post_ref.get().exists:
                logging.warning(f"수정할 게시글이 없습니다 (post_id: {post_id}).")
                return None
            post_ref.update(update_data)
            updated_doc = post_ref.get()
        except NotFound:
            # 조회와 수정 사이에 삭제된 경우
            logging.warning(f"수정 중 게시글이 삭제되었습니다 (post_id: {post_id}).")
            return None
        except GoogleAPIError as e:
            logging.error(f"게시글 수정 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

        if not updated_doc.exists:
            return None
        return Post.from_firestore(updated_doc.id, updated_doc.to_dict())

    def delete_post(self, post_id: str) -> None:
        """
        게시글과 하위 댓글을 하나의 WriteBatch로 함께 삭제합니다.
        커밋이 실패하면 어떤 문서도 삭제되지 않습니다.
        """
        post_ref = self.posts_ref.document(post_id)
        try:
            batch = self.db.batch()
            comment_count = 0
            for comment_doc in self._comments_ref(post_id).stream():
                batch.delete(comment_doc.reference)
                comment_count += 1
            batch.delete(post_ref)
            batch.commit()
        except GoogleAPIError as e:
            logging.error(f"게시글 삭제 실패 (post_id: {post_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        logging.info(f"게시글 {post_id}와 댓글 {comment_count}개를 삭제했습니다.")

    @staticmethod
    def is_owner(post: Post, user_id: Optional[str]) -> bool:
        """게시글 작성자 본인인지 확인합니다."""
        return bool(user_id) and post.author_id == user_id

