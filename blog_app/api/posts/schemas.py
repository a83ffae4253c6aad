# blog_app/api/posts/schemas.py
from marshmallow import Schema, fields, validate, validates, post_load, ValidationError

from blog_app.models.post import PostStatus

class CommaSeparatedList(fields.Field):
    """
    "여행, 일상 ,," 같은 쉼표 구분 문자열을 ['여행', '일상']으로 변환하는 필드.
    이미 리스트로 전달된 경우에도 같은 방식으로 정리합니다.
    """
    def _deserialize(self, value, attr, data, **kwargs):
        if value is None:
            return []
        if isinstance(value, str):
            items = value.split(',')
        elif isinstance(value, (list, tuple)):
            if not all(isinstance(item, str) for item in value):
                raise ValidationError("문자열 목록이어야 합니다.")
            items = value
        else:
            raise ValidationError("쉼표로 구분된 문자열 또는 문자열 목록이어야 합니다.")
        return [item.strip() for item in items if item.strip()]

    def _serialize(self, value, attr, obj, **kwargs):
        return list(value or [])

# --- 재사용을 위한 중첩 스키마 ---
class AuthorSchema(Schema):
    """게시물/댓글 응답에 포함될 작성자 정보 스키마."""
    id = fields.Str(required=True)
    name = fields.Str(required=True)
    avatar_url = fields.Str(allow_none=True)

# --- API 요청/응답 스키마 ---
class PostFormSchema(Schema):
    """
    POST /api/posts, PATCH /api/posts/{post_id} 요청 본문의 유효성을 검사합니다.
    수정 요청에서는 partial=True로 로드하여 전달된 필드만 검사합니다.
    """
    title = fields.Str(required=True, validate=validate.Length(min=5, error="제목은 5자 이상이어야 합니다."))
    excerpt = fields.Str(load_default='', validate=validate.Length(max=200, error="요약은 200자를 넘을 수 없습니다."))
    content = fields.Str(load_default='')
    categories = CommaSeparatedList(load_default=list)
    tags = CommaSeparatedList(load_default=list)
    image_url = fields.Str(load_default=None, allow_none=True)
    status = fields.Str(
        load_default=PostStatus.DRAFT.value,
        validate=validate.OneOf([status.value for status in PostStatus])
    )

    @validates('image_url')
    def validate_image_url(self, value, **kwargs):
        # 빈 문자열은 "이미지 없음"으로 허용합니다.
        if value:
            validate.URL(error="올바른 URL을 입력해주세요.")(value)

    @post_load
    def empty_image_url_to_none(self, data, **kwargs):
        if 'image_url' in data and not data['image_url']:
            data['image_url'] = None
        return data

class PostResponseSchema(Schema):
    """게시글 정보 응답을 위한 최종 JSON 형식을 정의합니다."""
    id = fields.Str(dump_only=True)
    title = fields.Str(required=True)
    excerpt = fields.Str(required=True)
    content = fields.Str(required=True)
    author = fields.Nested(AuthorSchema, required=True)
    author_id = fields.Str(required=True)
    timestamp = fields.DateTime(required=True)
    categories = fields.List(fields.Str(), required=True)
    tags = fields.List(fields.Str(), required=True)
    status = fields.Enum(PostStatus, by_value=True, required=True)
    image_url = fields.Str(allow_none=True)
    comment_count = fields.Int(required=True)
    last_modified_at = fields.DateTime(allow_none=True)
