# blog_app/api/comments/schemas.py
from marshmallow import Schema, fields, validate, validates, ValidationError
from blog_app.api.posts.schemas import AuthorSchema # 작성자 정보는 게시글 스키마의 것을 재사용

class CommentCreateSchema(Schema):
    """
    POST /api/posts/{post_id}/comments
    댓글 생성을 요청할 때의 데이터 형식을 정의하고 유효성을 검사합니다.
    """
    content = fields.Str(required=True, validate=validate.Length(min=1, max=1000, error="댓글은 1~1000자 사이여야 합니다."))

    @validates('content')
    def validate_not_blank(self, value, **kwargs):
        if not value.strip():
            raise ValidationError("댓글 내용을 입력해주세요.")

class CommentResponseSchema(Schema):
    """
    댓글 정보 응답을 위한 최종 JSON 형식을 정의합니다.
    """
    id = fields.Str(required=True)
    post_id = fields.Str(required=True)
    user = fields.Nested(AuthorSchema, required=True)
    content = fields.Str(required=True)
    timestamp = fields.DateTime(required=True)
