# blog_app/api/users/schemas.py
from marshmallow import Schema, fields, validate, validates

class UserProfileSchema(Schema):
    """로그인한 본인의 프로필 응답 스키마."""
    id = fields.Str(required=True, dump_only=True)
    name = fields.Str(required=True)
    email = fields.Str(allow_none=True)
    avatar_url = fields.Str(allow_none=True)
    bio = fields.Str()

class UserPublicResponseSchema(Schema):
    """
    GET /api/users/{user_id}
    다른 사용자의 프로필 정보를 응답할 때 사용하는 스키마.
    이메일은 제외하고 공개 가능한 정보와 발행한 게시글 수만 포함합니다.
    """
    id = fields.Str(required=True, dump_only=True)
    name = fields.Str(required=True)
    avatar_url = fields.Str(allow_none=True)
    bio = fields.Str()
    post_count = fields.Int(required=True)

class ProfileUpdateSchema(Schema):
    """
    PATCH /api/users/me
    전달된 필드만 검사합니다. avatar_url을 빈 문자열로 보내면 기본 아바타로 되돌립니다.
    """
    name = fields.Str(validate=validate.Length(min=2, error="이름은 2자 이상이어야 합니다."))
    email = fields.Email(error_messages={"invalid": "올바른 이메일을 입력해주세요."})
    bio = fields.Str(validate=validate.Length(max=200, error="소개는 200자를 넘을 수 없습니다."))
    avatar_url = fields.Str()

    @validates('avatar_url')
    def validate_avatar_url(self, value, **kwargs):
        if value:
            validate.URL(error="올바른 아바타 URL을 입력해주세요.")(value)
