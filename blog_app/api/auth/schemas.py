#blog_app/api/auth/schemas.py
from marshmallow import Schema, fields, validate

class SignupSchema(Schema):
    """회원가입 요청의 유효성을 검사하는 스키마"""
    name = fields.Str(required=True, validate=validate.Length(min=2, error="표시 이름은 2자 이상이어야 합니다."))
    email = fields.Email(required=True, error_messages={"invalid": "올바른 이메일을 입력해주세요."})
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="비밀번호는 6자 이상이어야 합니다.")
    )

class LoginSchema(Schema):
    """로그인 요청의 유효성을 검사하는 스키마"""
    email = fields.Email(required=True, error_messages={"invalid": "올바른 이메일을 입력해주세요."})
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="비밀번호는 6자 이상이어야 합니다.")
    )

class LogoutRequestSchema(Schema):
    """로그아웃 요청. Access Token은 Authorization 헤더로, Refresh Token은 본문으로 전달합니다."""
    refresh_token = fields.Str(load_default=None)
