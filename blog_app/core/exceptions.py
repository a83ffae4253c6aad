# blog_app/core/exceptions.py
"""
서비스 계층에서 라우트로 전달되는 예외 정의.

- 조회 실패(NotFound)는 예외가 아니라 None 반환으로 표현합니다.
- 권한 없음은 PermissionError, 입력값 오류는 marshmallow.ValidationError를 그대로 사용합니다.
"""


class BlogAppError(Exception):
    """애플리케이션 예외의 공통 부모 클래스."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendUnavailable(BlogAppError):
    """Firestore 등 외부 백엔드 호출이 실패했을 때 발생합니다. 제공자의 메시지를 그대로 담습니다."""


class AuthenticationFailed(BlogAppError):
    """인증 제공자가 가입/로그인/프로필 변경 요청을 거부했을 때 발생합니다."""
