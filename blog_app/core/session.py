# blog_app/core/session.py
"""
요청 단위로 생성되는 로그인 세션 컨텍스트.

상태 전이:
    UNKNOWN -> AUTHENTICATING -> AUTHENTICATED(user)
                              -> ANONYMOUS
인증 상태가 바뀔 때마다(로그인, 로그아웃, 토큰 갱신) AuthService.on_auth_state_changed가 다시 호출됩니다.
세션은 전역 변수가 아니라 flask.g에 요청 범위로 보관되며, 요청 종료 또는 로그아웃 시 teardown됩니다.
"""

from enum import Enum
from typing import Optional

from blog_app.models.user import AuthIdentity, UserProfile


class SessionState(Enum):
    UNKNOWN = "unknown"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    ANONYMOUS = "anonymous"


class SessionContext:
    def __init__(self):
        self.state = SessionState.UNKNOWN
        self.identity: Optional[AuthIdentity] = None
        self.user: Optional[UserProfile] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED and self.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self.user.id if self.is_authenticated else None

    def is_same_identity(self, identity: AuthIdentity) -> bool:
        """인증 제공자가 알려준 정보가 현재 세션과 실질적으로 같은지 확인합니다."""
        return self.identity == identity

    def begin_authentication(self, identity: AuthIdentity) -> None:
        self.state = SessionState.AUTHENTICATING
        self.identity = identity
        self.user = None

    def authenticate(self, user: UserProfile) -> None:
        if self.identity is None or self.identity.uid != user.id:
            raise ValueError("세션의 인증 정보와 사용자 프로필이 일치하지 않습니다.")
        self.state = SessionState.AUTHENTICATED
        self.user = user

    def mark_anonymous(self) -> None:
        self.state = SessionState.ANONYMOUS
        self.identity = None
        self.user = None

    def teardown(self) -> None:
        """로그아웃 또는 요청 종료 시 세션을 비웁니다."""
        self.mark_anonymous()

    def require_user(self) -> UserProfile:
        if not self.is_authenticated:
            raise PermissionError("로그인이 필요합니다.")
        return self.user
