# 파일 경로: blog_app/services/firebase_auth_service.py

import logging
from typing import Optional

import requests
from flask import Flask
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from blog_app.core.exceptions import AuthenticationFailed, BackendUnavailable
from blog_app.models.user import AuthIdentity

class FirebaseAuthService:
    """
    Firebase Authentication과의 통신을 담당하는 서비스 클래스입니다.
    - 계정 생성, 표시 프로필 변경, 사용자 조회, 세션 무효화: firebase_admin.auth
    - 이메일/비밀번호 로그인: Identity Toolkit REST API (Admin SDK에는 비밀번호 검증 기능이 없음)
    """
    _sign_in_url = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

    def __init__(self, api_key: Optional[str] = None, timeout: int = 10):
        self.api_key = api_key
        self.timeout = timeout

    def init_app(self, app: Flask):
        """Flask 앱 초기화 과정에서 호출되어 웹 API 키를 설정합니다."""
        self.api_key = app.config.get('FIREBASE_WEB_API_KEY')
        if not self.api_key:
            logging.warning("FIREBASE_WEB_API_KEY가 설정되지 않았습니다. 이메일 로그인이 동작하지 않습니다.")

    @staticmethod
    def _to_identity(record) -> AuthIdentity:
        return AuthIdentity(
            uid=record.uid,
            email=record.email,
            display_name=record.display_name,
            photo_url=record.photo_url,
        )

    def create_account(self, email: str, password: str) -> AuthIdentity:
        """이메일/비밀번호 계정을 생성합니다."""
        try:
            record = firebase_auth.create_user(email=email, password=password)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logging.error(f"Firebase 계정 생성 실패 (email: {email}): {e}")
            raise AuthenticationFailed(str(e)) from e
        logging.info(f"Firebase 계정 생성 성공 (uid: {record.uid})")
        return self._to_identity(record)

    def sign_in(self, email: str, password: str) -> AuthIdentity:
        """이메일/비밀번호로 로그인하고 인증된 사용자 정보를 반환합니다."""
        if not self.api_key:
            raise AuthenticationFailed("FIREBASE_WEB_API_KEY가 설정되지 않았습니다.")
        try:
            response = requests.post(
                self._sign_in_url,
                params={"key": self.api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logging.error(f"Firebase 로그인 요청 실패: {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e

        if not response.ok:
            # 예: {"error": {"code": 400, "message": "INVALID_LOGIN_CREDENTIALS"}}
            try:
                message = response.json().get("error", {}).get("message") or response.text
            except ValueError:
                message = response.text
            logging.warning(f"Firebase 로그인 거부 (status: {response.status_code}): {message}")
            raise AuthenticationFailed(message)

        payload = response.json()
        return AuthIdentity(
            uid=payload["localId"],
            email=payload.get("email"),
            display_name=payload.get("displayName") or None,
            photo_url=payload.get("profilePicture") or None,
        )

    def get_identity(self, uid: str) -> Optional[AuthIdentity]:
        """uid로 사용자를 조회합니다. 없으면 None을 반환합니다."""
        try:
            record = firebase_auth.get_user(uid)
        except firebase_auth.UserNotFoundError:
            logging.warning(f"Firebase Auth에 존재하지 않는 사용자입니다 (uid: {uid}).")
            return None
        except firebase_exceptions.FirebaseError as e:
            logging.error(f"Firebase 사용자 조회 실패 (uid: {uid}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        return self._to_identity(record)

    def update_display_profile(self, uid: str, display_name: Optional[str] = None, photo_url: Optional[str] = None) -> AuthIdentity:
        """Firebase Auth의 표시 이름/프로필 사진을 변경합니다. 전달된 값만 변경됩니다."""
        updates = {}
        if display_name is not None:
            updates['display_name'] = display_name
        if photo_url is not None:
            updates['photo_url'] = photo_url
        try:
            record = firebase_auth.update_user(uid, **updates)
        except (firebase_exceptions.FirebaseError, ValueError) as e:
            logging.error(f"Firebase 프로필 변경 실패 (uid: {uid}): {e}")
            raise AuthenticationFailed(str(e)) from e
        return self._to_identity(record)

    def revoke_sessions(self, uid: str) -> None:
        """해당 사용자의 Firebase Refresh Token을 모두 무효화합니다."""
        try:
            firebase_auth.revoke_refresh_tokens(uid)
        except firebase_exceptions.FirebaseError as e:
            logging.error(f"Firebase 세션 무효화 실패 (uid: {uid}): {e}")
            raise BackendUnavailable(str(e)) from e
