# blog_app/api/auth/services.py
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any
from firebase_admin import firestore
from flask import Flask
from google.api_core.exceptions import GoogleAPIError

from blog_app.core.config import DEFAULT_AVATAR_URL
from blog_app.core.exceptions import BackendUnavailable
from blog_app.core.session import SessionContext
from blog_app.models.user import AuthIdentity, UserProfile
from blog_app.services.firebase_auth_service import FirebaseAuthService
from blog_app.utils.datetime_utils import DateTimeUtils

NEW_USER_BIO = "Newly registered user."

class AuthService:
    """
    인증 제공자(Firebase Authentication)와 'users' 프로필 문서를 연결하는 서비스.
    - 인증 상태가 바뀔 때마다 프로필을 읽어 세션의 현재 사용자를 구성합니다.
    - 가입/로그인/로그아웃은 인증 제공자에 위임합니다.
    """
    def __init__(self):
        self.db = None
        self.users_ref = None
        self.revoked_tokens_ref = None
        self.provider: Optional[FirebaseAuthService] = None
        self.default_avatar_url = DEFAULT_AVATAR_URL
        self.app: Optional[Flask] = None

    def init_app(self, app: Flask, db=None, provider: Optional[FirebaseAuthService] = None):
        """앱 초기화 과정에서 호출되어 DB 연결, 인증 제공자, 앱 컨텍스트를 설정합니다."""
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')
        self.revoked_tokens_ref = self.db.collection('revoked_tokens')
        if provider is None:
            provider = FirebaseAuthService()
            provider.init_app(app)
        self.provider = provider
        self.default_avatar_url = app.config.get('DEFAULT_AVATAR_URL') or DEFAULT_AVATAR_URL
        self.app = app

    # --- 인증 상태 변경 처리 ---
    def on_auth_state_changed(self, session: SessionContext, identity: Optional[AuthIdentity]) -> SessionContext:
        """
        인증 제공자가 알려준 상태로 세션을 전이시킵니다.
        - identity가 없으면 ANONYMOUS
        - 이미 같은 사용자로 인증된 세션이고 정보 변화가 없으면(토큰 갱신 등) 그대로 유지
        - 그 외에는 AUTHENTICATING을 거쳐 프로필을 읽은 뒤 AUTHENTICATED
        """
        if identity is None:
            session.mark_anonymous()
            return session

        if session.is_authenticated and session.is_same_identity(identity):
            return session

        session.begin_authentication(identity)
        session.authenticate(self._resolve_profile(identity))
        return session

    @staticmethod
    def _fallback_name(identity: AuthIdentity) -> str:
        if identity.display_name:
            return identity.display_name
        if identity.email:
            return identity.email.split('@')[0]
        return 'User'

    def _resolve_profile(self, identity: AuthIdentity) -> UserProfile:
        """
        'users/{uid}' 프로필을 읽어 인증 정보와 합칩니다. 프로필 값이 우선합니다.
        프로필 문서가 없으면 인증 정보로 새로 만들어 저장하며, 저장에 실패해도 로그인은 막지 않습니다.
        """
        fallback_name = self._fallback_name(identity)
        user_ref = self.users_ref.document(identity.uid)

        try:
            user_doc = user_ref.get()
        except GoogleAPIError as e:
            logging.error(f"프로필 조회 실패, 인증 정보로 대체합니다 (uid: {identity.uid}): {e}", exc_info=True)
            return UserProfile(id=identity.uid, name=fallback_name, email=identity.email,
                               avatar_url=identity.photo_url or None, bio='')

        if user_doc.exists:
            profile_data = user_doc.to_dict() or {}
            return UserProfile(
                id=identity.uid,
                name=profile_data.get('name') or fallback_name,
                email=identity.email,
                avatar_url=profile_data.get('avatarUrl') or identity.photo_url or None,
                bio=profile_data.get('bio') or '',
            )

        # 인증 계정은 있지만 프로필 문서가 없는 경우 (가입 중 저장 실패, 수동 삭제 등)
        new_profile_data = {
            'name': fallback_name,
            'email': identity.email,
            'avatarUrl': identity.photo_url or self.default_avatar_url,
            'bio': '',
            'createdAt': firestore.SERVER_TIMESTAMP,
        }
        try:
            user_ref.set(new_profile_data)
            logging.info(f"누락된 프로필 문서를 생성했습니다 (uid: {identity.uid})")
            return UserProfile(id=identity.uid, name=fallback_name, email=identity.email,
                               avatar_url=new_profile_data['avatarUrl'], bio='')
        except GoogleAPIError as e:
            logging.error(f"누락된 프로필 생성 실패 (uid: {identity.uid}): {e}", exc_info=True)
            return UserProfile(id=identity.uid, name=fallback_name, email=identity.email,
                               avatar_url=identity.photo_url or None, bio='')

    # --- 가입 / 로그인 / 로그아웃 ---
    def signup(self, name: str, email: str, password: str) -> AuthIdentity:
        """계정을 생성하고, 표시 프로필과 'users' 프로필 문서를 함께 만듭니다."""
        identity = self.provider.create_account(email, password)
        identity = self.provider.update_display_profile(identity.uid, display_name=name, photo_url=self.default_avatar_url)

        user_profile_data = {
            'name': name,
            'email': email,
            'avatarUrl': self.default_avatar_url,
            'bio': NEW_USER_BIO,
            'createdAt': firestore.SERVER_TIMESTAMP,
        }
        try:
            self.users_ref.document(identity.uid).set(user_profile_data)
        except GoogleAPIError as e:
            logging.error(f"프로필 문서 생성 실패 (uid: {identity.uid}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        logging.info(f"회원가입 완료 (uid: {identity.uid})")
        return identity

    def login(self, email: str, password: str) -> AuthIdentity:
        """이메일/비밀번호 로그인. 세션 구성은 on_auth_state_changed가 담당합니다."""
        return self.provider.sign_in(email, password)

    def logout(self, session: SessionContext, access_jti: str, access_exp: int,
               refresh_jti: Optional[str] = None, refresh_exp: Optional[int] = None):
        """Firebase 세션과 발급한 토큰을 무효화하고 세션을 정리합니다."""
        user_id = session.user_id
        if user_id:
            try:
                self.provider.revoke_sessions(user_id)
            except BackendUnavailable as e:
                logging.warning(f"Firebase 세션 무효화에 실패했지만 로그아웃은 계속합니다 (uid: {user_id}): {e}")

        self.add_token_to_blocklist(access_jti, datetime.fromtimestamp(access_exp, tz=timezone.utc))
        if refresh_jti and refresh_exp:
            self.add_token_to_blocklist(refresh_jti, datetime.fromtimestamp(refresh_exp, tz=timezone.utc))
        session.teardown()
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}...")

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 Firestore에 저장합니다."""
        try:
            token_data = {
                'revoked_at': DateTimeUtils.now(),
                'expires_at': expires
            }
            self.revoked_tokens_ref.document(jti).set(token_data)
        except GoogleAPIError as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}")

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        jti = jwt_payload['jti']
        doc = self.revoked_tokens_ref.document(jti).get()
        return doc.exists

    # --- 프로필 변경 ---
    def update_profile(self, session: SessionContext, name: Optional[str] = None, bio: Optional[str] = None,
                       avatar_url: Optional[str] = None, email: Optional[str] = None) -> UserProfile:
        """
        변경된 항목만 반영합니다.
        - 이름/아바타: Firebase Auth 표시 프로필과 'users' 문서 모두
        - 소개/이메일: 'users' 문서만 (Auth 이메일 변경은 재인증이 필요하므로 하지 않음)
        - 아바타를 빈 문자열로 지우면 기본 아바타로 되돌립니다.
        반영 후 세션의 현재 사용자 값을 갱신합니다.
        """
        user = session.require_user()
        auth_email = session.identity.email if session.identity else None

        auth_updates: Dict[str, Any] = {}
        profile_updates: Dict[str, Any] = {}

        if name and name != user.name:
            auth_updates['display_name'] = name
            profile_updates['name'] = name
        if email and email != user.email and email != auth_email:
            profile_updates['email'] = email
        if bio is not None and bio != user.bio:
            profile_updates['bio'] = bio
        if avatar_url and avatar_url != user.avatar_url:
            auth_updates['photo_url'] = avatar_url
            profile_updates['avatarUrl'] = avatar_url
        elif avatar_url == '' and user.avatar_url:
            auth_updates['photo_url'] = self.default_avatar_url
            profile_updates['avatarUrl'] = self.default_avatar_url

        if auth_updates:
            self.provider.update_display_profile(user.id, **auth_updates)

        if profile_updates:
            profile_updates['lastUpdatedAt'] = firestore.SERVER_TIMESTAMP
            try:
                self.users_ref.document(user.id).set(profile_updates, merge=True)
            except GoogleAPIError as e:
                logging.error(f"프로필 변경 실패 (uid: {user.id}): {e}", exc_info=True)
                raise BackendUnavailable(str(e)) from e

        updated_user = UserProfile(
            id=user.id,
            name=profile_updates.get('name', user.name),
            # 세션의 이메일은 인증 제공자의 값을 유지합니다.
            email=user.email,
            avatar_url=profile_updates.get('avatarUrl', user.avatar_url),
            bio=profile_updates.get('bio', user.bio),
        )
        session.authenticate(updated_user)
        return updated_user

    def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """'users/{uid}' 문서를 조회합니다. 없으면 None을 반환합니다."""
        try:
            doc = self.users_ref.document(user_id).get()
        except GoogleAPIError as e:
            logging.error(f"프로필 조회 실패 (uid: {user_id}): {e}", exc_info=True)
            raise BackendUnavailable(str(e)) from e
        if not doc.exists:
            return None
        return UserProfile.from_firestore(doc.id, doc.to_dict())

