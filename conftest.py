# conftest.py
"""
테스트 공용 픽스처.

- FakeFirestore: 서비스가 사용하는 Firestore 클라이언트 기능만 메모리로 흉내 냅니다.
  (컬렉션/하위 컬렉션, '==' 조건, 정렬, WriteBatch, SERVER_TIMESTAMP/DELETE_FIELD, 실시간 리스너, 장애 주입)
- FakeAuthProvider: FirebaseAuthService와 같은 메서드를 제공하는 인증 제공자 대역입니다.
"""
import copy
import itertools
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from firebase_admin import firestore
from flask_jwt_extended import create_access_token, create_refresh_token
from google.api_core.exceptions import NotFound, ServiceUnavailable
from google.cloud.firestore_v1.base_query import FieldFilter

from blog_app import create_app
from blog_app.core.exceptions import AuthenticationFailed, BackendUnavailable
from blog_app.models.user import AuthIdentity


# =====================================================================================
# In-memory Firestore
# =====================================================================================
class FakeDocumentSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, db, path):
        self._db = db
        self.path = path
        self.id = path[-1]

    @property
    def parent_path(self):
        return self.path[:-1]

    def collection(self, name):
        return FakeCollectionReference(self._db, self.path + (name,))

    def get(self):
        self._db._check('reads')
        return FakeDocumentSnapshot(self, self._db._docs.get(self.path))

    def set(self, data, merge=False):
        self._db._check('writes')
        self._db._apply([('set', self, data, merge)])

    def update(self, data):
        self._db._check('writes')
        if self.path not in self._db._docs:
            raise NotFound(f"No document to update: {'/'.join(self.path)}")
        self._db._apply([('set', self, data, True)])

    def delete(self):
        self._db._check('writes')
        self._db._apply([('delete', self, None, False)])


class FakeWatch:
    def __init__(self, db, query, callback):
        self._db = db
        self.query = query
        self.callback = callback
        self.closed = False

    def notify(self):
        if not self.closed:
            self.callback(self.query._snapshots(), [], self._db.now())

    def unsubscribe(self):
        self.closed = True
        if self in self._db.watches:
            self._db.watches.remove(self)


class FakeQuery:
    def __init__(self, db, collection_path, filters=(), orders=(), limit_count=None):
        self._db = db
        self.collection_path = collection_path
        self._filters = tuple(filters)
        self._orders = tuple(orders)
        self._limit = limit_count

    def _copy(self, **changes):
        params = dict(filters=self._filters, orders=self._orders, limit_count=self._limit)
        params.update(changes)
        return FakeQuery(self._db, self.collection_path, **params)

    def where(self, *, filter):
        # filter=FieldFilter(...) 형태만 지원합니다.
        if not isinstance(filter, FieldFilter):
            raise TypeError("where()에는 filter=FieldFilter(...)를 전달해야 합니다.")
        field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        if op_string != '==':
            raise NotImplementedError(f"지원하지 않는 연산자: {op_string}")
        return self._copy(filters=self._filters + ((field_path, value),))

    def order_by(self, field_path, direction='ASCENDING'):
        return self._copy(orders=self._orders + ((field_path, direction),))

    def limit(self, count):
        return self._copy(limit_count=count)

    def _snapshots(self):
        depth = len(self.collection_path) + 1
        docs = [
            (path, data) for path, data in self._db._docs.items()
            if len(path) == depth and path[:-1] == self.collection_path
        ]
        for field, value in self._filters:
            docs = [(path, data) for path, data in docs if data.get(field) == value]
        for field, direction in reversed(self._orders):
            # Firestore는 정렬 필드가 없는 문서를 결과에서 제외합니다.
            docs = [(path, data) for path, data in docs if field in data]
            docs.sort(key=lambda item: item[1][field], reverse=(direction == firestore.Query.DESCENDING))
        if self._limit is not None:
            docs = docs[:self._limit]
        return [FakeDocumentSnapshot(FakeDocumentReference(self._db, path), copy.deepcopy(data)) for path, data in docs]

    def stream(self):
        self._db._check('queries')
        return iter(self._snapshots())

    def get(self):
        self._db._check('queries')
        return self._snapshots()

    def on_snapshot(self, callback):
        self._db._check('queries')
        watch = FakeWatch(self._db, self, callback)
        self._db.watches.append(watch)
        watch.notify()
        return watch


class FakeCollectionReference(FakeQuery):
    def __init__(self, db, path):
        super().__init__(db, path)
        self.id = path[-1]

    def document(self, document_id=None):
        return FakeDocumentReference(self._db, self.collection_path + (document_id or uuid.uuid4().hex[:20],))


class FakeWriteBatch:
    def __init__(self, db):
        self._db = db
        self._ops = []

    def set(self, reference, data, merge=False):
        self._ops.append(('set', reference, data, merge))

    def update(self, reference, data):
        self._ops.append(('set', reference, data, True))

    def delete(self, reference):
        self._ops.append(('delete', reference, None, False))

    def commit(self):
        # 실패하면 어떤 쓰기도 반영되지 않습니다.
        self._db._check('commits')
        self._db._apply(self._ops)
        self._ops = []


class FakeFirestore:
    """
    failures에 'reads' / 'writes' / 'queries' / 'commits'를 넣으면 해당 호출이 ServiceUnavailable을 발생시킵니다.
    SERVER_TIMESTAMP는 호출마다 1초씩 증가하는 시계 값으로 채워지므로 작성 순서대로 정렬됩니다.
    """
    def __init__(self):
        self._docs = {}
        self.watches = []
        self.failures = set()
        self._clock = itertools.count()
        self._epoch = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def now(self):
        return self._epoch + timedelta(seconds=next(self._clock))

    def _check(self, kind):
        if kind in self.failures:
            raise ServiceUnavailable(f"Firestore {kind} unavailable")

    def collection(self, name):
        return FakeCollectionReference(self, (name,))

    def batch(self):
        return FakeWriteBatch(self)

    def _resolve(self, value):
        return self.now() if value is firestore.SERVER_TIMESTAMP else copy.deepcopy(value)

    def _apply(self, ops):
        touched = set()
        for kind, reference, data, merge in ops:
            if kind == 'delete':
                self._docs.pop(reference.path, None)
            else:
                current = dict(self._docs.get(reference.path, {})) if merge else {}
                for key, value in data.items():
                    if value is firestore.DELETE_FIELD:
                        current.pop(key, None)
                    else:
                        current[key] = self._resolve(value)
                self._docs[reference.path] = current
            touched.add(reference.parent_path)
        for watch in list(self.watches):
            if watch.query.collection_path in touched:
                watch.notify()

    # --- 테스트 편의 ---
    def seed(self, collection_path, document_id, data):
        """서버 시간 변환 없이 문서를 그대로 넣습니다. (정규화 테스트용 비정형 데이터 포함)"""
        self._docs[tuple(collection_path.split('/')) + (document_id,)] = copy.deepcopy(data)

    def raw(self, document_path):
        return copy.deepcopy(self._docs.get(tuple(document_path.split('/'))))


# =====================================================================================
# Fake auth provider
# =====================================================================================
class FakeAuthProvider:
    """FirebaseAuthService와 같은 인터페이스를 가진 메모리 인증 제공자."""
    def __init__(self):
        self.accounts = {}
        self.revoked = []
        self.unavailable = False

    def _identity(self, uid):
        account = self.accounts[uid]
        return AuthIdentity(uid=uid, email=account['email'],
                            display_name=account.get('display_name'), photo_url=account.get('photo_url'))

    def add_account(self, uid, email, password='password123', display_name=None, photo_url=None):
        self.accounts[uid] = {'email': email, 'password': password,
                              'display_name': display_name, 'photo_url': photo_url}
        return self._identity(uid)

    def create_account(self, email, password):
        if any(account['email'] == email for account in self.accounts.values()):
            raise AuthenticationFailed("EMAIL_EXISTS")
        return self.add_account(uuid.uuid4().hex[:28], email, password)

    def sign_in(self, email, password):
        if self.unavailable:
            raise BackendUnavailable("auth provider unavailable")
        for uid, account in self.accounts.items():
            if account['email'] == email and account['password'] == password:
                return self._identity(uid)
        raise AuthenticationFailed("INVALID_LOGIN_CREDENTIALS")

    def get_identity(self, uid):
        if uid not in self.accounts:
            return None
        return self._identity(uid)

    def update_display_profile(self, uid, display_name=None, photo_url=None):
        if display_name is not None:
            self.accounts[uid]['display_name'] = display_name
        if photo_url is not None:
            self.accounts[uid]['photo_url'] = photo_url
        return self._identity(uid)

    def revoke_sessions(self, uid):
        if self.unavailable:
            raise BackendUnavailable("auth provider unavailable")
        self.revoked.append(uid)


# =====================================================================================
# Fixtures
# =====================================================================================
@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def auth_provider():
    return FakeAuthProvider()


@pytest.fixture
def app(db, auth_provider):
    app = create_app('testing', db=db, auth_provider=auth_provider)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(db, auth_provider):
    """인증 계정과 'users' 프로필 문서를 함께 만듭니다."""
    def _make_user(uid='user-1', name='Alice', email=None, avatar_url='https://example.com/alice.png', bio='hello'):
        email = email or f"{uid}@example.com"
        auth_provider.add_account(uid, email, display_name=name, photo_url=avatar_url)
        db.seed('users', uid, {'name': name, 'email': email, 'avatarUrl': avatar_url, 'bio': bio})
        return uid
    return _make_user


@pytest.fixture
def auth_headers(app):
    """uid로 Access Token을 발급해 Authorization 헤더를 만듭니다."""
    def _auth_headers(uid):
        with app.app_context():
            token = create_access_token(identity=uid)
        return {"Authorization": f"Bearer {token}"}
    return _auth_headers


@pytest.fixture
def refresh_headers(app):
    def _refresh_headers(uid):
        with app.app_context():
            token = create_refresh_token(identity=uid)
        return {"Authorization": f"Bearer {token}"}
    return _refresh_headers
