# conftest.py
"""
공용 pytest 픽스처.

Firestore 와 Storage 버킷은 서비스가 사용하는 API 범위만 구현한 메모리 객체로 대체하고,
인증은 TestingConfig 의 JWT 모드(서버 서명 토큰)를 사용합니다.
"""
import copy
import io
import uuid
from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token
from google.api_core.exceptions import AlreadyExists, NotFound
from google.cloud.firestore_v1.transforms import Increment
from werkzeug.datastructures import FileStorage

from linkcamp import create_app
from linkcamp.core.socket_server import socketio
from linkcamp.services.storage_service import StorageService
from linkcamp.utils.datetime_utils import DateTimeUtils


# =====================================================================================
# 메모리 Firestore
# =====================================================================================

_MISSING = object()


def _matches(data, field_path, op, value):
    actual = data.get(field_path, _MISSING)
    # 최신 클라이언트는 None 비교 필터를 단항 연산자(IS_NULL / IS_NOT_NULL)로 바꿔 저장합니다.
    op = getattr(op, 'name', op)
    if op == 'IS_NOT_NULL':
        return actual is not _MISSING and actual is not None
    if op == 'IS_NULL':
        return actual is None
    if op == '!=':
        return actual is not _MISSING and actual != value
    if actual is _MISSING:
        return False
    if op == '==':
        return actual == value
    if op == 'in':
        return actual in value
    if actual is None or value is None:
        return False
    if op == '<':
        return actual < value
    if op == '<=':
        return actual <= value
    if op == '>':
        return actual > value
    if op == '>=':
        return actual >= value
    raise ValueError(f"지원하지 않는 연산자: {op}")


class FakeSnapshot:
    def __init__(self, reference, data):
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, collection, doc_id):
        self._collection = collection
        self.id = doc_id

    @property
    def _store(self):
        return self._collection._docs

    def get(self):
        return FakeSnapshot(self, self._store.get(self.id))

    def set(self, data):
        self._store[self.id] = copy.deepcopy(data)

    def create(self, data):
        if self.id in self._store:
            raise AlreadyExists(f"Document already exists: {self._collection.name}/{self.id}")
        self.set(data)

    def update(self, data):
        if self.id not in self._store:
            raise NotFound(f"No document to update: {self._collection.name}/{self.id}")
        current = self._store[self.id]
        for key, value in data.items():
            if isinstance(value, Increment):
                current[key] = (current.get(key) or 0) + value.value
            else:
                current[key] = copy.deepcopy(value)

    def delete(self):
        self._store.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection, filters=(), orders=(), limit=None, offset=0):
        self._collection = collection
        self._filters = list(filters)
        self._orders = list(orders)
        self._limit = limit
        self._offset = offset

    def _copy(self, **changes):
        params = dict(filters=self._filters, orders=self._orders, limit=self._limit, offset=self._offset)
        params.update(changes)
        return FakeQuery(self._collection, **params)

    def where(self, field_path=None, op_string=None, value=None, *, filter=None):
        if filter is not None:
            field_path, op_string, value = filter.field_path, filter.op_string, filter.value
        return self._copy(filters=self._filters + [(field_path, op_string, value)])

    def order_by(self, field_path, direction='ASCENDING'):
        return self._copy(orders=self._orders + [(field_path, direction)])

    def limit(self, count):
        return self._copy(limit=count)

    def offset(self, count):
        return self._copy(offset=count)

    def count(self):
        total = len(self._results())
        return SimpleNamespace(get=lambda: [[SimpleNamespace(value=total)]])

    def _results(self):
        rows = [
            (doc_id, data) for doc_id, data in self._collection._docs.items()
            if all(_matches(data, f, op, v) for f, op, v in self._filters)
        ]
        for field_path, direction in reversed(self._orders):
            rows = [row for row in rows if row[1].get(field_path) is not None]
            rows.sort(key=lambda row: row[1][field_path], reverse=(direction == 'DESCENDING'))
        rows = rows[self._offset:]
        if self._limit is not None:
            rows = rows[:self._limit]
        return rows

    def stream(self):
        for doc_id, _ in self._results():
            ref = FakeDocumentRef(self._collection, doc_id)
            yield ref.get()


class FakeCollection(FakeQuery):
    def __init__(self, name):
        self.name = name
        self._docs = {}
        super().__init__(self)

    def document(self, doc_id=None):
        return FakeDocumentRef(self, doc_id or uuid.uuid4().hex)


class FakeFirestore:
    """서비스 계층이 사용하는 Firestore 클라이언트 API 의 메모리 구현."""
    def __init__(self):
        self._collections = {}

    def collection(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]

    def get_all(self, references):
        for ref in references:
            yield ref.get()

    # --- 테스트 헬퍼 ---
    def docs(self, name):
        return self.collection(name)._docs


# =====================================================================================
# 메모리 Storage 버킷
# =====================================================================================

class FakeBlob:
    def __init__(self, bucket, name):
        self.bucket = bucket
        self.name = name

    @property
    def public_url(self):
        return f"https://storage.googleapis.com/{self.bucket.name}/{self.name}"

    def upload_from_file(self, stream, content_type=None):
        self.bucket.files[self.name] = (stream.read(), content_type)

    def make_public(self):
        pass

    def exists(self):
        return self.name in self.bucket.files

    def delete(self):
        self.bucket.files.pop(self.name, None)


class FakeBucket:
    def __init__(self, name='linkcamp-test.appspot.com'):
        self.name = name
        self.files = {}

    def blob(self, name):
        return FakeBlob(self, name)


# =====================================================================================
# 픽스처
# =====================================================================================

@pytest.fixture
def fake_db():
    return FakeFirestore()


@pytest.fixture
def bucket():
    return FakeBucket()


@pytest.fixture
def storage(bucket):
    storage_service = StorageService()
    storage_service.bucket = bucket
    return storage_service


@pytest.fixture
def app(fake_db, storage):
    app = create_app('testing', db=fake_db, storage=storage)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed_user(fake_db):
    """users 컬렉션에 프로필을 직접 저장합니다."""
    def _seed(email, name=None, role='member', approval='approved', photo=None):
        profile = {
            'email': email,
            'name': name or email.split('@')[0],
            'photo': photo,
            'role': role,
            'approval': approval,
            'created_at': DateTimeUtils.now(),
        }
        fake_db.collection('users').document(email).set(profile)
        return profile
    return _seed


@pytest.fixture
def seed_post(fake_db):
    """콘텐츠 파티션(posts / announcements / notices)에 항목을 직접 저장합니다."""
    default_types = {'posts': 'general', 'announcements': 'teacher', 'notices': 'admin'}

    def _seed(author_email, content='hello', partition='posts', post_type=None,
              created_at=None, repost_of=None, photo=None):
        post_id = str(uuid.uuid4())
        fake_db.collection(partition).document(post_id).set({
            'post_id': post_id,
            'author_email': author_email,
            'content': content,
            'photo': photo,
            'post_type': post_type or default_types[partition],
            'repost_of': repost_of,
            'report_count': 0,
            'created_at': created_at or DateTimeUtils.now(),
            'updated_at': None,
        })
        return post_id
    return _seed


@pytest.fixture
def token_for(app):
    def _token(email):
        with app.app_context():
            return create_access_token(identity=email)
    return _token


@pytest.fixture
def auth_headers(token_for):
    def _headers(email):
        return {'Authorization': f'Bearer {token_for(email)}'}
    return _headers


@pytest.fixture
def socket_client(app, token_for):
    """인증된 Socket.IO 테스트 클라이언트를 만듭니다. 테스트 종료 시 연결을 끊습니다."""
    clients = []

    def _connect(email):
        sio_client = socketio.test_client(app, auth={'token': token_for(email)})
        clients.append(sio_client)
        return sio_client

    yield _connect
    for sio_client in clients:
        if sio_client.is_connected():
            sio_client.disconnect()


@pytest.fixture
def image_file():
    def _image(name='photo.png', content_type='image/png'):
        return FileStorage(stream=io.BytesIO(b'\x89PNG fake image bytes'), filename=name, content_type=content_type)
    return _image
