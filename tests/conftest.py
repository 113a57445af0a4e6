import os

# Settings are read at import time, so these must be set before importing storefront.
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret")
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from redis.exceptions import ConnectionError as RedisConnectionError  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront.core.resources import Resources  # noqa: E402
from storefront.db.models import Role  # noqa: E402
from storefront.db.session import make_engine  # noqa: E402
from storefront.main import app  # noqa: E402
from storefront.services.storage import ImageStorage, decode_data_url  # noqa: E402
from storefront.store.users import UserRepository  # noqa: E402


class MemoryRedis:
    """Just enough of the redis-py client surface for the token and catalog caches."""

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.fail_reads = False
        self.fail_writes = False

    def set(self, key, value, ex=None):
        if self.fail_writes:
            raise RedisConnectionError("redis unavailable")
        self.data[key] = value
        if ex is None:
            self.ttls.pop(key, None)
        else:
            self.ttls[key] = ex
        return True

    def get(self, key):
        if self.fail_reads:
            raise RedisConnectionError("redis unavailable")
        return self.data.get(key)

    def delete(self, *keys):
        if self.fail_writes:
            raise RedisConnectionError("redis unavailable")
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    def ttl(self, key):
        if key not in self.data:
            return -2
        return self.ttls.get(key, -1)

    def close(self):
        pass


class RecordingImageStorage(ImageStorage):
    def __init__(self):
        super().__init__()
        self.uploaded = []
        self.removed = []

    def upload_data_url(self, data_url):
        decode_data_url(data_url)
        url = f"http://minio:9000/{self.cfg.S3_BUCKET}/products/{len(self.uploaded)}.png"
        self.uploaded.append(url)
        return url

    def remove_by_url(self, url):
        self.removed.append(url)


PNG_DATA_URL = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def redis_double():
    return MemoryRedis()


@pytest.fixture
def resources(redis_double):
    engine = make_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    res = Resources(engine, redis_double, RecordingImageStorage())
    res.create_tables()
    yield res
    engine.dispose()


@pytest.fixture
def db(resources):
    session = resources.session_factory()
    yield session
    session.close()


@pytest.fixture
def client(resources):
    app.state.resources = resources
    with TestClient(app) as c:
        yield c
    app.state.resources = None


@pytest.fixture
def lenient_client(resources):
    """Client that returns the app's 500 response instead of re-raising the server exception."""
    app.state.resources = resources
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
    app.state.resources = None


@pytest.fixture
def admin_user(db):
    return UserRepository(db).create(
        {"name": "Root", "email": "admin@example.com", "password": "admin-pass", "role": Role.admin}
    )


@pytest.fixture
def admin_client(client, admin_user):
    resp = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "admin-pass"})
    assert resp.status_code == 200
    return client
