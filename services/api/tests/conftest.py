from collections.abc import Callable, Generator
from typing import Any

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import INET, JSONB
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import khub_api.models  # noqa: F401
from khub_api.core import security as security_module
from khub_api.core.config import get_settings
from khub_api.db.session import get_db
from khub_api.main import app
from khub_api.models.base import Base
from khub_api.services.outbound import get_http_client
from khub_api.services.storage import StorageError, get_storage

PASSWORD = "Passw0rd!"


@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(_type_, _compiler, **_kwargs):
    return "JSON"


@compiles(INET, "sqlite")
def _compile_inet_sqlite(_type_, _compiler, **_kwargs):
    return "TEXT"


class MemoryStorage:
    """内存对象存储，可模拟删除失败。"""

    def __init__(self) -> None:
        self.objects: dict[str, bytes] = {}
        self.fail_delete = False
        self.put_calls = 0

    def put(self, key: str, content: bytes, *, content_type: str) -> str:
        self.put_calls += 1
        self.objects[key] = content
        return f"https://files.test/{key}"

    def delete(self, key: str) -> None:
        if self.fail_delete:
            raise StorageError("simulated delete failure")
        self.objects.pop(key, None)


class MockUpstream:
    """外部请求桩，测试中替换 handler 即可。"""

    def __init__(self) -> None:
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(404)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


def _reset_runtime_auth_state() -> None:
    security_module._redis_client = None
    security_module._LOCAL_BLACKLIST.clear()


@pytest.fixture(autouse=True)
def test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Generator[None, None, None]:
    monkeypatch.setenv("KH_AUTH_JWT_SECRET", "khub-test-secret-key-at-least-32-bytes")
    monkeypatch.setenv("KH_AUTH_JWT_ALGORITHMS", "HS256")
    monkeypatch.setenv("KH_AUTH_PASSWORD_HASH_ITERATIONS", "1000")
    monkeypatch.setenv("KH_STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("KH_YOUTUBE_API_KEY", "yt-test-key")
    monkeypatch.delenv("KH_REDIS_URL", raising=False)
    get_settings.cache_clear()
    _reset_runtime_auth_state()
    yield
    _reset_runtime_auth_state()
    get_settings.cache_clear()


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker[Session]:
    return sessionmaker(bind=db_engine, autoflush=False, autocommit=False, class_=Session)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def upstream() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def api_client(session_factory, storage: MemoryStorage, upstream: MockUpstream) -> Generator[TestClient, None, None]:
    def override_get_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def override_get_http_client() -> Generator[httpx.Client, None, None]:
        client = httpx.Client(transport=httpx.MockTransport(upstream))
        try:
            yield client
        finally:
            client.close()

    app.dependency_overrides.clear()
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_http_client] = override_get_http_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


def register_user(
    client: TestClient,
    *,
    email: str,
    name: str = "测试用户",
    workspace_name: str = "测试空间",
) -> dict[str, Any]:
    """注册并登录，返回 Bearer 头与工作空间信息；登录写入的 Cookie 会被清除。"""
    resp = client.post(
        "/api/auth/register",
        json={"email": email, "password": PASSWORD, "name": name, "workspaceName": workspace_name},
    )
    assert resp.status_code == 201, resp.text
    registered = resp.json()

    resp = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200, resp.text
    token = resp.json()["accessToken"]
    client.cookies.clear()
    return {
        "headers": {"Authorization": f"Bearer {token}"},
        "token": token,
        "user_id": registered["user"]["id"],
        "workspace_id": registered["workspace"]["id"],
    }


@pytest.fixture
def owner(api_client: TestClient) -> dict[str, Any]:
    return register_user(api_client, email="owner@example.com", workspace_name="Owner Space")


@pytest.fixture
def outsider(api_client: TestClient) -> dict[str, Any]:
    return register_user(api_client, email="outsider@example.com", workspace_name="Outsider Space")


@pytest.fixture
def register_account(api_client: TestClient) -> Callable[..., dict[str, Any]]:
    def _register(**kwargs: Any) -> dict[str, Any]:
        return register_user(api_client, **kwargs)

    return _register
