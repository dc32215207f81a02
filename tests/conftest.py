import os

# Settings are read at import time, so the environment must be ready first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["COOKIE_SECURE"] = "true"
os.environ["MAX_PRODUCT_IMAGES"] = "4"
os.environ["ADMIN_EMAIL"] = ""
os.environ["ADMIN_PASSWORD"] = ""

import re

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.database import Base, SessionLocal, engine
from app.dependencies import get_object_store
from app.main import app
from app.services.user_service import user_service
from app.utils.storage import ObjectStore, StorageError

ADMIN_EMAIL = "a@b.com"
ADMIN_PASSWORD = "secret123"

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 64
JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
PDF = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<<>>\nendobj\n"


class FakeObjectStore(ObjectStore):
    """In-memory bucket that records every call and can be told to fail."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.puts: list[str] = []
        self.deletes: list[str] = []
        self.fail_put_after: int | None = None
        self.fail_delete = False

    def put(self, key, data, content_type):
        if self.fail_put_after is not None and len(self.puts) >= self.fail_put_after:
            raise StorageError(f"upload {key}: unavailable")
        self.puts.append(key)
        self.objects[key] = data

    def delete(self, key):
        self.deletes.append(key)
        if self.fail_delete:
            raise StorageError(f"delete {key}: unavailable")
        self.objects.pop(key, None)

    def public_url(self, key):
        return f"https://cdn.shop.com/bucket/{key}"


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def store():
    return FakeObjectStore()


@pytest.fixture
def client(store):
    app.dependency_overrides[get_object_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    user_service.ensure_admin(db, ADMIN_EMAIL, ADMIN_PASSWORD)
    return ADMIN_EMAIL


@pytest.fixture
def login(client, admin):
    """Returns (access_token, refresh_cookie_value) for the seeded admin."""
    def _login(email=ADMIN_EMAIL, password=ADMIN_PASSWORD):
        resp = client.post("/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]["accessToken"], refresh_cookie(resp)
    return _login


@pytest.fixture
def admin_headers(login):
    access, _ = login()
    return {"Authorization": f"Bearer {access}"}


@pytest.fixture
def fail_commit(monkeypatch):
    """
    fail_commit(n) makes the n-th Session.commit from now raise, every other
    commit goes through.
    """
    def _arm(on_call: int = 1):
        real = Session.commit
        calls = {"n": 0}

        def commit(self):
            calls["n"] += 1
            if calls["n"] == on_call:
                raise OperationalError("COMMIT", {}, Exception("database unavailable"))
            return real(self)

        monkeypatch.setattr(Session, "commit", commit)
    return _arm


def refresh_cookie(resp) -> str | None:
    """Value of the refreshToken Set-Cookie header, None if absent."""
    for header in resp.headers.get_list("set-cookie"):
        m = re.match(r'refreshToken="?([^";]*)"?', header)
        if m:
            return m.group(1)
    return None


def cookie_header(value: str) -> dict:
    # Secure cookies are never sent to http://testserver, so pass it by hand
    return {"Cookie": f"refreshToken={value}"}
