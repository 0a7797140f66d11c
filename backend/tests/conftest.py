"""Pytest fixtures for NotaryFlow tests.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite database
- In-memory object storage and recording email notifier
- Test users for every role (user, admin, notary, secretary)
- A TestClient wired to the fixtures above

Usage:
    def test_history(client, requester, auth_headers):
        response = client.get("/v1/notarization/history", headers=auth_headers(requester))
        assert response.status_code == 200
"""

import hashlib
import os
from typing import BinaryIO, Callable, Dict, Generator, List

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("PASSWORD_PEPPER", "test-pepper-secret-key-32-chars-long")
os.environ["SMTP_HOST"] = ""
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from auth.jwt import create_access_token
from auth.password import hash_password
from auth.rate_limit import check_rate_limit
from database import get_db as database_get_db
from domain.documents.ports.object_storage_port import ObjectStoragePort, StorageError, StoredFile
from domain.notifications import NotificationError, NotificationPort
from infrastructure.email.smtp_notifier import get_notifier
from models import Base, User
from uploads.files import get_storage

TEST_PASSWORD = "password123"

# Hashing is slow on purpose; hash once and reuse for every fixture user
_PASSWORD_HASH = hash_password(TEST_PASSWORD)

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class InMemoryStorage(ObjectStoragePort):
    """ObjectStoragePort keeping objects in a dict."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.fail = False

    async def store_file(self, file: BinaryIO, prefix: str, filename: str, mime_type: str) -> StoredFile:
        if self.fail:
            raise StorageError("storage offline")
        content = file.read()
        sha256 = hashlib.sha256(content).hexdigest()
        ext = os.path.splitext(filename)[1].lower()
        key = f"{prefix}/{sha256}{ext}"
        self.objects[key] = content
        return StoredFile(
            storage_key=key,
            url=f"https://files.test/{key}",
            sha256=sha256,
            size_bytes=len(content),
            mime_type=mime_type,
        )

    async def delete_file(self, storage_key: str) -> bool:
        return self.objects.pop(storage_key, None) is not None

    async def file_exists(self, storage_key: str) -> bool:
        return storage_key in self.objects


class RecordingNotifier(NotificationPort):
    """NotificationPort that records messages instead of sending them."""

    def __init__(self):
        self.sent: List[dict] = []
        self.fail = False

    def send(self, recipients, subject: str, body: str) -> None:
        if self.fail:
            raise NotificationError("SMTP relay refused the message")
        self.sent.append({"recipients": list(recipients), "subject": subject, "body": body})


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    """Factory creating a persisted user."""

    def _make_user(email: str, role: str = "user", status: str = "active", **fields) -> User:
        user = User(
            email=email,
            name=fields.pop("name", email.split("@")[0].title()),
            role=role,
            password_hash=_PASSWORD_HASH,
            status=status,
            **fields,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def requester(make_user) -> User:
    return make_user("requester@test.com", citizen_id="001099012345", phone_number="0901234567")


@pytest.fixture
def other_user(make_user) -> User:
    return make_user("other@test.com")


@pytest.fixture
def admin_user(make_user) -> User:
    return make_user("admin@test.com", role="admin")


@pytest.fixture
def notary_user(make_user) -> User:
    return make_user("notary@test.com", role="notary")


@pytest.fixture
def secretary_user(make_user) -> User:
    return make_user("secretary@test.com", role="secretary")


@pytest.fixture
def auth_headers() -> Callable[[User], dict]:
    """Build an Authorization header for a user."""

    def _headers(user: User) -> dict:
        token = create_access_token(user_id=user.id, role=user.role, email=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(scope="function")
def client(db_session: Session, storage: InMemoryStorage, notifier: RecordingNotifier):
    """Create a test client bound to the test database, storage and notifier.

    Auth rate limiting is disabled; it is covered by its own unit tests.
    """
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[check_rate_limit] = lambda: None

    yield TestClient(app)

    app.dependency_overrides.clear()
