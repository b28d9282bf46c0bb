"""Shared fixtures: isolated in-memory database, recording notifier, API client."""
import os

# Configure before any app import: settings and the module-level engine read these
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["MAILGUN_API_KEY"] = ""
os.environ["MAILGUN_DOMAIN"] = ""

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.config import Settings  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app import models  # noqa: F401,E402
from app.dependencies import get_blob_store, get_notifier  # noqa: E402
from app.errors import NotificationError  # noqa: E402
from app.models.user import User, UserRole, UserStatus  # noqa: E402
from app.services.auth import create_access_token, get_password_hash  # noqa: E402
from app.services.storage import LocalBlobStore  # noqa: E402


class RecordingNotifier:
    """Stands in for EmailNotifier; keeps every token it was asked to send."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[tuple[str, str]] = []
        self.verified: list[str] = []

    def send_verification(self, to_email: str, token: str) -> None:
        if self.fail:
            raise NotificationError("provider down")
        self.sent.append((to_email, token))

    def send_account_verified(self, to_email: str) -> None:
        if self.fail:
            raise NotificationError("provider down")
        self.verified.append(to_email)

    def last_token_for(self, email: str) -> str:
        return [t for e, t in self.sent if e == email][-1]


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def settings():
    return Settings(app_env="test", email_verification_token_expire_hours=24)


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def admin(db):
    user = User(
        email="admin@example.com",
        hashed_password=get_password_hash("AdminPass1"),
        role=UserRole.ADMIN,
        status=UserStatus.VERIFIED,
        email_verified_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def client(session_factory, notifier, tmp_path):
    from app.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    app.dependency_overrides[get_blob_store] = lambda: LocalBlobStore(tmp_path / "uploads")
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role)}"}
    return _headers
