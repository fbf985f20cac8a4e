"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown (in-memory SQLite)
- A service container with cheap bcrypt, memory rate limits and a
  recording email dispatcher
- FastAPI test client
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("JSON_LOGS", "false")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.container import build_container
from app.core.config import settings
from app.core.database import Base, get_db
from app.core.rate_limiter import MemoryCounterStore, RateLimiter
from app.models.user import User
from app.services.notifications import EmailDispatcher
from main import app

# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "Sup3r$ecretKey!"
NEW_PASSWORD = "N3w&BetterSecret"


class RecordingDispatcher(EmailDispatcher):
    """Captures outgoing emails instead of queueing Celery tasks."""

    def __init__(self, settings):
        super().__init__(settings)
        self.otps = []
        self.verifications = []
        self.password_changes = []

    def send_otp(self, email, otp_code, expires_at):
        self.otps.append({"to": email, "code": otp_code, "expires_at": expires_at})
        return True

    def send_verification(self, email, token, user_name=None):
        self.verifications.append({"to": email, "token": token})
        return True

    def send_password_changed(self, email):
        self.password_changes.append(email)
        return True

    def last_otp(self, email):
        return [sent["code"] for sent in self.otps if sent["to"] == email][-1]


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def test_settings():
    return settings.model_copy(update={"BCRYPT_ROUNDS": 4, "ROUTE_RATE_LIMIT_ENABLED": False})


@pytest.fixture
def mailer(test_settings):
    return RecordingDispatcher(test_settings)


@pytest.fixture
def container(test_settings, mailer):
    return build_container(
        test_settings,
        session_factory=TestingSessionLocal,
        rate_limiter=RateLimiter(MemoryCounterStore()),
        email_dispatcher=mailer,
    )


@pytest.fixture
def client(db_session, container):
    """
    FastAPI test client with overridden database dependency and container.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.state.container = container

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.container = None


@pytest.fixture
def make_user(db_session, container):
    """Factory inserting a user with a known password."""
    def _make_user(email="test@example.com", password=PASSWORD, **fields):
        values = dict(
            id=uuid.uuid4(),
            username="testuser",
            email=email,
            password_hash=container.hasher.hash(password),
            email_verified=True,
            account_locked=False,
            otp_attempts=0,
            session_version=0,
        )
        values.update(fields)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers(container):
    """Bearer header for a user, built from the same claims the API issues."""
    from app.usecases.session_tokens import token_claims

    def _auth_headers(user):
        token = container.token_service.create_access_token(token_claims(user))
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
