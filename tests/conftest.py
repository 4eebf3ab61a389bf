"""Shared fixtures: in-memory database, app client, user and token factories."""

import os

# Settings are read once at import time, so the environment must be in place
# before anything from backend/ is imported.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-0123456789abcdef0123456789abcdef"
os.environ["JWT_EXPIRES_IN"] = "1h"
os.environ["PASSWORD_HASH_ROUNDS"] = "1000"
os.environ["INTERNAL_API_KEY"] = "internal-test-key"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import settings
from core.security import create_access_token, hash_password
from database import Base, get_db
from main import app
from models.user import User
import models.password_reset_token  # noqa: F401
import models.verification_code  # noqa: F401

INTERNAL_HEADERS = {"X-API-Key": "internal-test-key"}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Insert a user row directly, bypassing the signup flows."""

    def _make_user(
        email: str = "a@x.com",
        password: str | None = None,
        username: str | None = None,
        role: str = "user",
        verified: bool = False,
        oauth_provider: str | None = None,
        oauth_id: str | None = None,
        picture: str | None = None,
    ) -> User:
        user = User(
            email=email,
            username=username,
            password_hash=hash_password(password) if password else None,
            role=role,
            is_email_verified=verified,
            oauth_provider=oauth_provider,
            oauth_id=oauth_id,
            profile_picture_url=picture,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User, ttl: int | None = None) -> dict[str, str]:
        token = create_access_token(user.id, user.email, user.role, settings.secret_key, ttl=ttl)
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
