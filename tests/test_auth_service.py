"""Tests for the sign-in flows behind /auth."""

import pytest

from auth import service
from core.config import settings
from core.errors import (
    EmailAlreadyExists,
    InvalidCredentials,
    TokenInvalid,
    UsernameAlreadyExists,
)
from core.security import create_access_token, decode_access_token


def test_register_then_login(db):
    registered = service.register(db, "a@x.com", "secret123", "alice")

    assert registered.token_type == "bearer"
    assert registered.user.email == "a@x.com"
    assert registered.user.username == "alice"
    assert registered.user.role == "user"
    assert registered.user.is_email_verified is False

    claims = decode_access_token(registered.access_token, settings.secret_key)
    assert claims.id == registered.user.id
    assert claims.email == "a@x.com"
    assert claims.role == "user"

    logged_in = service.login(db, "A@X.com", "secret123")
    assert logged_in.user.id == registered.user.id


def test_register_duplicate_email_ignores_case(db):
    service.register(db, "a@x.com", "secret123")
    with pytest.raises(EmailAlreadyExists):
        service.register(db, "A@X.COM", "other1234")


def test_register_duplicate_username(db):
    service.register(db, "a@x.com", "secret123", "alice")
    with pytest.raises(UsernameAlreadyExists):
        service.register(db, "b@x.com", "secret123", "alice")


def test_blank_username_is_stored_as_none(db):
    assert service.register(db, "a@x.com", "secret123", "   ").user.username is None


def test_login_failures_are_indistinguishable(db, make_user):
    make_user(email="a@x.com", password="secret123")
    make_user(email="oauth@x.com", oauth_provider="google", oauth_id="g-1", verified=True)

    errors = []
    for email, password in [
        ("a@x.com", "wrongpass"),
        ("ghost@x.com", "secret123"),
        ("oauth@x.com", "anything1"),
    ]:
        with pytest.raises(InvalidCredentials) as excinfo:
            service.login(db, email, password)
        errors.append((excinfo.value.status_code, excinfo.value.message))

    assert len(set(errors)) == 1


@pytest.mark.parametrize("email", ["", "   ", None])
def test_login_with_blank_email_is_invalid_credentials(db, email):
    with pytest.raises(InvalidCredentials):
        service.login(db, email, "secret123")


def test_oauth_login_creates_verified_user(db):
    resp = service.oauth_login(db, "c@x.com", "github", "gh-1", display_name="carol")

    assert resp.user.username == "carol"
    assert resp.user.is_email_verified is True
    assert decode_access_token(resp.access_token, settings.secret_key).id == resp.user.id


def test_oauth_login_lands_on_password_account(db):
    registered = service.register(db, "a@x.com", "secret123", "alice")

    resp = service.oauth_login(db, "a@x.com", "google", "g-1", picture="p.png")

    assert resp.user.id == registered.user.id
    assert resp.user.username == "alice"
    assert resp.user.profile_picture_url == "p.png"
    # the password still works after the link
    assert service.login(db, "a@x.com", "secret123").user.id == registered.user.id


def test_get_session(db, make_user):
    user = make_user(email="a@x.com", username="alice", role="admin")
    token = create_access_token(user.id, user.email, user.role, settings.secret_key, ttl=120)

    resp = service.get_session(db, token)

    assert resp.user.id == user.id
    assert resp.user.role == "admin"
    assert resp.expires_at - resp.issued_at == 120


def test_get_session_for_deleted_user(db):
    token = create_access_token(999, "gone@x.com", "user", settings.secret_key)
    with pytest.raises(TokenInvalid):
        service.get_session(db, token)
