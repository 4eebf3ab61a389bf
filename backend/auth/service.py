# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Sign-in flows: register, login, OAuth login and session lookup.

Every successful flow ends in :func:`issue_session`, which signs a token for
the resolved user and pairs it with the public user view.

Security notes
--------------
* Login returns the *same* error whether the email doesn't exist, the
  account has no password (OAuth-only or placeholder), or the password is
  wrong.  This prevents user-enumeration attacks.
* Local registration starts with ``is_email_verified = False``; logging in
  does not require verification, completing a profile does.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.schemas import AuthResponse, SessionResponse, UserPublic
from core.config import settings
from core.errors import (
    EmailAlreadyExists,
    InvalidCredentials,
    TokenInvalid,
    UsernameAlreadyExists,
)
from core.logger import logger
from core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from identity.resolver import (
    get_user_by_email,
    get_user_by_id,
    link_oauth,
    normalize_email,
    username_taken,
)
from models.user import User


def issue_session(user: User) -> AuthResponse:
    token = create_access_token(user.id, user.email, user.role, settings.secret_key)
    return AuthResponse(access_token=token, user=UserPublic.model_validate(user))


def register(db: Session, email: str, password: str, username: str | None = None) -> AuthResponse:
    """Create a password account and sign the caller in."""
    email = normalize_email(email)
    username = (username or "").strip() or None

    if get_user_by_email(db, email):
        raise EmailAlreadyExists()
    if username and username_taken(db, username):
        raise UsernameAlreadyExists()

    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password),
        role="user",
        is_email_verified=False,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # lost a race against a concurrent registration
        db.rollback()
        if get_user_by_email(db, email):
            raise EmailAlreadyExists() from exc
        raise UsernameAlreadyExists() from exc
    db.refresh(user)

    logger.info("User registered | user_id=%s", user.id)
    return issue_session(user)


def login(db: Session, email: str, password: str) -> AuthResponse:
    """Authenticate with email + password and return a signed session."""
    user = get_user_by_email(db, email) if (email or "").strip() else None

    # Unified failure path – no information leaks about which check failed
    if not user or not verify_password(password, user.password_hash):
        logger.info("Login failed")
        raise InvalidCredentials()

    logger.info("User logged in | user_id=%s", user.id)
    return issue_session(user)


def oauth_login(
    db: Session,
    email: str,
    provider: str,
    oauth_id: str,
    picture: str | None = None,
    display_name: str | None = None,
) -> AuthResponse:
    """
    Sign in with an identity already asserted by a trusted OAuth provider.
    The provider's email is taken as verified.
    """
    user = link_oauth(db, email, provider, oauth_id, picture=picture, display_name=display_name)
    logger.info("OAuth login | user_id=%s provider=%s", user.id, user.oauth_provider)
    return issue_session(user)


def get_session(db: Session, token: str) -> SessionResponse:
    """
    Resolve a session token to the current public user view.  A token whose
    user no longer exists is treated as invalid.
    """
    claims = decode_access_token(token, settings.secret_key)
    user = get_user_by_id(db, claims.id)
    if not user:
        raise TokenInvalid()
    return SessionResponse(
        user=UserPublic.model_validate(user),
        issued_at=claims.iat,
        expires_at=claims.exp,
    )
