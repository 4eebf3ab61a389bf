# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Identity resolver – find, create and merge ``users`` rows.

Three lookup keys address the same table: the numeric id, the (lower-cased)
email, and the ``(oauth_provider, oauth_id)`` pair.  Signup can arrive from
several directions (password registration, an email-first multi-step flow,
an OAuth provider) and this module reconciles them into one record.

Merge rule
----------
Provider-supplied data only fills gaps.  A username or profile picture that
is already set is never overwritten by an OAuth link.
"""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.errors import (
    InvalidRequest,
    NotVerified,
    UserNotFound,
    UsernameAlreadyExists,
)
from core.logger import logger
from core.security import hash_password
from models.user import ROLES, User

_USERNAME_MAX = 64


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise InvalidRequest("email is required")
    return email


def _clean(value: str | None) -> str | None:
    """Strip whitespace; blank becomes None."""
    if value is None:
        return None
    value = value.strip()
    return value or None


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def get_user_by_oauth(db: Session, provider: str, oauth_id: str) -> User | None:
    return (
        db.query(User)
        .filter(User.oauth_provider == provider.strip().lower(), User.oauth_id == oauth_id.strip())
        .first()
    )


def find_user(
    db: Session,
    user_id: int | None = None,
    email: str | None = None,
    provider: str | None = None,
    oauth_id: str | None = None,
) -> User | None:
    """
    Resolve a user by the first usable key: id, then email, then the
    ``(provider, oauth_id)`` pair.  Returns None when nothing matches.
    """
    if user_id is not None:
        return get_user_by_id(db, user_id)
    if _clean(email):
        return get_user_by_email(db, email)
    if _clean(provider) and _clean(oauth_id):
        return get_user_by_oauth(db, provider, oauth_id)
    raise InvalidRequest("Missing search criteria")


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.id).all()


def username_taken(db: Session, username: str, exclude_user_id: int | None = None) -> bool:
    q = db.query(User.id).filter(User.username == username)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None


def available_username(db: Session, candidate: str | None) -> str:
    """
    Return *candidate* if free, otherwise the first free ``candidate-N``.
    Used only for provider-derived names; user-chosen names never get a
    suffix (they fail with UsernameAlreadyExists instead).
    """
    base = (_clean(candidate) or "user")[: _USERNAME_MAX - 6]
    if not username_taken(db, base):
        return base
    n = 2
    while username_taken(db, f"{base}-{n}"):
        n += 1
    return f"{base}-{n}"


# ---------------------------------------------------------------------------
# Creation / merging
# ---------------------------------------------------------------------------


def create_from_email(db: Session, email: str) -> User:
    """
    Create the minimal placeholder row used by email-first signup.  If the
    email is already registered the existing row is returned unchanged.
    """
    email = normalize_email(email)
    existing = get_user_by_email(db, email)
    if existing:
        return existing

    user = User(email=email, role="user", is_email_verified=False)
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent request inserted the same email first
        db.rollback()
        return get_user_by_email(db, email)
    db.refresh(user)
    logger.info("Placeholder user created | user_id=%s", user.id)
    return user


def _fill_gaps(db: Session, user: User, picture: str | None, display_name: str | None) -> None:
    if picture and not user.profile_picture_url:
        user.profile_picture_url = picture
    if display_name and not user.username:
        user.username = available_username(db, display_name)


def link_oauth(
    db: Session,
    email: str,
    provider: str,
    oauth_id: str,
    picture: str | None = None,
    display_name: str | None = None,
    _retry: bool = True,
) -> User:
    """
    Attach an OAuth identity to a user, creating the user if needed.

    Resolution order:

    a. existing ``(provider, oauth_id)`` → fill missing picture / username
    b. existing email → attach the pair, mark the email verified
    c. otherwise → new verified user; username is *display_name* or the
       email local-part, suffixed if taken
    """
    email = normalize_email(email)
    provider = _clean(provider)
    oauth_id = _clean(oauth_id)
    if not provider or not oauth_id:
        raise InvalidRequest("provider and oauth_id are required")
    provider = provider.lower()
    picture = _clean(picture)
    display_name = _clean(display_name)

    user = get_user_by_oauth(db, provider, oauth_id)
    if user:
        _fill_gaps(db, user, picture, display_name)
        db.commit()
        db.refresh(user)
        return user

    user = get_user_by_email(db, email)
    if user:
        if user.oauth_provider and (user.oauth_provider, user.oauth_id) != (provider, oauth_id):
            logger.info(
                "Re-linking OAuth identity | user_id=%s old_provider=%s new_provider=%s",
                user.id, user.oauth_provider, provider,
            )
        user.oauth_provider = provider
        user.oauth_id = oauth_id
        user.is_email_verified = True
        _fill_gaps(db, user, picture, display_name)
        db.commit()
        db.refresh(user)
        logger.info("OAuth identity linked | user_id=%s provider=%s", user.id, provider)
        return user

    user = User(
        email=email,
        username=available_username(db, display_name or email.split("@", 1)[0]),
        role="user",
        oauth_provider=provider,
        oauth_id=oauth_id,
        profile_picture_url=picture,
        is_email_verified=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if not _retry:
            raise
        # lost a race on email, username or the oauth pair – resolve again
        return link_oauth(db, email, provider, oauth_id, picture, display_name, _retry=False)
    db.refresh(user)
    logger.info("User created from OAuth | user_id=%s provider=%s", user.id, provider)
    return user


# ---------------------------------------------------------------------------
# Updates
# ---------------------------------------------------------------------------


def set_password_and_username(db: Session, email: str, username: str, password: str) -> User:
    """
    Complete an email-first signup.  Only allowed once the email has been
    verified; otherwise raises :class:`NotVerified`.
    """
    user = get_user_by_email(db, email)
    if not user or not user.is_email_verified:
        raise NotVerified()

    username = _clean(username)
    if not username:
        raise InvalidRequest("username is required")
    if username_taken(db, username, exclude_user_id=user.id):
        raise UsernameAlreadyExists()

    user.username = username
    user.password_hash = hash_password(password)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UsernameAlreadyExists() from exc
    db.refresh(user)
    logger.info("Profile completed | user_id=%s", user.id)
    return user


def update_profile(
    db: Session,
    user_id: int,
    username: str | None = None,
    picture: str | None = None,
) -> User:
    """
    Partial update.  ``None`` keeps the stored value; an empty *picture*
    clears it.
    """
    user = get_user_by_id(db, user_id)
    if not user:
        raise UserNotFound()

    if username is not None:
        username = _clean(username)
        if not username:
            raise InvalidRequest("username must not be blank")
        if username != user.username and username_taken(db, username, exclude_user_id=user.id):
            raise UsernameAlreadyExists()
        user.username = username

    if picture is not None:
        user.profile_picture_url = _clean(picture)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise UsernameAlreadyExists() from exc
    db.refresh(user)
    return user


def change_role(db: Session, user_id: int, role: str) -> User:
    if role not in ROLES:
        raise InvalidRequest("Invalid role. Must be 'admin' or 'user'")

    user = get_user_by_id(db, user_id)
    if not user:
        raise UserNotFound()

    user.role = role
    db.commit()
    db.refresh(user)
    logger.info("Role changed | user_id=%s role=%s", user.id, role)
    return user
