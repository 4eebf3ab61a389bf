# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Password reset tokens.

Tokens are opaque to this module: the caller generates one (see
``core.security.generate_reset_token``), hands the plaintext to the user out
of band, and we keep only its SHA-256 digest.

Consumption is a single conditional UPDATE (``is_used = false AND
expires_at > now``).  The database serialises concurrent updates on the same
row, so two callers racing with one token cannot both flip it.  Older
deployments did a plain SELECT followed by an unconditional UPDATE, which
let both racers through.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from core.errors import ResetTokenInvalid, UserNotFound
from core.logger import logger
from core.security import hash_password, hash_token
from identity.resolver import get_user_by_email
from identity.verification import to_utc
from models.password_reset_token import PasswordResetToken
from models.user import User


def create_reset_token(db: Session, email: str, token: str, expires_at: datetime) -> None:
    """
    Register *token* for the account behind *email*, replacing any earlier
    token.  An unknown or blank email is silently ignored so the caller's
    response cannot reveal whether the account exists.
    """
    user = get_user_by_email(db, email) if (email or "").strip() else None
    if not user:
        logger.info("Reset token requested for unknown email – ignored")
        return

    db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user.id).delete(
        synchronize_session=False
    )
    db.add(
        PasswordResetToken(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=to_utc(expires_at),
            is_used=False,
        )
    )
    db.commit()
    logger.info("Reset token issued | user_id=%s", user.id)


def _claim(db: Session, token: str) -> int:
    """
    Flip *token* from unused to used inside the caller's transaction and
    return its user id.  Rolls back and raises :class:`ResetTokenInvalid`
    for unknown, expired and already-used tokens alike.
    """
    if not token:
        raise ResetTokenInvalid()

    token_hash = hash_token(token)
    now = datetime.now(timezone.utc)
    claimed = (
        db.query(PasswordResetToken)
        .filter(
            PasswordResetToken.token_hash == token_hash,
            PasswordResetToken.is_used.is_(False),
            PasswordResetToken.expires_at > now,
        )
        .update({PasswordResetToken.is_used: True}, synchronize_session=False)
    )
    if claimed != 1:
        db.rollback()
        logger.info("Reset token rejected")
        raise ResetTokenInvalid()

    return (
        db.query(PasswordResetToken.user_id)
        .filter(PasswordResetToken.token_hash == token_hash)
        .scalar()
    )


def _replace_password(db: Session, user_id: int, password_hash: str) -> None:
    """Write the new hash and drop the user's reset tokens; no commit."""
    updated = (
        db.query(User)
        .filter(User.id == user_id)
        .update({User.password_hash: password_hash}, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        raise UserNotFound()
    db.query(PasswordResetToken).filter(PasswordResetToken.user_id == user_id).delete(
        synchronize_session=False
    )


def consume_reset_token(db: Session, token: str) -> int:
    """
    Atomically mark *token* used and return its user id.

    Raises :class:`ResetTokenInvalid` for unknown, expired and already-used
    tokens alike.
    """
    user_id = _claim(db, token)
    db.commit()
    logger.info("Reset token consumed | user_id=%s", user_id)
    return user_id


def set_password(db: Session, user_id: int, new_password: str) -> None:
    """Replace the password hash and drop every reset token of the user."""
    _replace_password(db, user_id, hash_password(new_password))
    db.commit()
    logger.info("Password changed | user_id=%s", user_id)


def reset_password(db: Session, token: str, new_password: str) -> int:
    """
    Consume *token* and set the new password in one transaction; returns the
    user id.  The password is hashed before the token is touched, so a
    rejected password leaves the token usable.
    """
    password_hash = hash_password(new_password)
    user_id = _claim(db, token)
    _replace_password(db, user_id, password_hash)
    db.commit()
    logger.info("Password reset | user_id=%s", user_id)
    return user_id
