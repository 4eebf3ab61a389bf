# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Email verification codes.

One live code per user.  A successful check deletes the code and sets
``users.is_email_verified`` in the same transaction; a failed check changes
nothing.  Wrong or stale codes are an expected adversarial path, so
:func:`verify_code` answers with a bool instead of raising.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import Session

from core.errors import UserNotFound
from core.logger import logger
from identity.resolver import get_user_by_email, get_user_by_id
from models.user import User
from models.verification_code import VerificationCode


def to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def store_verification_code(db: Session, user_id: int, code: str, expires_at: datetime) -> None:
    """Issue *code* for *user_id*, replacing any code issued before."""
    if not get_user_by_id(db, user_id):
        raise UserNotFound()

    db.query(VerificationCode).filter(VerificationCode.user_id == user_id).delete(
        synchronize_session=False
    )
    db.add(VerificationCode(user_id=user_id, code=code.strip(), expires_at=to_utc(expires_at)))
    db.commit()
    logger.info("Verification code issued | user_id=%s", user_id)


def verify_code(db: Session, email: str, code: str) -> bool:
    """
    Consume the live code for *email* if it matches and has not expired.

    The conditional DELETE is the claim: of any number of concurrent callers
    presenting the right code, exactly one sees a deleted row.
    """
    user = get_user_by_email(db, email)
    if not user:
        return False

    now = datetime.now(timezone.utc)
    deleted = (
        db.query(VerificationCode)
        .filter(
            VerificationCode.user_id == user.id,
            VerificationCode.code == (code or "").strip(),
            VerificationCode.expires_at > now,
        )
        .delete(synchronize_session=False)
    )
    if deleted != 1:
        db.rollback()
        _log_rejection(db, user.id, code)
        return False

    db.query(User).filter(User.id == user.id).update(
        {User.is_email_verified: True}, synchronize_session=False
    )
    db.commit()
    logger.info("Email verified | user_id=%s", user.id)
    return True


def _log_rejection(db: Session, user_id: int, code: str) -> None:
    row = db.query(VerificationCode).filter(VerificationCode.user_id == user_id).first()
    if row is None:
        reason = "no_code"
    elif row.code != (code or "").strip():
        reason = "mismatch"
    else:
        reason = "expired"
    logger.info("Verification code rejected | user_id=%s reason=%s", user_id, reason)
