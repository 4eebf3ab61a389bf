"""Tests for the email verification code store."""

from datetime import datetime, timedelta, timezone

import pytest

from core.errors import UserNotFound
from identity.verification import store_verification_code, to_utc, verify_code
from models.user import User
from models.verification_code import VerificationCode


def _in(minutes: int) -> datetime:
    return datetime.now(timezone.utc) + timedelta(minutes=minutes)


def _is_verified(db, user_id: int) -> bool:
    db.expire_all()
    return db.query(User).filter(User.id == user_id).one().is_email_verified


def test_correct_code_verifies_once(db, make_user):
    user = make_user(email="a@x.com")
    store_verification_code(db, user.id, "123456", _in(10))

    assert verify_code(db, "a@x.com", "123456") is True
    assert _is_verified(db, user.id)

    # single use
    assert verify_code(db, "a@x.com", "123456") is False
    assert db.query(VerificationCode).count() == 0


def test_wrong_code_changes_nothing(db, make_user):
    user = make_user(email="a@x.com")
    store_verification_code(db, user.id, "123456", _in(10))

    assert verify_code(db, "a@x.com", "654321") is False
    assert not _is_verified(db, user.id)

    # the live code survives a wrong guess
    assert verify_code(db, "a@x.com", "123456") is True


def test_expired_code_is_rejected(db, make_user):
    user = make_user(email="a@x.com")
    store_verification_code(db, user.id, "123456", _in(-1))

    assert verify_code(db, "a@x.com", "123456") is False
    assert not _is_verified(db, user.id)


def test_new_code_replaces_old(db, make_user):
    user = make_user(email="a@x.com")
    store_verification_code(db, user.id, "111111", _in(10))
    store_verification_code(db, user.id, "222222", _in(10))

    assert db.query(VerificationCode).filter(VerificationCode.user_id == user.id).count() == 1
    assert verify_code(db, "a@x.com", "111111") is False
    assert verify_code(db, "a@x.com", "222222") is True


def test_email_is_matched_case_insensitively(db, make_user):
    user = make_user(email="a@x.com")
    store_verification_code(db, user.id, "123456", _in(10))

    assert verify_code(db, " A@X.com", " 123456 ") is True


def test_unknown_email(db):
    assert verify_code(db, "ghost@x.com", "123456") is False


def test_no_code_issued(db, make_user):
    make_user(email="a@x.com")
    assert verify_code(db, "a@x.com", "123456") is False


def test_store_for_unknown_user(db):
    with pytest.raises(UserNotFound):
        store_verification_code(db, 404, "123456", _in(10))


def test_naive_expiry_is_taken_as_utc(db, make_user):
    user = make_user(email="a@x.com")
    naive = datetime.now(timezone.utc).replace(tzinfo=None) + timedelta(minutes=10)
    store_verification_code(db, user.id, "123456", naive)

    assert verify_code(db, "a@x.com", "123456") is True


def test_to_utc_converts_offsets():
    plus_two = timezone(timedelta(hours=2))
    value = datetime(2026, 1, 1, 12, 0, tzinfo=plus_two)
    assert to_utc(value) == datetime(2026, 1, 1, 10, 0, tzinfo=timezone.utc)
    assert to_utc(datetime(2026, 1, 1, 12, 0)).tzinfo is timezone.utc
