"""Tests for the first-admin bootstrap script."""

import importlib.util
from pathlib import Path

import pytest

from core.security import verify_password
from models.user import User

_SCRIPT = Path(__file__).resolve().parent.parent / "bin" / "seed_admin.py"


@pytest.fixture
def seed_admin(monkeypatch):
    spec = importlib.util.spec_from_file_location("seed_admin", _SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    def _configure(email: str, password: str):
        patched = module.settings.model_copy(
            update={"first_admin_email": email, "first_admin_password": password}
        )
        monkeypatch.setattr(module, "settings", patched)
        return module

    return _configure


def test_creates_verified_admin(db, seed_admin):
    admin = seed_admin("Root@x.com", "rootpass123").seed(db)

    assert admin.email == "root@x.com"
    assert admin.role == "admin"
    assert admin.is_email_verified is True
    assert verify_password("rootpass123", admin.password_hash)


def test_promotes_existing_user(db, make_user, seed_admin):
    user = make_user(email="root@x.com", password="mine12345")

    admin = seed_admin("root@x.com", "rootpass123").seed(db)

    assert admin.id == user.id
    assert admin.role == "admin"
    # an existing password is left alone
    assert verify_password("mine12345", admin.password_hash)
    assert db.query(User).count() == 1


def test_second_run_is_a_no_op(db, seed_admin):
    module = seed_admin("root@x.com", "rootpass123")
    first = module.seed(db)
    second = module.seed(db)

    assert first.id == second.id
    assert db.query(User).count() == 1


def test_unset_settings_do_nothing(db, seed_admin):
    assert seed_admin("", "").seed(db) is None
    assert db.query(User).count() == 0
