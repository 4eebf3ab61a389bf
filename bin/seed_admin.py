# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user, or promotes an existing
account with that email.

Run once after the initial migration:
    python bin/seed_admin.py

The script reads FIRST_ADMIN_EMAIL and FIRST_ADMIN_PASSWORD from etc/app.conf
(or the environment).  The seeded account counts as email-verified: the
operator who owns the config owns the mailbox.
"""

import sys
import os

# bin/seed_admin.py  →  ../backend
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR  = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from core.config import settings                      # noqa: E402
from core.logger import logger                        # noqa: E402
from core.security import hash_password               # noqa: E402
from database import SessionLocal                     # noqa: E402
from identity.resolver import get_user_by_email, normalize_email  # noqa: E402
from models.user import User                          # noqa: E402


def seed(db) -> User | None:
    if not settings.first_admin_email or not settings.first_admin_password:
        logger.warning("FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set – nothing to do")
        return None

    email = normalize_email(settings.first_admin_email)
    existing = get_user_by_email(db, email)
    if existing:
        if existing.role != "admin":
            existing.role = "admin"
            db.commit()
            logger.info("Existing user promoted to admin | user_id=%s", existing.id)
        else:
            logger.info("Admin already exists – skipping | user_id=%s", existing.id)
        return existing

    admin = User(
        email=email,
        password_hash=hash_password(settings.first_admin_password),
        role="admin",
        is_email_verified=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin created | user_id=%s", admin.id)
    return admin


if __name__ == "__main__":
    session = SessionLocal()
    try:
        seed(session)
    finally:
        session.close()
