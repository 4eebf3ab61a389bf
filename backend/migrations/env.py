# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Alembic environment for the identity schema.

Online runs reuse the application's own engine (same URL, same pool
settings); offline runs render SQL from the configured URL.  The three
identity models are imported so that ``--autogenerate`` sees every table.
"""

import sys
import os

# backend/ must be importable for ``core.config`` and ``models.*``
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from alembic import context

from core.config import settings
from database import Base, engine

import models.user                  # noqa: F401, E402
import models.verification_code     # noqa: F401, E402
import models.password_reset_token  # noqa: F401, E402


def run_migrations_online():
    with engine.connect() as conn:
        context.configure(
            connection=conn,
            target_metadata=Base.metadata,
            compare_type=True,
            # SQLite cannot ALTER constraints in place
            render_as_batch=conn.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


def run_migrations_offline():
    context.configure(
        url=settings.database_url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
