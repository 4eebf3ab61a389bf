# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""User ORM model – the one durable identity record."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from database import Base

ROLES = ("user", "admin")


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        # (provider, oauth_id) identifies one external account.  Rows with
        # both columns NULL do not collide.
        UniqueConstraint("oauth_provider", "oauth_id", name="uq_users_oauth"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Stored lower-cased; see identity.resolver.normalize_email
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(64), unique=True, nullable=True, index=True)
    # NULL for OAuth-only accounts and email placeholders
    password_hash = Column(String(255), nullable=True)
    role = Column(Enum(*ROLES, name="user_role"), nullable=False, default="user", server_default="user")
    oauth_provider = Column(String(32), nullable=True)
    oauth_id = Column(String(255), nullable=True)
    profile_picture_url = Column(String(2048), nullable=True)
    is_email_verified = Column(Boolean, nullable=False, default=False, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"
