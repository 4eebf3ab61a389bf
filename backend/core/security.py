# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Central security module.  All cryptographic primitives and auth guards live
here.  No other module should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Single-use secrets                       (verification codes, reset tokens)
3. Session tokens                           (PyJWT / HS256, pinned)
4. FastAPI dependency guards                (get_current_identity, require_admin,
                                             require_service_key)
"""

import hashlib
import re
import secrets
import time
from dataclasses import dataclass

import jwt as _jwt        # PyJWT
from passlib.exc import PasswordSizeError
from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps
from fastapi import Depends, Header, Request
from fastapi.security import OAuth2PasswordBearer

from core.config import settings
from core.errors import (
    Forbidden,
    HashError,
    InvalidRequest,
    TokenExpired,
    TokenInvalid,
    TokenSignError,
    Unauthorized,
)
from core.logger import logger

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# The salt is embedded in the passlib hash string, e.g. "$pbkdf2-sha256$...".
# Cost comes from settings.password_hash_rounds.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """
    Hash a plaintext password with PBKDF2-SHA256.

    Raises :class:`HashError` only when the hasher itself fails; weak or
    empty input is a caller concern.  Input over passlib's size cap is a
    client error, not a hasher fault.
    """
    try:
        return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)
    except PasswordSizeError as exc:
        raise InvalidRequest("Password is too long") from exc
    except (ValueError, TypeError) as exc:
        logger.error("Password hashing failed", exc_info=True)
        raise HashError() from exc


def verify_password(plain: str, stored_hash: str | None) -> bool:
    """
    Constant-time verification of a plaintext password against a hash
    produced by :func:`hash_password`.  A missing or malformed hash is a
    non-match, never an error.
    """
    if not stored_hash:
        return False
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# 2.  Single-use secrets
# ---------------------------------------------------------------------------


def generate_verification_code(digits: int = 6) -> str:
    """Random zero-padded numeric code, e.g. ``"048213"``."""
    return str(secrets.randbelow(10 ** digits)).zfill(digits)


def generate_reset_token() -> str:
    """32 random bytes, hex encoded."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used to store reset tokens at rest."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# 3.  Session tokens
# ---------------------------------------------------------------------------

ALGORITHM = "HS256"

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60

_DURATION_RE = re.compile(r"^(\d+)([smhd]?)$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str | None) -> int:
    """
    Convert ``"30m"``, ``"12h"``, ``"7d"``, ``"45s"`` or ``"3600"`` into
    seconds.  Anything else (including zero) yields 7 days.
    """
    match = _DURATION_RE.match((value or "").strip().lower())
    if not match:
        return DEFAULT_TTL_SECONDS
    seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    return seconds or DEFAULT_TTL_SECONDS


@dataclass(frozen=True)
class SessionClaims:
    sub: int
    email: str
    role: str
    iat: int
    exp: int

    @property
    def id(self) -> int:
        return self.sub

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def create_access_token(
    user_id: int,
    email: str,
    role: str,
    secret: str,
    ttl: int | None = None,
) -> str:
    """
    Sign a compact HS256 JWT carrying ``{sub, email, role, iat, exp}``.

    ``exp - iat`` is exactly *ttl* seconds (default: ``settings.jwt_expires_in``).
    """
    if ttl is None:
        ttl = parse_duration(settings.jwt_expires_in)
    iat = int(time.time())
    payload = {
        "sub": int(user_id),
        "email": email,
        "role": role,
        "iat": iat,
        "exp": iat + int(ttl),
    }
    try:
        return _jwt.encode(payload, secret, algorithm=ALGORITHM)
    except (_jwt.PyJWTError, TypeError, ValueError) as exc:
        logger.error("Session token signing failed", exc_info=True)
        raise TokenSignError() from exc


def decode_access_token(token: str, secret: str) -> SessionClaims:
    """
    Verify signature and expiry of a session token.

    Only HS256 is accepted whatever the header says.  Raises
    :class:`TokenExpired` for a lapsed ``exp`` and :class:`TokenInvalid` for
    everything else; both render as the same 401.
    """
    try:
        payload = _jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            # "sub" is an integer on the wire
            options={"require": ["sub", "exp", "iat"], "verify_sub": False},
        )
    except _jwt.ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except _jwt.InvalidTokenError as exc:
        raise TokenInvalid() from exc

    sub, email, role = payload.get("sub"), payload.get("email"), payload.get("role")
    if isinstance(sub, bool) or not isinstance(sub, int):
        raise TokenInvalid()
    if not isinstance(email, str) or role not in ("user", "admin"):
        raise TokenInvalid()
    return SessionClaims(
        sub=sub,
        email=email,
        role=role,
        iat=int(payload["iat"]),
        exp=int(payload["exp"]),
    )


# ---------------------------------------------------------------------------
# 4.  FastAPI dependency guards
# ---------------------------------------------------------------------------

# The tokenUrl here is only used by the auto-generated OpenAPI docs.
# auto_error is off so that a missing header goes through the same
# AppError handler as every other auth failure.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def get_current_identity(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
) -> SessionClaims:
    """
    Dependency: verify the bearer token and attach the claims to
    ``request.state.identity``.  No database round-trip.

    Raises 401 if the header is missing or the token is invalid/expired.
    """
    if not token:
        raise Unauthorized()

    try:
        claims = decode_access_token(token, settings.secret_key)
    except TokenExpired:
        logger.info("Rejected expired session token | path=%s", request.url.path)
        raise
    except TokenInvalid:
        logger.warning("Rejected invalid session token | path=%s", request.url.path)
        raise

    request.state.identity = claims
    return claims


def require_admin(identity: SessionClaims = Depends(get_current_identity)) -> SessionClaims:
    """
    Dependency: wraps :func:`get_current_identity` and additionally asserts
    ``role == 'admin'``.  Raises 403 otherwise.
    """
    if not identity.is_admin:
        logger.warning("Admin access denied | user_id=%s", identity.id)
        raise Forbidden()
    return identity


def require_service_key(x_api_key: str | None = Header(None, alias="X-API-Key")) -> None:
    """
    Dependency for /internal/*: the caller must present the shared
    ``internal_api_key``.  With no key configured every call is refused.
    """
    expected = settings.internal_api_key
    if not expected or not x_api_key or not secrets.compare_digest(x_api_key, expected):
        raise Unauthorized("Invalid or missing API key")


def get_client_ip(request: Request) -> str:
    """
    Extract the client IP address from the request.
    Checks X-Forwarded-For header first (for proxies), then falls back to client host.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    if request.client:
        return request.client.host

    return "unknown"
