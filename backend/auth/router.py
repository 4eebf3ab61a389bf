# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Auth endpoints – register, login, session lookup, current-user profile.

All failures are raised as ``core.errors.AppError`` subclasses and rendered
by the handler in ``main.py``; nothing here builds an error response by hand.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from auth import service
from auth.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    SessionResponse,
    UpdateProfileRequest,
    UserPublic,
)
from core.errors import Unauthorized, UserNotFound
from core.security import SessionClaims, get_current_identity, oauth2_scheme
from database import get_db
from identity.resolver import get_user_by_id, update_profile

router = APIRouter(prefix="/auth", tags=["auth"])


# ---------------------------------------------------------------------------
# POST /auth/register
# ---------------------------------------------------------------------------


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create a password account and return a signed session token."""
    return service.register(db, body.email, body.password, body.username)


# ---------------------------------------------------------------------------
# POST /auth/login
# ---------------------------------------------------------------------------


@router.post("/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return a signed session token."""
    return service.login(db, body.email, body.password)


# ---------------------------------------------------------------------------
# GET /auth/session
# ---------------------------------------------------------------------------


@router.get("/session", response_model=SessionResponse)
def session(token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)):
    """Resolve the bearer token to the stored user and the token's lifetime."""
    if not token:
        raise Unauthorized()
    return service.get_session(db, token)


# ---------------------------------------------------------------------------
# GET /auth/me
# ---------------------------------------------------------------------------


@router.get("/me", response_model=UserPublic)
def me(
    identity: SessionClaims = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Return the authenticated user's public profile (no secrets)."""
    user = get_user_by_id(db, identity.id)
    if not user:
        raise UserNotFound()
    return user


# ---------------------------------------------------------------------------
# PATCH /auth/me
# ---------------------------------------------------------------------------


@router.patch("/me", response_model=UserPublic)
def update_me(
    body: UpdateProfileRequest,
    identity: SessionClaims = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    """Update username and/or profile picture; omitted fields are kept."""
    return update_profile(
        db,
        identity.id,
        username=body.username,
        picture=body.profile_picture_url,
    )
