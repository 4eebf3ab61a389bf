# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Internal endpoints – direct access to the identity resolver and the two
single-use stores for companion services sharing the user table.

The whole router sits behind ``require_service_key``.  Nothing here is
reachable with a user session token.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from auth import service as auth_service
from auth.schemas import AuthResponse, UserPublic
from core.errors import UserNotFound
from core.security import require_service_key
from database import get_db
from identity import password_reset, resolver, verification
from internal.schemas import (
    ConsumeResetTokenRequest,
    ConsumeResetTokenResponse,
    CreateResetTokenRequest,
    CreateUserEmailRequest,
    FindUserRequest,
    OAuthUserRequest,
    OkResponse,
    ResetPasswordRequest,
    SetPasswordRequest,
    SetUsernamePasswordRequest,
    StoreVerificationCodeRequest,
    UpdateUserRequest,
    VerifyCodeRequest,
)

router = APIRouter(
    prefix="/internal",
    tags=["internal"],
    dependencies=[Depends(require_service_key)],
)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.post("/find-user", response_model=UserPublic)
def find_user(body: FindUserRequest, db: Session = Depends(get_db)):
    user = resolver.find_user(
        db,
        user_id=body.id,
        email=body.email,
        provider=body.provider,
        oauth_id=body.oauth_id,
    )
    if not user:
        raise UserNotFound()
    return user


@router.post("/create-user-email", response_model=UserPublic)
def create_user_email(body: CreateUserEmailRequest, db: Session = Depends(get_db)):
    return resolver.create_from_email(db, body.email)


@router.post("/set-oauth-user", response_model=UserPublic)
def set_oauth_user(body: OAuthUserRequest, db: Session = Depends(get_db)):
    return resolver.link_oauth(
        db,
        body.email,
        body.provider,
        body.oauth_id,
        picture=body.profile_picture_url,
        display_name=body.display_name,
    )


@router.post("/oauth-login", response_model=AuthResponse)
def oauth_login(body: OAuthUserRequest, db: Session = Depends(get_db)):
    """link_oauth followed by a fresh session token for the resolved user."""
    return auth_service.oauth_login(
        db,
        body.email,
        body.provider,
        body.oauth_id,
        picture=body.profile_picture_url,
        display_name=body.display_name,
    )


@router.post("/set-username-password", response_model=UserPublic)
def set_username_password(body: SetUsernamePasswordRequest, db: Session = Depends(get_db)):
    return resolver.set_password_and_username(db, body.email, body.username, body.password)


@router.post("/users/update", response_model=UserPublic)
def update_user(body: UpdateUserRequest, db: Session = Depends(get_db)):
    return resolver.update_profile(
        db,
        body.id,
        username=body.username,
        picture=body.profile_picture_url,
    )


@router.get("/users", response_model=list[UserPublic])
def list_users(db: Session = Depends(get_db)):
    return resolver.list_users(db)


# ---------------------------------------------------------------------------
# Verification codes
# ---------------------------------------------------------------------------


@router.post("/store-verification-code", response_model=OkResponse)
def store_verification_code(body: StoreVerificationCodeRequest, db: Session = Depends(get_db)):
    verification.store_verification_code(db, body.user_id, body.code, body.expires_at)
    return OkResponse()


@router.post("/verify-code", response_model=OkResponse)
def verify_code(body: VerifyCodeRequest, db: Session = Depends(get_db)):
    """Always 200; ``ok`` tells the caller whether the code was accepted."""
    return OkResponse(ok=verification.verify_code(db, body.email, body.code))


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@router.post("/create-reset-token", response_model=OkResponse)
def create_reset_token(body: CreateResetTokenRequest, db: Session = Depends(get_db)):
    """Same answer whether or not the email belongs to an account."""
    password_reset.create_reset_token(db, body.email, body.token, body.expires_at)
    return OkResponse()


@router.post("/consume-reset-token", response_model=ConsumeResetTokenResponse)
def consume_reset_token(body: ConsumeResetTokenRequest, db: Session = Depends(get_db)):
    user_id = password_reset.consume_reset_token(db, body.token)
    return ConsumeResetTokenResponse(user_id=user_id)


@router.post("/set-password", response_model=OkResponse)
def set_password(body: SetPasswordRequest, db: Session = Depends(get_db)):
    password_reset.set_password(db, body.user_id, body.new_password)
    return OkResponse()


@router.post("/reset-password", response_model=ConsumeResetTokenResponse)
def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    user_id = password_reset.reset_password(db, body.token, body.new_password)
    return ConsumeResetTokenResponse(user_id=user_id)
