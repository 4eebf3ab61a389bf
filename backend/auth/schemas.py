# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the auth endpoints."""

from typing import Optional

from pydantic import BaseModel, Field


# -- Requests --------------------------------------------------------------


class RegisterRequest(BaseModel):
    email: str
    password: str = Field(min_length=8, max_length=4096)
    username: Optional[str] = Field(default=None, max_length=64)


class LoginRequest(BaseModel):
    email: str
    password: str = Field(max_length=4096)


class UpdateProfileRequest(BaseModel):
    username: Optional[str] = Field(default=None, max_length=64)
    profile_picture_url: Optional[str] = Field(default=None, max_length=2048)


# -- Responses -------------------------------------------------------------


class UserPublic(BaseModel):
    """The only user shape that leaves the service: no hash, no oauth id."""

    id: int
    email: str
    username: Optional[str] = None
    role: str
    profile_picture_url: Optional[str] = None
    is_email_verified: bool

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserPublic


class SessionResponse(BaseModel):
    user: UserPublic
    issued_at: int
    expires_at: int
