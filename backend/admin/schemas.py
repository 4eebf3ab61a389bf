# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""Pydantic request / response models for the admin endpoints."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


# -- Requests --------------------------------------------------------------


class ChangeRoleRequest(BaseModel):
    role: str  # "admin" or "user"


# -- Responses -------------------------------------------------------------


class UserRow(BaseModel):
    id: int
    email: str
    username: Optional[str] = None
    role: str
    oauth_provider: Optional[str] = None
    profile_picture_url: Optional[str] = None
    is_email_verified: bool
    has_password: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class UserListResponse(BaseModel):
    users: List[UserRow]
