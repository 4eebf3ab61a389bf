# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Pydantic request / response models for the internal (service) endpoints.

Callers of this surface are other services sharing the user table, and they
are not consistent about naming: every request model accepts both camelCase
and snake_case keys, plus the few legacy aliases listed per field.  Integer
ids also arrive as strings and are coerced.
"""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _InternalRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


_PICTURE = AliasChoices("profile_picture_url", "profilePictureUrl", "picture")


# -- Users -----------------------------------------------------------------


class FindUserRequest(_InternalRequest):
    id: Optional[int] = None
    email: Optional[str] = None
    provider: Optional[str] = None
    oauth_id: Optional[str] = None


class CreateUserEmailRequest(_InternalRequest):
    email: str


class OAuthUserRequest(_InternalRequest):
    email: str
    provider: str
    oauth_id: str
    profile_picture_url: Optional[str] = Field(
        default=None, max_length=2048, validation_alias=_PICTURE
    )
    display_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("display_name", "displayName", "username", "name"),
    )


class SetUsernamePasswordRequest(_InternalRequest):
    email: str
    username: str = Field(max_length=64)
    password: str = Field(min_length=8, max_length=4096)


class UpdateUserRequest(_InternalRequest):
    id: int
    username: Optional[str] = Field(default=None, max_length=64)
    profile_picture_url: Optional[str] = Field(
        default=None, max_length=2048, validation_alias=_PICTURE
    )


# -- Verification codes ----------------------------------------------------


class StoreVerificationCodeRequest(_InternalRequest):
    user_id: int
    code: str = Field(min_length=1, max_length=16)
    expires_at: datetime


class VerifyCodeRequest(_InternalRequest):
    email: str
    code: str


# -- Password reset --------------------------------------------------------


class CreateResetTokenRequest(_InternalRequest):
    email: str
    token: str = Field(min_length=1)
    expires_at: datetime


class ConsumeResetTokenRequest(_InternalRequest):
    token: str


class SetPasswordRequest(_InternalRequest):
    user_id: int
    new_password: str = Field(min_length=8, max_length=4096)


class ResetPasswordRequest(_InternalRequest):
    token: str
    new_password: str = Field(min_length=8, max_length=4096)


# -- Responses -------------------------------------------------------------


class OkResponse(BaseModel):
    ok: bool = True


class ConsumeResetTokenResponse(BaseModel):
    ok: bool = True
    user_id: int
