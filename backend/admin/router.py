# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Admin endpoints – user listing and role management.

Every endpoint in this router is guarded by ``require_admin``, which itself
depends on ``get_current_identity``: a request without a valid session gets
401 before the role is ever looked at, and a valid ``user`` session gets 403
before any business logic runs.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from admin.schemas import ChangeRoleRequest, UserListResponse, UserRow
from core.errors import InvalidRequest, UserNotFound
from core.security import SessionClaims, require_admin
from database import get_db
from identity.resolver import change_role as _change_role
from identity.resolver import get_user_by_id, list_users as _list_users

router = APIRouter(prefix="/admin", tags=["admin"])


# ---------------------------------------------------------------------------
# GET /admin/users  – list all users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=UserListResponse)
def list_users(
    admin: SessionClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Return every user row (no password data – handled by the schema)."""
    return UserListResponse(users=_list_users(db))


# ---------------------------------------------------------------------------
# GET /admin/users/{id}
# ---------------------------------------------------------------------------


@router.get("/users/{user_id}", response_model=UserRow)
def get_user(
    user_id: int,
    admin: SessionClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = get_user_by_id(db, user_id)
    if not user:
        raise UserNotFound()
    return user


# ---------------------------------------------------------------------------
# PUT /admin/users/{id}/change-role  – promote or demote a user
# ---------------------------------------------------------------------------


@router.put("/users/{user_id}/change-role", response_model=UserRow)
def change_role(
    user_id: int,
    body: ChangeRoleRequest,
    admin: SessionClaims = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """
    Change the role of an existing user.  Guards:
    * Role value must be 'admin' or 'user'.
    * An admin cannot change their own role (prevents accidental self-lockout).
    """
    if user_id == admin.id:
        raise InvalidRequest("Cannot change your own role")
    return _change_role(db, user_id, body.role)
