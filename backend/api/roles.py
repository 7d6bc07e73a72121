"""Roles API router (read-only; role management lives elsewhere)."""

import json

from fastapi import APIRouter, Depends, Query

from backend.core.exceptions import not_found
from backend.core.security import Caller, require_roles_read
from backend.db.session import get_store
from backend.db.store import SqlAlchemyStore
from backend.models.role import Role
from backend.schemas.schemas import RoleListResponse, RoleOut

router = APIRouter(prefix="/roles", tags=["roles"])


def _role_out(role: Role) -> RoleOut:
    return RoleOut(
        id=role.id,
        name=role.name,
        kind=role.kind,
        status=role.status,
        description=role.description,
        priority=role.priority,
        color=role.color,
        user_count=role.user_count,
        permissions=json.loads(role.permissions_json) if role.permissions_json else {},
        created_at=role.created_at,
    )


@router.get("", response_model=RoleListResponse)
async def list_roles(
    active_only: bool = Query(False),
    store: SqlAlchemyStore = Depends(get_store),
    caller: Caller = Depends(require_roles_read),
):
    """List non-deleted roles, most privileged first."""
    roles = store.list_roles(active_only=active_only)
    return RoleListResponse(roles=[_role_out(r) for r in roles], total=len(roles))


@router.get("/{name}", response_model=RoleOut)
async def get_role(
    name: str,
    store: SqlAlchemyStore = Depends(get_store),
    caller: Caller = Depends(require_roles_read),
):
    """Get a single role by name."""
    role = store.find_role(name)
    if role is None:
        raise not_found(f"Role '{name}' not found")
    return _role_out(role)
