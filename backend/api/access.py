"""Access API router — dashboard, namespace, and permission decisions for the caller."""

from fastapi import APIRouter, Depends, Query

from backend.core.security import Caller, get_caller
from backend.rbac.evaluator import granted_permissions
from backend.rbac.route_guard import can_enter, dashboard_for
from backend.schemas.schemas import DashboardResponse, PermissionsResponse, RouteAccessResponse

router = APIRouter(prefix="/access", tags=["access"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(caller: Caller = Depends(get_caller)):
    """Entry dashboard route for the caller's role."""
    return DashboardResponse(role=caller.role, dashboard=dashboard_for(caller.role))


@router.get("/route", response_model=RouteAccessResponse)
async def check_route(
    path: str = Query(..., min_length=1),
    caller: Caller = Depends(get_caller),
):
    """Whether the caller may enter the namespace of ``path``."""
    return RouteAccessResponse(role=caller.role, path=path, allowed=can_enter(caller.role, path))


@router.get("/permissions", response_model=PermissionsResponse)
async def get_permissions(caller: Caller = Depends(get_caller)):
    """The caller's effective permission matrix."""
    matrix = caller.permissions
    return PermissionsResponse(
        role=caller.role,
        permissions=matrix.model_dump(by_alias=True),
        granted=granted_permissions(matrix),
    )
