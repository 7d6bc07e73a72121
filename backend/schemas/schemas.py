"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime


# ---- Roles ----
class RoleOut(BaseModel):
    id: int
    name: str
    kind: str
    status: str
    description: Optional[str] = None
    priority: int
    color: str
    user_count: int = 0
    permissions: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None


class RoleListResponse(BaseModel):
    roles: List[RoleOut]
    total: int


# ---- Access decisions ----
class DashboardResponse(BaseModel):
    role: str
    dashboard: str


class RouteAccessResponse(BaseModel):
    role: str
    path: str
    allowed: bool


class PermissionsResponse(BaseModel):
    role: str
    permissions: Dict[str, Any]
    granted: List[str]


# ---- System ----
class SystemStatus(BaseModel):
    initialized: bool
    system_roles: int
    required_system_roles: int
    admin_present: bool


class MaintenanceReport(BaseModel):
    roles_created: List[str] = Field(default_factory=list)
    admin_created: bool = False
    role_user_counts: Dict[str, int] = Field(default_factory=dict)
    permissions_updated: int = 0
    users_reassigned: int = 0


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor: str
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    old_value_json: Optional[str] = None
    new_value_json: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    message: str
