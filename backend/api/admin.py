"""Admin / System API router."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from backend.db.session import get_db, get_store
from backend.db.store import SqlAlchemyStore
from backend.schemas.schemas import AuditLogOut, MaintenanceReport, MessageResponse, SystemStatus
from backend.services.audit_service import audit_service
from backend.services.bootstrap_service import Bootstrapper
from backend.services.maintenance_service import MaintenanceService
from backend.core.security import Caller, require_logs_view, require_system

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/system/status", response_model=SystemStatus)
async def system_status(
    store: SqlAlchemyStore = Depends(get_store),
    caller: Caller = Depends(require_system),
):
    """Whether system roles and an administrator are in place."""
    return Bootstrapper(store).system_status()


@router.post("/system/initialize", response_model=MessageResponse)
async def initialize_system(
    store: SqlAlchemyStore = Depends(get_store),
    caller: Caller = Depends(require_system),
):
    """Create missing system roles and the initial administrator."""
    bootstrapper = Bootstrapper(store)
    created = bootstrapper.create_default_roles()
    admin = bootstrapper.ensure_initial_admin()
    parts = [f"{len(created)} roles created"]
    parts.append("administrator created" if admin is not None else "administrator present")
    return MessageResponse(message=", ".join(parts))


@router.post("/system/maintenance", response_model=MaintenanceReport)
async def run_maintenance(
    store: SqlAlchemyStore = Depends(get_store),
    caller: Caller = Depends(require_system),
):
    """Run the full maintenance cycle synchronously."""
    return MaintenanceService(store).run_full_maintenance()


@router.get("/audit")
async def get_audit_logs(
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_logs_view),
):
    """Query the remediation audit trail."""
    result = audit_service.query_logs(db, action, resource_type, page, page_size)
    return {
        "logs": [
            AuditLogOut.model_validate(log)
            for log in result["logs"]
        ],
        "total": result["total"],
        "page": result["page"],
    }
