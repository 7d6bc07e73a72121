"""Models package — import all models so metadata.create_all can discover them."""

from backend.models.role import Role
from backend.models.user import User
from backend.models.audit_log import AuditLog

__all__ = ["Role", "User", "AuditLog"]
