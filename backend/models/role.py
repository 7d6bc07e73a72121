"""Role model for RBAC."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from backend.db.base import Base


class Role(Base):
    """Named authorization profile with a JSON permission matrix.

    Roles are soft-deleted only. ``user_count`` is a cache maintained by the
    maintenance jobs and is never authoritative.
    """
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    kind = Column(String(20), nullable=False, default="custom", index=True)  # system | custom
    status = Column(String(20), nullable=False, default="active", index=True)  # active | inactive
    permissions_json = Column(Text, nullable=False)
    description = Column(String(500), nullable=True)
    priority = Column(Integer, nullable=False, default=100)
    color = Column(String(7), nullable=False, default="#3B82F6")
    user_count = Column(Integer, nullable=False, default=0)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)