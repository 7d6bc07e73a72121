"""User model."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func
from backend.db.base import Base


class User(Base):
    """Account holder. ``role`` references a Role by name."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="Viewer", index=True)
    permissions_json = Column(Text, nullable=True)  # snapshot of the role's matrix
    status = Column(String(20), nullable=False, default="active", index=True)  # active | inactive | deleted
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)
