"""Password hashing and the FastAPI authorization dependencies.

Tokens are issued by the external auth service; here we only decode them to
learn the caller's role (and optional permission snapshot) and then ask the
RBAC core for a decision.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import ValidationError

from backend.core.config import settings
from backend.core.exceptions import forbidden, unauthorized
from backend.rbac.catalog import Action, PermissionMatrix, Resource
from backend.rbac.evaluator import effective_matrix, has_permission

logger = logging.getLogger("admin_platform.security")

# JWT bearer scheme
security_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    pwd_bytes = password.encode("utf-8")
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(pwd_bytes, salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    pwd_bytes = plain_password.encode("utf-8")
    hashed_bytes = hashed_password.encode("utf-8")
    return bcrypt.checkpw(pwd_bytes, hashed_bytes)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token."""
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise unauthorized("Invalid or expired token")


@dataclass(frozen=True)
class Caller:
    """Authorization-relevant view of the requesting account."""

    subject: Optional[str]
    role: str
    snapshot: Optional[PermissionMatrix] = None

    @property
    def permissions(self) -> PermissionMatrix:
        return effective_matrix(self.role, self.snapshot)


async def get_caller(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Caller:
    """Extract the caller's role and snapshot from the Bearer token."""
    if credentials is None:
        raise unauthorized()
    payload = decode_token(credentials.credentials)
    role = payload.get("role")
    if not isinstance(role, str) or not role:
        raise unauthorized("Invalid token payload")

    snapshot = None
    if payload.get("permissions") is not None:
        try:
            snapshot = PermissionMatrix.model_validate(payload["permissions"])
        except ValidationError:
            raise unauthorized("Invalid permission snapshot in token")

    return Caller(subject=payload.get("sub"), role=role, snapshot=snapshot)


class RequirePermission:
    """Dependency that checks a single resource/action on the caller's matrix."""

    def __init__(self, resource: Resource, action: Action):
        self.resource = resource
        self.action = action

    async def __call__(self, caller: Caller = Depends(get_caller)) -> Caller:
        if not has_permission(caller.permissions, self.resource, self.action):
            logger.warning(
                "Denied %s.%s for role '%s' (sub=%s)",
                self.resource.value, self.action.value, caller.role, caller.subject,
            )
            raise forbidden(
                f"Permission '{self.resource.value}.{self.action.value}' required"
            )
        return caller


# Convenience dependencies
require_roles_read = RequirePermission(Resource.ROLES, Action.READ)
require_logs_view = RequirePermission(Resource.LOGS, Action.VIEW)
require_system = RequirePermission(Resource.SETTINGS, Action.SYSTEM)
