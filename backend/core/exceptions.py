"""Custom exception classes for the admin platform RBAC core."""

from fastapi import HTTPException, status


class RBACError(Exception):
    """Base exception for the RBAC core."""

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class UnknownRoleError(RBACError):
    """Raised when a role is not part of the role catalog."""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Unknown role '{role}'")


class BootstrapInvariantError(RBACError):
    """Raised when bootstrap cannot establish the role/admin invariants.

    Fatal: the process must refuse to serve traffic.
    """
    pass


class StoreUnavailableError(RBACError):
    """Raised when a persisted-store call fails."""
    pass


class PerUserRepairError(RBACError):
    """Raised when a single user record cannot be repaired during a batch."""

    def __init__(self, email: str, reason: str):
        self.email = email
        self.reason = reason
        super().__init__(f"Cannot repair user {email}: {reason}")


class AuthorizationError(RBACError):
    """Raised when a role lacks the permission for an action."""
    pass


class ConfigurationError(RBACError):
    """Raised when required configuration is missing."""
    pass


# HTTP exception shortcuts
def forbidden(detail: str = "Insufficient permissions") -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def not_found(detail: str = "Resource not found") -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def status_code_for(exc: RBACError) -> int:
    """Map a core error onto the HTTP status the API answers with."""
    if isinstance(exc, (BootstrapInvariantError, StoreUnavailableError)):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    if isinstance(exc, UnknownRoleError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, AuthorizationError):
        return status.HTTP_403_FORBIDDEN
    return status.HTTP_400_BAD_REQUEST
