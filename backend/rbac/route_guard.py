"""Route-namespace gate and dashboard resolution.

This is the coarse layer: passing the gate says nothing about individual
actions, which are still checked with ``has_permission``.
"""

from typing import Tuple

from backend.rbac.catalog import RoleLike, RoleName, try_resolve_role

ADMIN_NAMESPACE = "/admin"
AGENT_NAMESPACE = "/agent"

ADMIN_DASHBOARD = "/admin"
AGENT_DASHBOARD = "/agent/dashboard"

# Agents are kept out of the admin panel whatever their matrix says.
_ADMIN_ROLES: Tuple[RoleName, ...] = (
    RoleName.ADMIN,
    RoleName.SUPERADMINISTRATOR,
    RoleName.MANAGER,
    RoleName.OPERATOR,
    RoleName.VIEWER,
)
_AGENT_ROLES: Tuple[RoleName, ...] = (RoleName.AGENT,)


def admin_roles() -> Tuple[RoleName, ...]:
    return _ADMIN_ROLES


def agent_roles() -> Tuple[RoleName, ...]:
    return _AGENT_ROLES


def _in_namespace(path: str, namespace: str) -> bool:
    return path == namespace or path.startswith(namespace + "/")


def dashboard_for(role: RoleLike) -> str:
    """Entry route for a role. Unknown roles land on the admin dashboard."""
    if try_resolve_role(role) is RoleName.AGENT:
        return AGENT_DASHBOARD
    return ADMIN_DASHBOARD


def can_enter(role: RoleLike, path: str) -> bool:
    """Whether ``role`` may enter the namespace ``path`` belongs to.

    Namespaces match on whole path segments: ``/admin`` and ``/admin/users``
    are gated, ``/administrators-guide`` is not. A plain prefix check would
    gate all three.
    """
    resolved = try_resolve_role(role)
    if _in_namespace(path, ADMIN_NAMESPACE):
        return resolved in _ADMIN_ROLES
    if _in_namespace(path, AGENT_NAMESPACE):
        return resolved in _AGENT_ROLES
    return True
