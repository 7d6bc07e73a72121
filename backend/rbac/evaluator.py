"""Permission evaluation.

All functions here are pure and never raise: anything missing or outside the
declared resource/action enums evaluates to ``False``.
"""

from typing import List, Optional, Union

from backend.rbac.catalog import (
    Action,
    PermissionMatrix,
    Resource,
    RoleLike,
    default_matrix,
    try_resolve_role,
)


def _as_resource(resource: Union[Resource, str]) -> Optional[Resource]:
    try:
        return Resource(resource)
    except (ValueError, TypeError):
        return None


def _as_action(action: Union[Action, str]) -> Optional[Action]:
    try:
        return Action(action)
    except (ValueError, TypeError):
        return None


def has_permission(
    matrix: Optional[PermissionMatrix],
    resource: Union[Resource, str],
    action: Union[Action, str],
) -> bool:
    """Return whether ``action`` is granted on ``resource`` in ``matrix``."""
    if matrix is None:
        return False
    res = _as_resource(resource)
    act = _as_action(action)
    if res is None or act is None:
        return False
    return matrix.allows(res, act)


def effective_matrix(
    role: RoleLike, snapshot: Optional[PermissionMatrix] = None
) -> PermissionMatrix:
    """The matrix a request should be checked against.

    A user's snapshot wins over the role default; an unrecognized role with
    no snapshot gets an empty matrix.
    """
    if snapshot is not None:
        return snapshot
    resolved = try_resolve_role(role)
    if resolved is None:
        return PermissionMatrix()
    return default_matrix(resolved)


def role_has_permission(
    role: RoleLike,
    resource: Union[Resource, str],
    action: Union[Action, str],
    snapshot: Optional[PermissionMatrix] = None,
) -> bool:
    return has_permission(effective_matrix(role, snapshot), resource, action)


def granted_permissions(matrix: PermissionMatrix) -> List[str]:
    """Flatten a matrix into sorted ``resource.action`` keys."""
    return sorted(
        f"{resource.value}.{action.value}"
        for resource in Resource
        for action in Action
        if matrix.allows(resource, action)
    )
