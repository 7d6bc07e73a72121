import pytest
from pydantic import ValidationError

from backend.core.exceptions import UnknownRoleError
from backend.rbac import catalog
from backend.rbac.catalog import (
    Action,
    PermissionMatrix,
    Resource,
    RoleName,
    can_manage_role,
    default_matrix,
    is_higher,
    level,
    privileged_role_names,
    resolve_role,
    system_role_names,
)

HIERARCHY = ["viewer", "agent", "operator", "manager", "admin", "superadministrator"]


def test_level_strictly_increases_along_hierarchy() -> None:
    levels = [level(role) for role in HIERARCHY]

    assert levels == sorted(levels)
    assert len(set(levels)) == len(levels)


def test_is_higher() -> None:
    assert is_higher("admin", "viewer")
    assert not is_higher("viewer", "admin")
    for role in HIERARCHY:
        assert not is_higher(role, role)


def test_level_rejects_unknown_role() -> None:
    with pytest.raises(UnknownRoleError):
        level("janitor")


def test_default_matrix_rejects_unknown_role() -> None:
    with pytest.raises(UnknownRoleError):
        default_matrix("janitor")


def test_system_role_names_follow_hierarchy() -> None:
    assert system_role_names() == (
        "Viewer", "Agent", "Operator", "Manager", "Administrator", "Super Administrator",
    )


@pytest.mark.parametrize(
    ("spelling", "expected"),
    [
        ("Super Administrator", RoleName.SUPERADMINISTRATOR),
        ("superadmin", RoleName.SUPERADMINISTRATOR),
        ("super_admin", RoleName.SUPERADMINISTRATOR),
        ("  SuperAdministrator ", RoleName.SUPERADMINISTRATOR),
        ("Administrator", RoleName.ADMIN),
        ("admin", RoleName.ADMIN),
        ("Viewer", RoleName.VIEWER),
    ],
)
def test_resolve_role_accepts_aliases(spelling: str, expected: RoleName) -> None:
    assert resolve_role(spelling) is expected


def test_resolve_role_rejects_other_spellings() -> None:
    with pytest.raises(UnknownRoleError):
        resolve_role("root")
    with pytest.raises(UnknownRoleError):
        resolve_role(None)  # type: ignore[arg-type]


def test_privileged_role_names_cover_legacy_spellings() -> None:
    names = privileged_role_names()

    for expected in ("Super Administrator", "Administrator", "superadmin", "admin"):
        assert expected in names
    assert "Viewer" not in names


def test_can_manage_role_is_strict() -> None:
    assert can_manage_role("superadministrator", "admin")
    assert not can_manage_role("admin", "admin")
    assert not can_manage_role("viewer", "agent")
    assert not can_manage_role("ghost", "viewer")


def test_matrix_rejects_unknown_resource() -> None:
    with pytest.raises(ValidationError):
        PermissionMatrix.model_validate({"payroll": {"view": True}})


def test_matrix_rejects_unknown_action() -> None:
    with pytest.raises(ValidationError):
        PermissionMatrix.model_validate({"users": {"impersonate": True}})


def test_matrix_json_uses_wire_names() -> None:
    matrix = default_matrix("viewer")
    raw = matrix.to_json()

    assert '"knowledgeBase"' in raw
    assert PermissionMatrix.from_json(raw) == matrix
    assert matrix.allows(Resource.KNOWLEDGE_BASE, Action.READ)


def test_empty_json_is_empty_matrix() -> None:
    matrix = PermissionMatrix.from_json(None)

    assert not any(matrix.allows(r, a) for r in Resource for a in Action)


def test_higher_roles_hold_every_lower_grant_on_users_and_roles() -> None:
    # Matrices are declared explicitly; this guards the declared data.
    for lower, higher in zip(catalog.ROLE_HIERARCHY[2:], catalog.ROLE_HIERARCHY[3:]):
        for resource in (Resource.USERS, Resource.ROLES):
            for action in Action:
                if default_matrix(lower).allows(resource, action):
                    assert default_matrix(higher).allows(resource, action), (lower, higher, resource, action)
