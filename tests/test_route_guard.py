import pytest

from backend.rbac.catalog import RoleName
from backend.rbac.route_guard import admin_roles, agent_roles, can_enter, dashboard_for


def test_dashboard_for_agent() -> None:
    assert dashboard_for("agent") == "/agent/dashboard"


@pytest.mark.parametrize("role", ["admin", "superadministrator", "manager", "operator", "viewer"])
def test_dashboard_for_admin_panel_roles(role: str) -> None:
    assert dashboard_for(role) == "/admin"


def test_dashboard_for_unknown_role_defaults_to_admin() -> None:
    assert dashboard_for("unknown-role") == "/admin"
    assert dashboard_for("") == "/admin"


def test_agent_kept_out_of_admin_namespace() -> None:
    assert not can_enter("agent", "/admin/users")
    assert not can_enter("agent", "/admin")


def test_viewer_enters_admin_namespace() -> None:
    assert can_enter("viewer", "/admin/analytics")


def test_admin_kept_out_of_agent_namespace() -> None:
    assert not can_enter("admin", "/agent/dashboard")
    assert can_enter("agent", "/agent/dashboard")


def test_other_routes_open_to_everyone() -> None:
    assert can_enter("agent", "/chat")
    assert can_enter("unknown-role", "/login")
    assert can_enter("viewer", "/administrators-guide")


def test_unknown_role_denied_gated_namespaces() -> None:
    assert not can_enter("unknown-role", "/admin/users")
    assert not can_enter("unknown-role", "/agent/queue")


def test_legacy_spellings_resolve() -> None:
    assert can_enter("Super Administrator", "/admin/settings")
    assert dashboard_for("Agent") == "/agent/dashboard"


def test_gate_independent_of_matrix() -> None:
    # Viewer passes the gate but the matrix still denies user management.
    from backend.rbac.catalog import default_matrix
    from backend.rbac.evaluator import has_permission

    assert can_enter("viewer", "/admin/users")
    assert not has_permission(default_matrix("viewer"), "users", "read")


def test_role_groups() -> None:
    assert RoleName.AGENT not in admin_roles()
    assert agent_roles() == (RoleName.AGENT,)
