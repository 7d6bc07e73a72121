from typing import Optional

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from backend.core.config import settings
from backend.db.session import get_db
from backend.main import app
from backend.rbac.catalog import PermissionMatrix


def _token(role: Optional[str], permissions: Optional[dict] = None, secret: Optional[str] = None) -> dict:
    claims = {"sub": "42"}
    if role is not None:
        claims["role"] = role
    if permissions is not None:
        claims["permissions"] = permissions
    token = jwt.encode(claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert "X-Request-Id" in response.headers


def test_dashboard_requires_token(client) -> None:
    assert client.get("/api/access/dashboard").status_code == 401


def test_dashboard_rejects_bad_signature(client) -> None:
    response = client.get("/api/access/dashboard", headers=_token("agent", secret="wrong"))

    assert response.status_code == 401


def test_dashboard_rejects_token_without_role(client) -> None:
    assert client.get("/api/access/dashboard", headers=_token(None)).status_code == 401


@pytest.mark.parametrize(
    ("role", "dashboard"),
    [("agent", "/agent/dashboard"), ("admin", "/admin"), ("unknown-role", "/admin")],
)
def test_dashboard_for_caller(client, role: str, dashboard: str) -> None:
    response = client.get("/api/access/dashboard", headers=_token(role))

    assert response.status_code == 200
    assert response.json() == {"role": role, "dashboard": dashboard}


def test_route_decision(client) -> None:
    agent = client.get("/api/access/route", params={"path": "/admin/users"}, headers=_token("agent"))
    viewer = client.get("/api/access/route", params={"path": "/admin/users"}, headers=_token("viewer"))

    assert agent.json()["allowed"] is False
    assert viewer.json()["allowed"] is True


def test_permissions_for_caller(client) -> None:
    response = client.get("/api/access/permissions", headers=_token("viewer"))

    body = response.json()
    assert body["permissions"]["knowledgeBase"]["read"] is True
    assert "users.read" not in body["granted"]


def test_roles_listing_requires_permission(client, bootstrapper) -> None:
    bootstrapper.create_default_roles()

    assert client.get("/api/roles", headers=_token("viewer")).status_code == 403

    response = client.get("/api/roles", headers=_token("admin"))
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 6
    assert body["roles"][0]["name"] == "Super Administrator"


def test_snapshot_in_token_grants_access(client, bootstrapper) -> None:
    bootstrapper.create_default_roles()
    snapshot = PermissionMatrix.from_grants({"roles": ["read"]}).model_dump(by_alias=True)

    response = client.get("/api/roles/Viewer", headers=_token("viewer", permissions=snapshot))

    assert response.status_code == 200
    assert response.json()["kind"] == "system"


def test_malformed_snapshot_is_rejected(client) -> None:
    response = client.get("/api/roles", headers=_token("admin", permissions={"payroll": {"view": True}}))

    assert response.status_code == 401


def test_unknown_role_record_is_404(client) -> None:
    assert client.get("/api/roles/Ghost", headers=_token("admin")).status_code == 404


def test_system_endpoints_require_system_permission(client) -> None:
    assert client.get("/api/admin/system/status", headers=_token("admin")).status_code == 403


def test_maintenance_endpoint(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ADMIN_EMAIL", "ops@example.test")
    monkeypatch.setattr(settings, "ADMIN_PASSWORD", "fixture-password")
    headers = _token("superadministrator")

    before = client.get("/api/admin/system/status", headers=headers).json()
    report = client.post("/api/admin/system/maintenance", headers=headers)
    after = client.get("/api/admin/system/status", headers=headers).json()

    assert before["initialized"] is False
    assert report.status_code == 200
    assert report.json()["admin_created"] is True
    assert after["initialized"] is True

    audit = client.get("/api/admin/audit", params={"action": "role.created"}, headers=headers)
    assert audit.json()["total"] == 6


def test_initialize_without_superadmin_config_is_400(client, monkeypatch) -> None:
    monkeypatch.setattr(settings, "ADMIN_EMAIL", None)

    response = client.post("/api/admin/system/initialize", headers=_token("superadministrator"))

    assert response.status_code == 400
    assert "ADMIN_EMAIL" in response.json()["detail"]
