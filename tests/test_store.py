import pytest
from sqlalchemy import false
from sqlalchemy.exc import OperationalError

from backend.core.exceptions import StoreUnavailableError
from backend.models.role import Role


def test_create_role_if_absent_returns_existing(store) -> None:
    first, created = store.create_role_if_absent("Viewer", kind="system", permissions_json="{}")
    second, created_again = store.create_role_if_absent("Viewer", kind="system", permissions_json="{}")

    assert created
    assert not created_again
    assert first.id == second.id


def test_create_role_if_absent_treats_conflict_as_existing(store, db, monkeypatch) -> None:
    store.create_role_if_absent("Viewer", kind="system", permissions_json="{}")
    real_find = store.find_role
    calls = []

    def racing_find(name, **kwargs):
        # First lookup misses, as if another process inserted in between.
        calls.append(name)
        if len(calls) == 1:
            return None
        return real_find(name, **kwargs)

    monkeypatch.setattr(store, "find_role", racing_find)
    role, created = store.create_role_if_absent("Viewer", kind="system", permissions_json="{}")

    assert not created
    assert role.name == "Viewer"
    assert db.query(Role).filter(Role.name == "Viewer").count() == 1


def test_create_user_if_absent_treats_conflict_as_existing(store, db, make_user, monkeypatch) -> None:
    make_user("taken@example.test", "Viewer")
    real_query = db.query
    calls = []

    def racing_query(*args, **kwargs):
        calls.append(args)
        query = real_query(*args, **kwargs)
        if len(calls) == 1:
            return query.filter(false())
        return query

    monkeypatch.setattr(db, "query", racing_query)
    user, created = store.create_user_if_absent(
        "taken@example.test", hashed_password="x", full_name="Taken", role="Viewer",
    )

    assert not created
    assert user.email == "taken@example.test"


def test_deleted_roles_hidden_from_lookups(store, db) -> None:
    role, _ = store.create_role_if_absent("Legacy", kind="custom", permissions_json="{}")
    store.update_role(role, is_deleted=True)

    assert store.find_role("Legacy") is None
    assert store.find_role("Legacy", include_deleted=True) is not None
    assert store.list_roles() == []
    assert store.count_roles() == 0


def test_count_users_with_role_skips_deleted(store, make_user) -> None:
    make_user("a@example.test", "Viewer")
    make_user("b@example.test", "Viewer", is_deleted=True)
    make_user("c@example.test", "Viewer", status="deleted")
    make_user("d@example.test", "Viewer", status="inactive")

    assert store.count_users_with_role("Viewer") == 2


def test_find_active_user_with_roles_ignores_case_and_padding(store, make_user) -> None:
    make_user("legacy@example.test", " SuperAdmin ")

    found = store.find_active_user_with_roles(["superadmin", "Administrator"])

    assert found is not None
    assert found.email == "legacy@example.test"
    assert store.find_active_user_with_roles(["Viewer"]) is None


def test_database_errors_become_store_unavailable(store, db, monkeypatch) -> None:
    def broken_query(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(db, "query", broken_query)

    with pytest.raises(StoreUnavailableError):
        store.list_users()
