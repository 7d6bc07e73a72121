from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

import backend.models  # noqa: F401
from backend.db.base import Base
from backend.db.store import SqlAlchemyStore
from backend.models.user import User
from backend.services.bootstrap_service import AdminCredentials, Bootstrapper
from backend.services.maintenance_service import MaintenanceService

ADMIN = AdminCredentials(email="admin@example.test", password="fixture-password")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine) -> Session:
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def store(db) -> SqlAlchemyStore:
    return SqlAlchemyStore(db)


@pytest.fixture
def notifications() -> list:
    return []


@pytest.fixture
def bootstrapper(store, notifications) -> Bootstrapper:
    return Bootstrapper(store, notify=notifications.append, credentials_provider=lambda: ADMIN)


@pytest.fixture
def maintenance(store, bootstrapper) -> MaintenanceService:
    return MaintenanceService(store, bootstrapper)


@pytest.fixture
def make_user(db) -> Callable[..., User]:
    def _make_user(
        email: str,
        role: str,
        status: str = "active",
        is_deleted: bool = False,
        permissions_json: Optional[str] = None,
    ) -> User:
        user = User(
            email=email,
            hashed_password="not-a-real-hash",
            full_name=email.split("@")[0],
            role=role,
            status=status,
            is_deleted=is_deleted,
            permissions_json=permissions_json,
        )
        db.add(user)
        db.commit()
        return user

    return _make_user


@pytest.fixture
def admin_credentials() -> AdminCredentials:
    return ADMIN
