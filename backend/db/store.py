"""Persisted-store capability used by bootstrap and maintenance.

Services depend on the :class:`RBACStore` protocol, not on a global session,
so they can run against any session (request-scoped, CLI, Celery, tests).
Every write commits on its own: there is no transaction spanning a batch.
"""

import logging
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Optional, Protocol, Tuple

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.core.exceptions import StoreUnavailableError
from backend.models.role import Role
from backend.models.user import User
from backend.services.audit_service import audit_service

logger = logging.getLogger("admin_platform.store")


class RBACStore(Protocol):
    """Find / create-if-absent / update / count over roles and users."""

    def find_role(self, name: str, *, kind: Optional[str] = None,
                  include_deleted: bool = False) -> Optional[Role]: ...

    def list_roles(self, *, active_only: bool = False) -> List[Role]: ...

    def count_roles(self, *, kind: Optional[str] = None) -> int: ...

    def create_role_if_absent(self, name: str, **fields: Any) -> Tuple[Role, bool]: ...

    def update_role(self, role: Role, **fields: Any) -> Role: ...

    def find_active_user_with_roles(self, role_names: Iterable[str]) -> Optional[User]: ...

    def list_users(self) -> List[User]: ...

    def count_users_with_role(self, role_name: str) -> int: ...

    def create_user_if_absent(self, email: str, **fields: Any) -> Tuple[User, bool]: ...

    def update_user(self, user: User, **fields: Any) -> User: ...

    def record_audit(self, action: str, resource_type: str, resource_id: Optional[str] = None,
                     old_value: Optional[Any] = None, new_value: Optional[Any] = None) -> None: ...


class SqlAlchemyStore:
    """:class:`RBACStore` backed by a SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    def _fail(self, operation: str, error: SQLAlchemyError) -> None:
        self.session.rollback()
        logger.error("Store operation %s failed: %s", operation, error)
        raise StoreUnavailableError(f"Store operation '{operation}' failed: {error}") from error

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            self._fail(operation, e)

    # ---- Roles ----

    def find_role(self, name: str, *, kind: Optional[str] = None,
                  include_deleted: bool = False) -> Optional[Role]:
        with self._guard("find_role"):
            query = self.session.query(Role).filter(Role.name == name)
            if kind is not None:
                query = query.filter(Role.kind == kind)
            if not include_deleted:
                query = query.filter(Role.is_deleted.is_(False))
            return query.first()

    def list_roles(self, *, active_only: bool = False) -> List[Role]:
        with self._guard("list_roles"):
            query = self.session.query(Role).filter(Role.is_deleted.is_(False))
            if active_only:
                query = query.filter(Role.status == "active")
            return query.order_by(Role.priority, Role.name).all()

    def count_roles(self, *, kind: Optional[str] = None) -> int:
        with self._guard("count_roles"):
            query = self.session.query(Role).filter(Role.is_deleted.is_(False))
            if kind is not None:
                query = query.filter(Role.kind == kind)
            return query.count()

    def create_role_if_absent(self, name: str, **fields: Any) -> Tuple[Role, bool]:
        existing = self.find_role(name, include_deleted=True)
        if existing is not None:
            return existing, False

        role = Role(name=name, **fields)
        self.session.add(role)
        try:
            self.session.commit()
        except IntegrityError:
            # Another process created it first; that is what we wanted.
            self.session.rollback()
            logger.info("Role '%s' was created concurrently, using existing record", name)
            existing = self.find_role(name, include_deleted=True)
            if existing is None:
                raise StoreUnavailableError(f"Role '{name}' conflicts but cannot be read back")
            return existing, False
        except SQLAlchemyError as e:
            self._fail("create_role", e)
        return role, True

    def update_role(self, role: Role, **fields: Any) -> Role:
        with self._guard("update_role"):
            for key, value in fields.items():
                setattr(role, key, value)
            self.session.commit()
            return role

    # ---- Users ----

    def find_active_user_with_roles(self, role_names: Iterable[str]) -> Optional[User]:
        with self._guard("find_active_user_with_roles"):
            # Stored spellings are matched the way resolve_role reads them.
            wanted = sorted({name.strip().lower() for name in role_names})
            return (
                self.session.query(User)
                .filter(
                    func.lower(func.trim(User.role)).in_(wanted),
                    User.is_deleted.is_(False),
                    User.status == "active",
                )
                .first()
            )

    def list_users(self) -> List[User]:
        with self._guard("list_users"):
            return (
                self.session.query(User)
                .filter(User.is_deleted.is_(False))
                .order_by(User.id)
                .all()
            )

    def count_users_with_role(self, role_name: str) -> int:
        with self._guard("count_users_with_role"):
            return (
                self.session.query(User)
                .filter(
                    User.role == role_name,
                    User.is_deleted.is_(False),
                    User.status != "deleted",
                )
                .count()
            )

    def create_user_if_absent(self, email: str, **fields: Any) -> Tuple[User, bool]:
        with self._guard("find_user"):
            existing = self.session.query(User).filter(User.email == email).first()
        if existing is not None:
            return existing, False

        user = User(email=email, **fields)
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("User '%s' was created concurrently, using existing record", email)
            with self._guard("find_user"):
                existing = self.session.query(User).filter(User.email == email).first()
            if existing is None:
                raise StoreUnavailableError(f"User '{email}' conflicts but cannot be read back")
            return existing, False
        except SQLAlchemyError as e:
            self._fail("create_user", e)
        return user, True

    def update_user(self, user: User, **fields: Any) -> User:
        with self._guard("update_user"):
            for key, value in fields.items():
                setattr(user, key, value)
            self.session.commit()
            return user

    # ---- Audit ----

    def record_audit(self, action: str, resource_type: str, resource_id: Optional[str] = None,
                     old_value: Optional[Any] = None, new_value: Optional[Any] = None) -> None:
        with self._guard("record_audit"):
            audit_service.log(
                self.session,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                old_value=old_value,
                new_value=new_value,
            )
