"""Bootstrap service — system roles and the initial administrator."""

import logging
import secrets
from dataclasses import dataclass
from typing import Callable, List, Optional

from pydantic import ValidationError

from backend.core.config import Settings, settings
from backend.core.exceptions import BootstrapInvariantError, ConfigurationError
from backend.core.security import hash_password
from backend.db.store import RBACStore
from backend.models.user import User
from backend.rbac.catalog import (
    PermissionMatrix,
    RoleName,
    display_name,
    privileged_role_names,
    role_definitions,
    system_role_names,
)
from backend.schemas.schemas import SystemStatus

logger = logging.getLogger("admin_platform.bootstrap")


@dataclass(frozen=True)
class AdminCredentials:
    email: str
    password: str
    full_name: str = "System Administrator"
    generated: bool = False


def admin_credentials_from_settings(cfg: Settings = settings) -> AdminCredentials:
    """Build the initial administrator credentials from configuration.

    ``ADMIN_EMAIL`` is required. When ``ADMIN_PASSWORD`` is not set a random
    password is generated and flagged so the notifier reports it.
    """
    if not cfg.ADMIN_EMAIL:
        raise ConfigurationError("ADMIN_EMAIL must be set to create the initial administrator")
    if cfg.ADMIN_PASSWORD:
        return AdminCredentials(cfg.ADMIN_EMAIL, cfg.ADMIN_PASSWORD, cfg.ADMIN_FULL_NAME)
    return AdminCredentials(
        cfg.ADMIN_EMAIL, secrets.token_urlsafe(16), cfg.ADMIN_FULL_NAME, generated=True,
    )


def log_credentials(credentials: AdminCredentials) -> None:
    """Default notifier: report the new administrator through the log."""
    if credentials.generated:
        logger.warning(
            "Initial administrator created: %s / %s (generated password, change it after first login)",
            credentials.email, credentials.password,
        )
    else:
        logger.warning(
            "Initial administrator created: %s (password from ADMIN_PASSWORD)",
            credentials.email,
        )


class Bootstrapper:
    """Materializes the role catalog and guarantees an administrator exists.

    Every step is create-if-absent, so running it from several processes at
    once, or repeatedly, is safe.
    """

    def __init__(
        self,
        store: RBACStore,
        notify: Callable[[AdminCredentials], None] = log_credentials,
        credentials_provider: Callable[[], AdminCredentials] = admin_credentials_from_settings,
    ):
        self.store = store
        self.notify = notify
        self.credentials_provider = credentials_provider

    def create_default_roles(self) -> List[str]:
        """Ensure a system Role record exists for every catalog role.

        Existing records are never overwritten. Returns the names created
        (or restored from soft deletion) by this call.
        """
        created = []
        for definition in role_definitions():
            name = definition.display_name
            role, was_created = self.store.create_role_if_absent(
                name,
                kind="system",
                status="active",
                is_deleted=False,
                permissions_json=definition.permissions.to_json(),
                description=definition.description,
                priority=definition.priority,
                color=definition.color,
                user_count=0,
            )
            if was_created:
                logger.info("Created system role '%s'", name)
                self.store.record_audit("role.created", "role", name, new_value={"kind": "system"})
                created.append(name)
            elif role.is_deleted:
                # The unique name is held by a soft-deleted record: bring it back.
                self.store.update_role(
                    role,
                    is_deleted=False,
                    deleted_at=None,
                    kind="system",
                    status="active",
                    permissions_json=definition.permissions.to_json(),
                )
                logger.warning("Restored soft-deleted system role '%s'", name)
                self.store.record_audit("role.restored", "role", name)
                created.append(name)
            elif role.kind != "system" or role.status != "active":
                logger.warning(
                    "Role '%s' exists with kind=%s status=%s; leaving it untouched",
                    name, role.kind, role.status,
                )
        return created

    def find_admin(self) -> Optional[User]:
        return self.store.find_active_user_with_roles(privileged_role_names())

    def ensure_initial_admin(self, credentials: Optional[AdminCredentials] = None) -> Optional[User]:
        """Create the first administrator if no administrator-capable user exists.

        Returns the created user, or ``None`` when an administrator was
        already present.

        Raises:
            BootstrapInvariantError: If the Super Administrator role is missing.
        """
        existing = self.find_admin()
        if existing is not None:
            logger.info("Administrator already present (%s)", existing.email)
            return None

        super_admin_name = display_name(RoleName.SUPERADMINISTRATOR)
        role = self.store.find_role(super_admin_name, kind="system")
        if role is None or role.status != "active":
            raise BootstrapInvariantError(
                f"'{super_admin_name}' role not found. Cannot create admin user."
            )
        try:
            snapshot = PermissionMatrix.from_json(role.permissions_json)
        except ValidationError as e:
            raise BootstrapInvariantError(
                f"'{super_admin_name}' role has an unreadable permission matrix: {e}"
            ) from e

        credentials = credentials or self.credentials_provider()
        user, created = self.store.create_user_if_absent(
            credentials.email,
            hashed_password=hash_password(credentials.password),
            full_name=credentials.full_name,
            role=super_admin_name,
            permissions_json=snapshot.to_json(),
            status="active",
            is_deleted=False,
        )
        if not created:
            if self.find_admin() is not None:
                logger.info("Administrator was created concurrently (%s)", user.email)
                return None
            raise BootstrapInvariantError(
                f"Cannot create initial administrator: {credentials.email} "
                f"belongs to an existing non-administrator account"
            )

        self.store.record_audit("user.created", "user", user.email, new_value={"role": super_admin_name})
        self.notify(credentials)
        return user

    def system_status(self) -> SystemStatus:
        required = len(system_role_names())
        role_count = self.store.count_roles(kind="system")
        admin_present = self.find_admin() is not None
        return SystemStatus(
            initialized=role_count >= required and admin_present,
            system_roles=role_count,
            required_system_roles=required,
            admin_present=admin_present,
        )

    def is_system_initialized(self) -> bool:
        return self.system_status().initialized
