"""Maintenance service — keeps stored roles and users consistent with the catalog."""

import logging
from typing import Dict, Optional, Tuple

from pydantic import ValidationError

from backend.core.exceptions import (
    BootstrapInvariantError,
    PerUserRepairError,
    RBACError,
    StoreUnavailableError,
)
from backend.db.store import RBACStore
from backend.models.user import User
from backend.rbac.catalog import (
    DEFAULT_ROLE,
    PermissionMatrix,
    default_matrix,
    display_name,
    try_resolve_role,
)
from backend.schemas.schemas import MaintenanceReport
from backend.services.bootstrap_service import Bootstrapper

logger = logging.getLogger("admin_platform.maintenance")


def _read_snapshot(raw: Optional[str]) -> Optional[PermissionMatrix]:
    try:
        return PermissionMatrix.from_json(raw)
    except ValidationError:
        return None


class MaintenanceService:
    """Batch repairs over the role and user collections.

    Records are updated one at a time; a failure on one record is logged and
    the batch moves on.
    """

    def __init__(self, store: RBACStore, bootstrapper: Optional[Bootstrapper] = None):
        self.store = store
        self.bootstrapper = bootstrapper or Bootstrapper(store)

    def recompute_role_user_counts(self) -> Dict[str, int]:
        """Set every role's ``user_count`` from the live user collection."""
        counts: Dict[str, int] = {}
        for role in self.store.list_roles():
            name = role.name
            try:
                count = self.store.count_users_with_role(name)
                if role.user_count != count:
                    self.store.update_role(role, user_count=count)
            except StoreUnavailableError as e:
                logger.warning("Skipping user count for role '%s': %s", name, e)
                continue
            counts[name] = count
        logger.info("Updated user counts for %d roles", len(counts))
        return counts

    def _expected_permissions(self, user: User) -> Tuple[str, PermissionMatrix]:
        """Canonical role name and matrix a user should hold.

        The persisted Role wins; the catalog default is the fallback. Legacy
        alias spellings resolve to the catalog display name.
        """
        resolved = try_resolve_role(user.role)
        candidates = [user.role]
        if resolved is not None and display_name(resolved) != user.role:
            candidates.append(display_name(resolved))

        for name in candidates:
            role = self.store.find_role(name)
            if role is None:
                continue
            try:
                return role.name, PermissionMatrix.from_json(role.permissions_json)
            except ValidationError as e:
                raise PerUserRepairError(user.email, f"role '{name}' has an unreadable matrix: {e}") from e

        if resolved is None:
            raise PerUserRepairError(user.email, f"role '{user.role}' does not exist")
        return display_name(resolved), default_matrix(resolved)

    def _repair_user(self, user: User) -> bool:
        role_name, expected = self._expected_permissions(user)
        old_role = user.role

        changes = {}
        if role_name != old_role:
            changes["role"] = role_name
        if _read_snapshot(user.permissions_json) != expected:
            changes["permissions_json"] = expected.to_json()
        if not changes:
            return False

        self.store.update_user(user, **changes)
        if "role" in changes:
            logger.info("Normalized role of %s from '%s' to '%s'", user.email, old_role, role_name)
            self.store.record_audit(
                "user.role_normalized", "user", user.email,
                old_value={"role": old_role}, new_value={"role": role_name},
            )
        if "permissions_json" in changes:
            self.store.record_audit(
                "user.permissions_repaired", "user", user.email, new_value={"role": role_name},
            )
        return True

    def validate_user_permissions(self) -> int:
        """Rewrite permission snapshots that drifted from the user's role.

        Returns the number of users updated.
        """
        updated = 0
        for user in self.store.list_users():
            email = user.email
            try:
                if self._repair_user(user):
                    updated += 1
            except PerUserRepairError as e:
                logger.warning("Failed to update permissions for user %s: %s", email, e.reason)
            except StoreUnavailableError as e:
                logger.warning("Failed to update permissions for user %s: %s", email, e.message)
        logger.info("Updated permissions for %d users", updated)
        return updated

    def cleanup_invalid_roles(self) -> int:
        """Move users whose role is not an active Role onto the default role.

        Returns the number of users reassigned. Accounts are never removed.

        Raises:
            BootstrapInvariantError: If the default role is not itself active.
        """
        valid_names = {role.name for role in self.store.list_roles(active_only=True)}

        fallback_name = display_name(DEFAULT_ROLE)
        if fallback_name not in valid_names:
            raise BootstrapInvariantError(
                f"'{fallback_name}' role is missing or inactive. Cannot reassign invalid roles."
            )
        fallback_role = self.store.find_role(fallback_name)
        fallback_matrix = None
        if fallback_role is not None:
            fallback_matrix = _read_snapshot(fallback_role.permissions_json)
        if fallback_matrix is None:
            fallback_matrix = default_matrix(DEFAULT_ROLE)

        reassigned = 0
        for user in self.store.list_users():
            email, old_role = user.email, user.role
            if old_role in valid_names:
                continue
            try:
                self.store.update_user(
                    user, role=fallback_name, permissions_json=fallback_matrix.to_json(),
                )
            except StoreUnavailableError as e:
                error = PerUserRepairError(email, e.message)
                logger.warning("Skipping role cleanup: %s", error)
                continue
            logger.warning("User %s had invalid role '%s', set to %s", email, old_role, fallback_name)
            reassigned += 1
            try:
                self.store.record_audit(
                    "user.role_reassigned", "user", email,
                    old_value={"role": old_role}, new_value={"role": fallback_name},
                )
            except StoreUnavailableError as e:
                logger.warning("Failed to audit role cleanup for user %s: %s", email, e.message)
        logger.info("Role cleanup reassigned %d users", reassigned)
        return reassigned

    def run_full_maintenance(self) -> MaintenanceReport:
        """Bootstrap, then recount, repair, and clean up, in that order.

        Cleanup runs last so its reassignments show up in the next cycle's
        counts. A failing stage aborts the rest; earlier stages stay applied.
        """
        logger.info("Starting system maintenance")
        try:
            roles_created = self.bootstrapper.create_default_roles()
            admin = self.bootstrapper.ensure_initial_admin()
            counts = self.recompute_role_user_counts()
            updated = self.validate_user_permissions()
            reassigned = self.cleanup_invalid_roles()
        except RBACError as e:
            logger.error("System maintenance failed: %s", e.message)
            raise

        report = MaintenanceReport(
            roles_created=roles_created,
            admin_created=admin is not None,
            role_user_counts=counts,
            permissions_updated=updated,
            users_reassigned=reassigned,
        )
        logger.info("System maintenance completed: %s", report.model_dump())
        return report
