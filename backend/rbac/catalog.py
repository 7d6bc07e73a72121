"""Role catalog: canonical roles, hierarchy, and default permission matrices.

Everything here is static data. Matrices are declared per role rather than
inherited so that maintenance repairs are deterministic and easy to audit.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from backend.core.exceptions import UnknownRoleError


class RoleName(str, Enum):
    """Canonical role identifiers."""

    VIEWER = "viewer"
    AGENT = "agent"
    OPERATOR = "operator"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPERADMINISTRATOR = "superadministrator"


class Resource(str, Enum):
    DASHBOARD = "dashboard"
    USERS = "users"
    BOTS = "bots"
    AGENTS = "agents"
    ANALYTICS = "analytics"
    KNOWLEDGE_BASE = "knowledgeBase"
    SETTINGS = "settings"
    HANDOFFS = "handoffs"
    CHATS = "chats"
    TICKETS = "tickets"
    ROLES = "roles"
    INTEGRATIONS = "integrations"
    LOGS = "logs"


class Action(str, Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    MANAGE = "manage"
    EXPORT = "export"
    VIEW = "view"
    ASSIGN = "assign"
    PUBLISH = "publish"
    SYSTEM = "system"


# Least to most privileged.
ROLE_HIERARCHY: Tuple[RoleName, ...] = (
    RoleName.VIEWER,
    RoleName.AGENT,
    RoleName.OPERATOR,
    RoleName.MANAGER,
    RoleName.ADMIN,
    RoleName.SUPERADMINISTRATOR,
)


class ResourcePermissions(BaseModel):
    """Action flags for a single resource."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    create: bool = False
    read: bool = False
    update: bool = False
    delete: bool = False
    manage: bool = False
    export: bool = False
    view: bool = False
    assign: bool = False
    publish: bool = False
    system: bool = False


class PermissionMatrix(BaseModel):
    """Mapping of every resource to its action flags.

    Unknown resources or actions are rejected at construction time.
    Serialized with the wire names (``knowledgeBase``).
    """

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=True)

    dashboard: ResourcePermissions = Field(default_factory=ResourcePermissions)
    users: ResourcePermissions = Field(default_factory=ResourcePermissions)
    bots: ResourcePermissions = Field(default_factory=ResourcePermissions)
    agents: ResourcePermissions = Field(default_factory=ResourcePermissions)
    analytics: ResourcePermissions = Field(default_factory=ResourcePermissions)
    knowledge_base: ResourcePermissions = Field(
        default_factory=ResourcePermissions, alias="knowledgeBase"
    )
    settings: ResourcePermissions = Field(default_factory=ResourcePermissions)
    handoffs: ResourcePermissions = Field(default_factory=ResourcePermissions)
    chats: ResourcePermissions = Field(default_factory=ResourcePermissions)
    tickets: ResourcePermissions = Field(default_factory=ResourcePermissions)
    roles: ResourcePermissions = Field(default_factory=ResourcePermissions)
    integrations: ResourcePermissions = Field(default_factory=ResourcePermissions)
    logs: ResourcePermissions = Field(default_factory=ResourcePermissions)

    @classmethod
    def from_grants(cls, grants: Mapping[str, Iterable[str]]) -> "PermissionMatrix":
        """Build a matrix from ``{resource: [action, ...]}``."""
        return cls.model_validate(
            {resource: {action: True for action in actions} for resource, actions in grants.items()}
        )

    @classmethod
    def from_json(cls, raw: Optional[str]) -> "PermissionMatrix":
        if not raw:
            return cls()
        return cls.model_validate_json(raw)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    def allows(self, resource: Resource, action: Action) -> bool:
        flags = getattr(self, _FIELD_FOR_RESOURCE[resource])
        return bool(getattr(flags, action.value))


_FIELD_FOR_RESOURCE: Dict[Resource, str] = {
    resource: ("knowledge_base" if resource is Resource.KNOWLEDGE_BASE else resource.value)
    for resource in Resource
}


@dataclass(frozen=True)
class RoleDefinition:
    """Catalog entry for a system role."""

    role: RoleName
    display_name: str
    description: str
    color: str
    permissions: PermissionMatrix

    @property
    def priority(self) -> int:
        # 1 = most privileged, matching the stored ``priority`` column.
        return len(ROLE_HIERARCHY) - ROLE_HIERARCHY.index(self.role)


_DEFINITIONS: Dict[RoleName, RoleDefinition] = {
    RoleName.SUPERADMINISTRATOR: RoleDefinition(
        role=RoleName.SUPERADMINISTRATOR,
        display_name="Super Administrator",
        description="Full system access with all permissions including system administration",
        color="#DC2626",
        permissions=PermissionMatrix.from_grants({
            "dashboard": ["view", "export", "manage"],
            "users": ["create", "read", "update", "delete", "manage"],
            "bots": ["create", "read", "update", "delete", "manage", "publish"],
            "agents": ["create", "read", "update", "delete", "manage", "assign"],
            "analytics": ["view", "export", "manage"],
            "knowledgeBase": ["create", "read", "update", "delete", "manage"],
            "settings": ["view", "update", "system", "manage"],
            "handoffs": ["view", "manage", "assign"],
            "chats": ["view", "manage"],
            "tickets": ["create", "read", "update", "delete", "manage"],
            "roles": ["create", "read", "update", "delete", "manage"],
            "integrations": ["create", "read", "update", "delete", "manage"],
            "logs": ["view", "export"],
        }),
    ),
    RoleName.ADMIN: RoleDefinition(
        role=RoleName.ADMIN,
        display_name="Administrator",
        description="Administrative access with limited system permissions",
        color="#DC2626",
        permissions=PermissionMatrix.from_grants({
            "dashboard": ["view", "export"],
            "users": ["create", "read", "update", "delete"],
            "bots": ["create", "read", "update", "delete", "publish"],
            "agents": ["create", "read", "update", "delete", "assign"],
            "analytics": ["view", "export"],
            "knowledgeBase": ["create", "read", "update", "delete"],
            "settings": ["view", "update"],
            "handoffs": ["view", "assign"],
            "chats": ["view"],
            "tickets": ["create", "read", "update", "delete"],
            "roles": ["read", "update"],
            "integrations": ["create", "read", "update", "delete"],
            "logs": ["view"],
        }),
    ),
    RoleName.MANAGER: RoleDefinition(
        role=RoleName.MANAGER,
        display_name="Manager",
        description="Management level access for team supervision",
        color="#F59E0B",
        permissions=PermissionMatrix.from_grants({
            "dashboard": ["view", "export"],
            "users": ["read", "update"],
            "bots": ["read", "update"],
            "agents": ["read", "update", "assign"],
            "analytics": ["view", "export"],
            "knowledgeBase": ["read", "update"],
            "settings": ["view"],
            "handoffs": ["view", "assign"],
            "chats": ["view"],
            "tickets": ["create", "read", "update"],
            "roles": ["read"],
            "integrations": ["read"],
            "logs": ["view"],
        }),
    ),
    RoleName.OPERATOR: RoleDefinition(
        role=RoleName.OPERATOR,
        display_name="Operator",
        description="Operational access for daily tasks",
        color="#10B981",
        permissions=PermissionMatrix.from_grants({
            "dashboard": ["view"],
            "users": ["read"],
            "bots": ["read"],
            "agents": ["read"],
            "analytics": ["view"],
            "knowledgeBase": ["read", "update"],
            "settings": ["view"],
            "handoffs": ["view"],
            "chats": ["view"],
            "tickets": ["create", "read", "update"],
            "roles": ["read"],
            "integrations": ["read"],
            "logs": ["view"],
        }),
    ),
    RoleName.AGENT: RoleDefinition(
        role=RoleName.AGENT,
        display_name="Agent",
        description="Chat agent access for customer support",
        color="#8B5CF6",
        permissions=PermissionMatrix.from_grants({
            "dashboard": ["view"],
            "analytics": ["view"],
            "knowledgeBase": ["read"],
            "handoffs": ["view", "update"],
            "chats": ["view", "update"],
            "tickets": ["read", "update"],
        }),
    ),
    RoleName.VIEWER: RoleDefinition(
        role=RoleName.VIEWER,
        display_name="Viewer",
        description="Read-only access for viewing information",
        color="#6B7280",
        permissions=PermissionMatrix.from_grants({
            "dashboard": ["view"],
            "analytics": ["view"],
            "knowledgeBase": ["read"],
            "chats": ["view"],
            "tickets": ["read"],
        }),
    ),
}

# The only spellings accepted for each role, compared case-insensitively.
# Legacy records use the short forms ("superadmin", "admin").
ROLE_ALIASES: Dict[str, RoleName] = {
    "viewer": RoleName.VIEWER,
    "agent": RoleName.AGENT,
    "operator": RoleName.OPERATOR,
    "manager": RoleName.MANAGER,
    "admin": RoleName.ADMIN,
    "administrator": RoleName.ADMIN,
    "superadministrator": RoleName.SUPERADMINISTRATOR,
    "super administrator": RoleName.SUPERADMINISTRATOR,
    "superadmin": RoleName.SUPERADMINISTRATOR,
    "super_admin": RoleName.SUPERADMINISTRATOR,
}

DEFAULT_ROLE = RoleName.VIEWER

RoleLike = Union[RoleName, str]


def resolve_role(role: RoleLike) -> RoleName:
    """Normalize a stored or requested role spelling to its canonical value.

    Raises:
        UnknownRoleError: If the spelling is not in the alias table.
    """
    if isinstance(role, RoleName):
        return role
    if not isinstance(role, str):
        raise UnknownRoleError(repr(role))
    try:
        return ROLE_ALIASES[role.strip().lower()]
    except KeyError:
        raise UnknownRoleError(role) from None


def try_resolve_role(role: RoleLike) -> Optional[RoleName]:
    """Like :func:`resolve_role` but returns ``None`` for unknown spellings."""
    try:
        return resolve_role(role)
    except UnknownRoleError:
        return None


def level(role: RoleLike) -> int:
    """Position of ``role`` in the hierarchy (0 = least privileged)."""
    return ROLE_HIERARCHY.index(resolve_role(role))


def is_higher(a: RoleLike, b: RoleLike) -> bool:
    return level(a) > level(b)


def can_manage_role(actor: RoleLike, target: RoleLike) -> bool:
    """An actor may only manage roles strictly below its own."""
    actor_role = try_resolve_role(actor)
    target_role = try_resolve_role(target)
    if actor_role is None or target_role is None:
        return False
    return is_higher(actor_role, target_role)


def get_definition(role: RoleLike) -> RoleDefinition:
    return _DEFINITIONS[resolve_role(role)]


def default_matrix(role: RoleLike) -> PermissionMatrix:
    return get_definition(role).permissions


def display_name(role: RoleLike) -> str:
    return get_definition(role).display_name


def role_definitions() -> Tuple[RoleDefinition, ...]:
    """All system role definitions, least to most privileged."""
    return tuple(_DEFINITIONS[role] for role in ROLE_HIERARCHY)


def system_role_names() -> Tuple[str, ...]:
    return tuple(definition.display_name for definition in role_definitions())


def privileged_role_names() -> Tuple[str, ...]:
    """Every stored spelling that denotes an administrator-capable role."""
    privileged = {RoleName.ADMIN, RoleName.SUPERADMINISTRATOR}
    names = {display_name(role) for role in privileged}
    names.update(alias for alias, role in ROLE_ALIASES.items() if role in privileged)
    return tuple(sorted(names))
