"""
Role permission table and permission groups.
"""

from typing import Dict, FrozenSet, Iterable, Mapping, List, Tuple
from dataclasses import dataclass
from types import MappingProxyType

from .models import Role, Section, Action, Permission


ALL_PERMISSIONS: FrozenSet[Permission] = frozenset(
    Permission(section, action) for section in Section for action in Action
)

FULL_ACCESS_ROLES = (Role.SUPER_ADMIN,)


def _grants(section: Section, *actions: Action) -> Tuple[Permission, ...]:
    return tuple(Permission(section, action) for action in actions)


VIEW, CREATE, EDIT, DELETE, APPROVE = Action

ADMIN_PERMISSIONS = frozenset(
    _grants(Section.DASHBOARD, VIEW)
    + _grants(Section.ORDERS, VIEW, EDIT, APPROVE)
    + _grants(Section.PRODUCTS, VIEW, CREATE, EDIT, DELETE)
    + _grants(Section.PRODUCTS_PRICES, VIEW, EDIT)
    + _grants(Section.PRODUCTS_PHOTOS, VIEW, CREATE, EDIT, DELETE)
    + _grants(Section.PRODUCTS_SPECIAL_DEALS, VIEW, CREATE, EDIT, DELETE)
    + _grants(Section.CONTENT, VIEW, EDIT)
    + _grants(Section.CONTENT_GALLERY, VIEW, CREATE, EDIT, DELETE)
    + _grants(Section.CONTENT_SEO, VIEW, EDIT)
    + _grants(Section.SETTINGS, VIEW)
    + _grants(Section.SETTINGS_COMPANY, VIEW, EDIT)
    + _grants(Section.SETTINGS_FINANCIAL, VIEW, EDIT)
    + _grants(Section.SETTINGS_DELIVERY, VIEW, EDIT)
    + _grants(Section.SETTINGS_PAYMENTS, VIEW, EDIT)
    + _grants(Section.SETTINGS_ANALYTICS, VIEW, EDIT)
    + _grants(Section.SETTINGS_NOTIFICATIONS, VIEW, EDIT)
    + _grants(Section.TOOLS, VIEW)
    + _grants(Section.TOOLS_EXPORTS, VIEW, CREATE)
    + _grants(Section.USERS, VIEW)
    + _grants(Section.CRM, VIEW, CREATE, EDIT)
    + _grants(Section.CRM_LEADS, VIEW, CREATE, EDIT)
)

MANAGER_PERMISSIONS = frozenset(
    _grants(Section.DASHBOARD, VIEW)
    + _grants(Section.ORDERS, VIEW, EDIT)
    + _grants(Section.PRODUCTS, VIEW)
    + _grants(Section.PRODUCTS_PHOTOS, VIEW, CREATE, EDIT)
    + _grants(Section.PRODUCTS_SPECIAL_DEALS, VIEW)
    + _grants(Section.CONTENT, VIEW)
    + _grants(Section.CONTENT_GALLERY, VIEW, CREATE, EDIT)
    + _grants(Section.CRM, VIEW)
    + _grants(Section.CRM_LEADS, VIEW, EDIT)
)

# Defaults: role -> granted permissions
DEFAULT_ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.GUEST: frozenset(),
    Role.CUSTOMER: frozenset(),
    Role.MANAGER: MANAGER_PERMISSIONS,
    Role.ADMIN: ADMIN_PERMISSIONS,
    Role.SUPER_ADMIN: ALL_PERMISSIONS,
}


@dataclass(frozen=True)
class PermissionGroup:
    """Named bundle of related permissions shown together in the admin UI."""
    id: str
    name: str
    description: str
    permissions: Tuple[Permission, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "permissions": [p.key for p in self.permissions],
        }


PERMISSION_GROUPS: Tuple[PermissionGroup, ...] = (
    PermissionGroup(
        "dashboard", "Dashboard", "Access to dashboard and analytics",
        _grants(Section.DASHBOARD, VIEW)
    ),
    PermissionGroup(
        "orders", "Orders", "Manage customer orders",
        _grants(Section.ORDERS, VIEW, CREATE, EDIT, DELETE, APPROVE)
    ),
    PermissionGroup(
        "products", "Products", "Manage product catalog",
        _grants(Section.PRODUCTS, VIEW, CREATE, EDIT, DELETE)
        + _grants(Section.PRODUCTS_PRICES, VIEW, EDIT)
        + _grants(Section.PRODUCTS_PHOTOS, VIEW, CREATE, EDIT, DELETE)
        + _grants(Section.PRODUCTS_SPECIAL_DEALS, VIEW, CREATE, EDIT, DELETE)
    ),
    PermissionGroup(
        "content", "Content", "Manage website content",
        _grants(Section.CONTENT, VIEW, CREATE, EDIT, DELETE)
        + _grants(Section.CONTENT_GALLERY, VIEW, CREATE, EDIT, DELETE)
        + _grants(Section.CONTENT_SEO, VIEW, EDIT)
    ),
    PermissionGroup(
        "settings", "Settings", "Manage system settings",
        _grants(Section.SETTINGS, VIEW)
        + _grants(Section.SETTINGS_COMPANY, VIEW, EDIT)
        + _grants(Section.SETTINGS_FINANCIAL, VIEW, EDIT)
        + _grants(Section.SETTINGS_DELIVERY, VIEW, EDIT)
        + _grants(Section.SETTINGS_PAYMENTS, VIEW, EDIT)
        + _grants(Section.SETTINGS_ANALYTICS, VIEW, EDIT)
        + _grants(Section.SETTINGS_NOTIFICATIONS, VIEW, EDIT)
        + _grants(Section.SETTINGS_ROLES, VIEW, EDIT)
    ),
    PermissionGroup(
        "users", "Users", "Manage user accounts",
        _grants(Section.USERS, VIEW, CREATE, EDIT, DELETE)
    ),
    PermissionGroup(
        "crm", "CRM", "Customer relationship management",
        _grants(Section.CRM, VIEW, CREATE, EDIT, DELETE)
        + _grants(Section.CRM_LEADS, VIEW, CREATE, EDIT, DELETE)
    ),
    PermissionGroup(
        "tools", "Tools", "Administrative tools",
        _grants(Section.TOOLS, VIEW)
        + _grants(Section.TOOLS_EXPORTS, VIEW, CREATE)
    ),
)


def groups_holding(permissions: Iterable[Permission]) -> List[PermissionGroup]:
    """Groups sharing at least one permission with the given set."""
    held = frozenset(permissions)
    return [group for group in PERMISSION_GROUPS if held.intersection(group.permissions)]


class RolePermissionTable:
    """Immutable role -> permission lookup."""

    def __init__(
        self,
        table: Mapping[Role, Iterable[Permission]],
        full_access_roles: Iterable[Role] = FULL_ACCESS_ROLES
    ):
        self._table: Mapping[Role, FrozenSet[Permission]] = MappingProxyType(
            {role: frozenset(permissions) for role, permissions in table.items()}
        )
        self.full_access_roles = frozenset(full_access_roles)

    def allows(self, role: Role, permission: Permission) -> bool:
        if role in self.full_access_roles:
            return True
        return permission in self._table.get(role, frozenset())

    def permissions_for(self, role: Role) -> FrozenSet[Permission]:
        if role in self.full_access_roles:
            return ALL_PERMISSIONS
        return self._table.get(role, frozenset())

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            role.value: sorted(p.key for p in self.permissions_for(role))
            for role in Role
        }


def load_role_table() -> RolePermissionTable:
    """Build the role table used by the service."""
    return RolePermissionTable(DEFAULT_ROLE_PERMISSIONS)
