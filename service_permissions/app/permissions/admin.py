"""
Administrative mutations of permission assignments.

Each function changes the assignment in place, stamps ``updated_at`` and
returns the assignment.
"""

from typing import Optional
from datetime import datetime, timezone

from shared.errors import RoleChangeError

from .models import (
    AccessRestriction, Permission, PermissionAssignment, Role, ensure_utc
)


def _touch(assignment: PermissionAssignment) -> PermissionAssignment:
    assignment.updated_at = datetime.now(timezone.utc)
    return assignment


def _without(permissions, permission: Permission):
    return [p for p in permissions if p.key != permission.key]


def grant_permission(assignment: PermissionAssignment, permission: Permission) -> PermissionAssignment:
    """Grant a permission, lifting any denial of it."""
    custom = assignment.custom_permissions
    custom.denied = _without(custom.denied, permission)
    if not custom.is_granted(permission):
        custom.granted.append(permission)
    return _touch(assignment)


def deny_permission(assignment: PermissionAssignment, permission: Permission) -> PermissionAssignment:
    """Deny a permission, dropping any grant of it."""
    custom = assignment.custom_permissions
    custom.granted = _without(custom.granted, permission)
    if not custom.is_denied(permission):
        custom.denied.append(permission)
    return _touch(assignment)


def reset_permission(assignment: PermissionAssignment, permission: Permission) -> PermissionAssignment:
    """Return a permission to role-based evaluation."""
    custom = assignment.custom_permissions
    custom.granted = _without(custom.granted, permission)
    custom.denied = _without(custom.denied, permission)
    return _touch(assignment)


def add_restriction(assignment: PermissionAssignment, restriction: AccessRestriction) -> PermissionAssignment:
    # Same id replaces the existing restriction
    assignment.access_restrictions = [
        r for r in assignment.access_restrictions
        if r.restriction_id != restriction.restriction_id
    ]
    assignment.access_restrictions.append(restriction)
    return _touch(assignment)


def remove_restriction(assignment: PermissionAssignment, restriction_id: str) -> bool:
    """Remove a restriction by id; False when there was none."""
    remaining = [r for r in assignment.access_restrictions if r.restriction_id != restriction_id]
    if len(remaining) == len(assignment.access_restrictions):
        return False
    assignment.access_restrictions = remaining
    _touch(assignment)
    return True


def set_expiration(assignment: PermissionAssignment, expires_at: Optional[datetime]) -> PermissionAssignment:
    """Set or clear (None) the expiry of an assignment."""
    assignment.expires_at = ensure_utc(expires_at) if expires_at else None
    return _touch(assignment)


def change_role(assignment: PermissionAssignment, role: Role) -> PermissionAssignment:
    """Change the role; moving into or out of SuperAdmin is refused."""
    if role == assignment.role:
        return assignment
    if Role.SUPER_ADMIN in (role, assignment.role):
        raise RoleChangeError(
            "Changing to or from SuperAdmin is not allowed",
            {"from_role": assignment.role.value, "to_role": role.value}
        )
    assignment.role = role
    return _touch(assignment)
