"""
Permission evaluation engine for the Permissions Service.
"""

import time
from typing import Any, Callable, List, Optional
from datetime import datetime, timezone

from shared.logging import get_logger

from .models import (
    AccessContext, Action, Permission, PermissionAssignment,
    PermissionDecision, Section, ensure_utc
)
from .restrictions import restriction_permits
from .roles import PermissionGroup, RolePermissionTable, groups_holding


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PermissionEngine:
    """Decides whether an assignment permits a (section, action) pair.

    The chain is short-circuiting and every step is terminal:

    1. no assignment denies
    2. an expired assignment denies
    3. any restriction that does not permit the context denies
    4. a custom denial denies
    5. a custom grant allows
    6. the role table decides
    """

    def __init__(self, role_table: RolePermissionTable, clock: Callable[[], datetime] = _utc_now):
        self.logger = get_logger("permissions.engine")
        self.role_table = role_table
        self.clock = clock

    def has_permission(
        self,
        assignment: Optional[PermissionAssignment],
        section: Any,
        action: Any,
        context: Optional[AccessContext] = None
    ) -> bool:
        return self.evaluate(assignment, section, action, context).allowed

    def evaluate(
        self,
        assignment: Optional[PermissionAssignment],
        section: Any,
        action: Any,
        context: Optional[AccessContext] = None
    ) -> PermissionDecision:
        """Evaluate a permission; never raises."""
        start_time = time.time()

        def decision(allowed: bool, reason: str) -> PermissionDecision:
            result = PermissionDecision(
                allowed=allowed,
                reason=reason,
                evaluation_time_ms=(time.time() - start_time) * 1000
            )
            self.logger.debug(
                "Permission decision",
                user_id=assignment.user_id if assignment else None,
                section=str(getattr(section, "value", section)),
                action=str(getattr(action, "value", action)),
                allowed=allowed,
                reason=reason
            )
            return result

        try:
            if assignment is None:
                return decision(False, "No permission assignment")

            try:
                permission = Permission(Section(section), Action(action))
            except ValueError:
                return decision(False, "Unknown section or action")

            context = self._with_timestamp(context)

            if assignment.expires_at and ensure_utc(assignment.expires_at) < context.timestamp:
                return decision(False, "Assignment expired")

            for restriction in assignment.access_restrictions:
                if not restriction_permits(restriction, context):
                    return decision(False, f"Blocked by {restriction.type.value} restriction")

            custom = assignment.custom_permissions
            if custom.is_denied(permission):
                return decision(False, f"{permission.key} explicitly denied")

            if custom.is_granted(permission):
                return decision(True, f"{permission.key} explicitly granted")

            if self.role_table.allows(assignment.role, permission):
                return decision(True, f"Granted by role {assignment.role.value}")

            return decision(False, f"Not granted to role {assignment.role.value}")

        except Exception as e:
            self.logger.error("Permission evaluation error", error=str(e))
            return decision(False, "Permission evaluation error")

    def visible_sections(
        self,
        assignment: Optional[PermissionAssignment],
        context: Optional[AccessContext] = None
    ) -> List[Section]:
        """Sections the assignment may view, in navigation order."""
        context = self._with_timestamp(context)
        return [
            section for section in Section
            if self.has_permission(assignment, section, Action.VIEW, context)
        ]

    def effective_permissions(self, assignment: Optional[PermissionAssignment]) -> List[Permission]:
        """Role permissions plus custom grants, minus custom denials.

        Expiry and access restrictions are not applied; this is the
        assignment as configured, not a decision for a context.
        """
        if assignment is None:
            return []

        custom = assignment.custom_permissions
        held = set(self.role_table.permissions_for(assignment.role))
        held.update(custom.granted)
        held.difference_update(custom.denied)
        return [
            Permission(section, action)
            for section in Section for action in Action
            if Permission(section, action) in held
        ]

    def permission_groups(self, assignment: Optional[PermissionAssignment]) -> List[PermissionGroup]:
        """Permission groups the assignment holds at least one permission of."""
        return groups_holding(self.effective_permissions(assignment))

    def _with_timestamp(self, context: Optional[AccessContext]) -> AccessContext:
        """Copy of the context with its timestamp pinned, defaulting to now."""
        context = context or AccessContext()
        timestamp = ensure_utc(context.timestamp) if context.timestamp else self.clock()
        return AccessContext(
            ip_address=context.ip_address,
            timestamp=timestamp,
            geo_location=context.geo_location
        )
