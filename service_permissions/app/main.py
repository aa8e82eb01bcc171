"""
Permissions service for the Timberline admin area.
"""

from typing import Dict, Any, Optional
from datetime import datetime

from fastapi import Body, Query

from shared.base_service import BaseService
from shared.errors import NotFoundError

from .permissions.admin import (
    grant_permission, deny_permission, reset_permission,
    add_restriction, remove_restriction, set_expiration, change_role
)
from .permissions.engine import PermissionEngine
from .permissions.models import (
    AccessContext, Action, Permission, PermissionAssignment, PermissionDecision,
    Section, assignment_from_document, restriction_from_document, restriction_to_document
)
from .permissions.roles import PERMISSION_GROUPS, load_role_table
from .store.redis_store import AssignmentStore
from .models import (
    PermissionCheckRequest, PermissionEvaluateRequest, PermissionDecisionResponse,
    PermissionRequest, RoleChangeRequest, ExpirationRequest,
    VisibleSectionsResponse, EffectivePermissionsResponse, AssignmentResponse,
    AccessContextModel, GeoLocationModel
)


class PermissionsService(BaseService):
    """Permissions service implementation."""

    def __init__(self):
        super().__init__("permissions", 8022)

        self.role_table = load_role_table()
        self.engine = PermissionEngine(self.role_table)
        self.store = AssignmentStore(self.config.redis_url)

        self._setup_permissions_routes()

    def _evaluate(
        self,
        endpoint: str,
        assignment: Optional[PermissionAssignment],
        section: Section,
        action: Action,
        context: AccessContext
    ) -> PermissionDecision:
        with self.metrics.time_operation("permission_check_duration_seconds", endpoint=endpoint):
            decision = self.engine.evaluate(assignment, section, action, context)

        self.metrics.increment_counter(
            "permission_checks_total",
            decision="allow" if decision.allowed else "deny"
        )
        return decision

    async def _load_or_default(self, user_id: str) -> PermissionAssignment:
        assignment = await self.store.get_assignment(user_id)
        if assignment is None:
            assignment = PermissionAssignment(user_id=user_id)
        return assignment

    async def _save(self, assignment: PermissionAssignment, event: str) -> AssignmentResponse:
        await self.store.save_assignment(assignment)
        self.metrics.record_business_event(event)
        self.logger.info("Assignment updated", user_id=assignment.user_id, change=event)
        return AssignmentResponse.from_assignment(assignment)

    def _setup_permissions_routes(self):
        """Set up permissions-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "permissions",
                "message": "Timberline - Permissions Service",
                "version": "1.0.0",
                "capabilities": ["permission_checks", "visible_sections", "permission_groups", "assignment_admin"]
            }

        @self.app.get("/permissions/roles")
        async def get_roles():
            """Role permission table."""
            return {
                "roles": self.role_table.to_dict(),
                "full_access_roles": sorted(r.value for r in self.role_table.full_access_roles)
            }

        @self.app.post("/permissions/check", response_model=PermissionDecisionResponse)
        async def check_permission(request: PermissionCheckRequest):
            """Check a permission against the stored assignment of a user."""
            assignment = await self.store.get_assignment(request.user_id)
            decision = self._evaluate(
                "check", assignment, request.section, request.action, request.context.to_context()
            )
            return PermissionDecisionResponse(**decision.__dict__)

        @self.app.post("/permissions/evaluate", response_model=PermissionDecisionResponse)
        async def evaluate_permission(request: PermissionEvaluateRequest):
            """Evaluate a permission against an inline assignment."""
            assignment = None
            if request.assignment is not None:
                assignment = assignment_from_document(request.assignment)
            decision = self._evaluate(
                "evaluate", assignment, request.section, request.action, request.context.to_context()
            )
            return PermissionDecisionResponse(**decision.__dict__)

        @self.app.get("/permissions/users/{user_id}/sections", response_model=VisibleSectionsResponse)
        async def get_visible_sections(
            user_id: str,
            ip_address: Optional[str] = Query(None, description="Requesting IP address"),
            timestamp: Optional[datetime] = Query(None, description="Evaluation time, defaults to now"),
            country: Optional[str] = Query(None, description="Requesting country code"),
            region: Optional[str] = Query(None, description="Requesting region code")
        ):
            """Admin sections the user may view."""
            geo = GeoLocationModel(country=country, region=region) if country or region else None
            context = AccessContextModel(ip_address=ip_address, timestamp=timestamp, geo_location=geo)
            assignment = await self.store.get_assignment(user_id)
            sections = self.engine.visible_sections(assignment, context.to_context())
            return VisibleSectionsResponse(user_id=user_id, sections=[s.value for s in sections])

        @self.app.get("/permissions/users/{user_id}/permissions", response_model=EffectivePermissionsResponse)
        async def get_effective_permissions(user_id: str):
            """Permissions the user's assignment holds, and the groups they fall in."""
            assignment = await self.store.get_assignment(user_id)
            if assignment is None:
                raise NotFoundError("Assignment", user_id)
            return EffectivePermissionsResponse(
                user_id=user_id,
                role=assignment.role.value,
                permissions=[p.key for p in self.engine.effective_permissions(assignment)],
                groups=[g.id for g in self.engine.permission_groups(assignment)]
            )

        @self.app.get("/permissions/groups")
        async def get_permission_groups():
            """Permission groups shown in the admin UI."""
            return {"groups": [group.to_dict() for group in PERMISSION_GROUPS]}

        @self.app.get("/permissions/assignments/{user_id}", response_model=AssignmentResponse)
        async def get_assignment(user_id: str):
            """Get the stored assignment of a user."""
            assignment = await self.store.get_assignment(user_id)
            if assignment is None:
                raise NotFoundError("Assignment", user_id)
            return AssignmentResponse.from_assignment(assignment)

        @self.app.put("/permissions/assignments/{user_id}", response_model=AssignmentResponse)
        async def put_assignment(user_id: str, document: Dict[str, Any] = Body(...)):
            """Replace the assignment of a user."""
            document = {**document, "userId": user_id}
            return await self._save(assignment_from_document(document), "assignment_replaced")

        @self.app.delete("/permissions/assignments/{user_id}")
        async def delete_assignment(user_id: str):
            """Delete a user's assignment, returning them to the default role."""
            if not await self.store.delete_assignment(user_id):
                raise NotFoundError("Assignment", user_id)
            self.metrics.record_business_event("assignment_deleted")
            self.logger.info("Assignment deleted", user_id=user_id)
            return {"success": True, "message": "Assignment deleted successfully"}

        @self.app.post("/permissions/assignments/{user_id}/grant", response_model=AssignmentResponse)
        async def grant(user_id: str, request: PermissionRequest):
            """Grant a permission to a user."""
            assignment = await self._load_or_default(user_id)
            grant_permission(assignment, Permission(request.section, request.action))
            return await self._save(assignment, "permission_granted")

        @self.app.post("/permissions/assignments/{user_id}/deny", response_model=AssignmentResponse)
        async def deny(user_id: str, request: PermissionRequest):
            """Deny a permission to a user."""
            assignment = await self._load_or_default(user_id)
            deny_permission(assignment, Permission(request.section, request.action))
            return await self._save(assignment, "permission_denied")

        @self.app.post("/permissions/assignments/{user_id}/reset", response_model=AssignmentResponse)
        async def reset(user_id: str, request: PermissionRequest):
            """Return a permission to role-based evaluation."""
            assignment = await self._load_or_default(user_id)
            reset_permission(assignment, Permission(request.section, request.action))
            return await self._save(assignment, "permission_reset")

        @self.app.put("/permissions/assignments/{user_id}/role", response_model=AssignmentResponse)
        async def update_role(user_id: str, request: RoleChangeRequest):
            """Change the role of a user."""
            assignment = await self._load_or_default(user_id)
            change_role(assignment, request.role)
            return await self._save(assignment, "role_changed")

        @self.app.post("/permissions/assignments/{user_id}/restrictions", status_code=201)
        async def create_restriction(user_id: str, document: Dict[str, Any] = Body(...)):
            """Add an access restriction to a user."""
            restriction = restriction_from_document(document)
            assignment = await self._load_or_default(user_id)
            add_restriction(assignment, restriction)
            response = await self._save(assignment, "restriction_added")
            return {
                "restriction": restriction_to_document(restriction),
                "assignment": response.assignment
            }

        @self.app.delete(
            "/permissions/assignments/{user_id}/restrictions/{restriction_id}",
            response_model=AssignmentResponse
        )
        async def delete_restriction(user_id: str, restriction_id: str):
            """Remove an access restriction from a user."""
            assignment = await self.store.get_assignment(user_id)
            if assignment is None or not remove_restriction(assignment, restriction_id):
                raise NotFoundError("Restriction", restriction_id)
            return await self._save(assignment, "restriction_removed")

        @self.app.put("/permissions/assignments/{user_id}/expiration", response_model=AssignmentResponse)
        async def update_expiration(user_id: str, request: ExpirationRequest):
            """Set or clear the expiry of a user's assignment."""
            assignment = await self._load_or_default(user_id)
            set_expiration(assignment, request.expires_at)
            return await self._save(assignment, "expiration_set")

        @self.app.get("/permissions/stats")
        async def get_stats():
            """Get role table statistics."""
            return {
                "roles": {role: len(keys) for role, keys in self.role_table.to_dict().items()},
                "timestamp": datetime.now().isoformat()
            }

    async def _check_dependencies(self) -> Dict[str, str]:
        """Check permissions service dependencies."""
        return {"redis": "ok" if await self.store.health_check() else "error"}

    async def start(self):
        """Start permissions service components."""
        await self.store.start()
        self.logger.info("Permissions service started")

    async def stop(self):
        """Stop permissions service components."""
        await self.store.stop()
        self.logger.info("Permissions service stopped")


def create_app():
    """Create permissions service application."""
    service = PermissionsService()
    return service.app


if __name__ == "__main__":
    service = PermissionsService()
    service.run()
