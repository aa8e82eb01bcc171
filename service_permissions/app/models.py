"""
Request and response models for the Permissions Service.
"""

from typing import Dict, Any, Optional, List
from datetime import datetime

from pydantic import BaseModel, Field

from .permissions.models import (
    Action, Section, Role, AccessContext, GeoLocation, PermissionAssignment,
    assignment_to_document
)


class GeoLocationModel(BaseModel):
    country: Optional[str] = None
    region: Optional[str] = None


class AccessContextModel(BaseModel):
    """Request context supplied by the caller."""
    ip_address: Optional[str] = Field(None, description="Requesting IP address")
    timestamp: Optional[datetime] = Field(None, description="Evaluation time, defaults to now")
    geo_location: Optional[GeoLocationModel] = None

    def to_context(self) -> AccessContext:
        geo = None
        if self.geo_location is not None:
            geo = GeoLocation(country=self.geo_location.country, region=self.geo_location.region)
        return AccessContext(ip_address=self.ip_address, timestamp=self.timestamp, geo_location=geo)


class PermissionCheckRequest(BaseModel):
    """Check a stored user's permission."""
    user_id: str = Field(..., description="User identifier")
    section: Section
    action: Action
    context: AccessContextModel = Field(default_factory=AccessContextModel)


class PermissionEvaluateRequest(BaseModel):
    """Evaluate an inline assignment document."""
    assignment: Optional[Dict[str, Any]] = Field(
        None, description="Assignment in its stored camelCase shape"
    )
    section: Section
    action: Action
    context: AccessContextModel = Field(default_factory=AccessContextModel)


class PermissionDecisionResponse(BaseModel):
    """Result of a permission check."""
    allowed: bool
    reason: str
    evaluation_time_ms: float


class PermissionRequest(BaseModel):
    """A (section, action) pair for grant, deny and reset."""
    section: Section
    action: Action


class RoleChangeRequest(BaseModel):
    role: Role


class ExpirationRequest(BaseModel):
    expires_at: Optional[datetime] = Field(None, description="Expiry; null clears it")


class VisibleSectionsResponse(BaseModel):
    user_id: str
    sections: List[str]


class EffectivePermissionsResponse(BaseModel):
    """Role permissions plus grants minus denials."""
    user_id: str
    role: str
    permissions: List[str]
    groups: List[str]


class AssignmentResponse(BaseModel):
    """Assignment in its stored shape."""
    assignment: Dict[str, Any]

    @classmethod
    def from_assignment(cls, assignment: PermissionAssignment) -> "AssignmentResponse":
        return cls(assignment=assignment_to_document(assignment))
