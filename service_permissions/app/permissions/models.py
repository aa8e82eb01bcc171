"""
Permission data models for the Permissions Service.
"""

import uuid
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from shared.errors import ValidationError


class Role(str, Enum):
    """User roles, least to most privileged."""
    GUEST = "Guest"
    CUSTOMER = "Customer"
    MANAGER = "Manager"
    ADMIN = "Admin"
    SUPER_ADMIN = "SuperAdmin"


class Section(str, Enum):
    """Admin areas a permission applies to, in navigation order."""
    DASHBOARD = "Dashboard"
    ORDERS = "Orders"
    PRODUCTS = "Products"
    PRODUCTS_PRICES = "ProductsPrices"
    PRODUCTS_PHOTOS = "ProductsPhotos"
    PRODUCTS_SPECIAL_DEALS = "ProductsSpecialDeals"
    CONTENT = "Content"
    CONTENT_GALLERY = "ContentGallery"
    CONTENT_SEO = "ContentSEO"
    SETTINGS = "Settings"
    SETTINGS_COMPANY = "SettingsCompany"
    SETTINGS_FINANCIAL = "SettingsFinancial"
    SETTINGS_DELIVERY = "SettingsDelivery"
    SETTINGS_PAYMENTS = "SettingsPayments"
    SETTINGS_ANALYTICS = "SettingsAnalytics"
    SETTINGS_NOTIFICATIONS = "SettingsNotifications"
    SETTINGS_ROLES = "SettingsRoles"
    USERS = "Users"
    CRM = "CRM"
    CRM_LEADS = "CRMLeads"
    TOOLS = "Tools"
    TOOLS_EXPORTS = "ToolsExports"


class Action(str, Enum):
    """Actions within a section."""
    VIEW = "View"
    CREATE = "Create"
    EDIT = "Edit"
    DELETE = "Delete"
    APPROVE = "Approve"


@dataclass(frozen=True)
class Permission:
    """A (section, action) pair."""
    section: Section
    action: Action

    @property
    def key(self) -> str:
        return f"{self.section.value}:{self.action.value}"

    @classmethod
    def of(cls, section: Any, action: Any) -> "Permission":
        try:
            return cls(Section(section), Action(action))
        except ValueError:
            raise ValidationError(
                "Unknown permission",
                {"section": str(section), "action": str(action)}
            )

    @classmethod
    def from_key(cls, key: str) -> "Permission":
        section, _, action = key.partition(":")
        return cls.of(section, action)


class RestrictionMode(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class RestrictionType(str, Enum):
    """Persisted restriction type tags."""
    IP_ALLOW = "ip_allow"
    IP_DENY = "ip_deny"
    TIME_ALLOW = "time_allow"
    TIME_DENY = "time_deny"
    GEO_ALLOW = "geo_allow"
    GEO_DENY = "geo_deny"


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class IpRestriction:
    """Allow or deny list of IP addresses; exact string match only."""
    mode: RestrictionMode
    ip_addresses: List[str] = field(default_factory=list)
    restriction_id: str = field(default_factory=_new_id)

    @property
    def type(self) -> RestrictionType:
        return RestrictionType(f"ip_{self.mode.value}")


@dataclass
class TimeRestriction:
    """Weekly time window in a given timezone.

    Days use 0 for Sunday through 6 for Saturday. ``start`` and ``end`` are
    ``HH:MM`` and the window is inclusive at both ends.
    """
    mode: RestrictionMode
    days_of_week: List[int] = field(default_factory=list)
    start: str = "00:00"
    end: str = "23:59"
    timezone: str = "UTC"
    restriction_id: str = field(default_factory=_new_id)

    @property
    def type(self) -> RestrictionType:
        return RestrictionType(f"time_{self.mode.value}")


@dataclass
class GeoRestriction:
    """Allow or deny by country, optionally narrowed by region."""
    mode: RestrictionMode
    countries: List[str] = field(default_factory=list)
    regions: List[str] = field(default_factory=list)
    restriction_id: str = field(default_factory=_new_id)

    @property
    def type(self) -> RestrictionType:
        return RestrictionType(f"geo_{self.mode.value}")


AccessRestriction = Union[IpRestriction, TimeRestriction, GeoRestriction]


@dataclass
class CustomPermissions:
    """Per-user overrides of the role table."""
    granted: List[Permission] = field(default_factory=list)
    denied: List[Permission] = field(default_factory=list)

    def is_granted(self, permission: Permission) -> bool:
        return permission.key in {p.key for p in self.granted}

    def is_denied(self, permission: Permission) -> bool:
        return permission.key in {p.key for p in self.denied}


@dataclass
class PermissionAssignment:
    """A user's full authorization record."""
    user_id: str
    role: Role = Role.CUSTOMER
    custom_permissions: CustomPermissions = field(default_factory=CustomPermissions)
    access_restrictions: List[AccessRestriction] = field(default_factory=list)
    expires_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class GeoLocation:
    country: Optional[str] = None
    region: Optional[str] = None


@dataclass
class AccessContext:
    """Request context supplied by the caller; the engine does no lookups."""
    ip_address: Optional[str] = None
    timestamp: Optional[datetime] = None
    geo_location: Optional[GeoLocation] = None


@dataclass
class PermissionDecision:
    """Result of a permission evaluation."""
    allowed: bool
    reason: str
    evaluation_time_ms: float = 0.0


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def parse_time_of_day(value: str) -> int:
    """Minutes since midnight of an ``HH:MM`` string."""
    try:
        hours, minutes = value.split(":")
        hours, minutes = int(hours), int(minutes)
    except (AttributeError, ValueError):
        raise ValidationError("Time must be HH:MM", {"value": value})
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValidationError("Time must be HH:MM", {"value": value})
    return hours * 60 + minutes


# Persisted document shape

def permission_to_document(permission: Permission) -> Dict[str, str]:
    return {"section": permission.section.value, "action": permission.action.value}


def permission_from_document(data: Any) -> Permission:
    if isinstance(data, str):
        return Permission.from_key(data)
    if not isinstance(data, dict):
        raise ValidationError("Permission must be an object", {"value": repr(data)})
    return Permission.of(data.get("section"), data.get("action"))


def restriction_to_document(restriction: AccessRestriction) -> Dict[str, Any]:
    """Stored shape: ``{id, type, value}`` with a type-specific ``value``."""
    if isinstance(restriction, IpRestriction):
        value: Dict[str, Any] = {"ipAddresses": list(restriction.ip_addresses)}
    elif isinstance(restriction, TimeRestriction):
        start = parse_time_of_day(restriction.start)
        end = parse_time_of_day(restriction.end)
        value = {
            "daysOfWeek": list(restriction.days_of_week),
            "startHour": start // 60,
            "startMinute": start % 60,
            "endHour": end // 60,
            "endMinute": end % 60,
            "timezone": restriction.timezone
        }
    elif isinstance(restriction, GeoRestriction):
        value = {"countries": list(restriction.countries), "regions": list(restriction.regions)}
    else:
        raise TypeError(f"Unsupported restriction: {type(restriction).__name__}")
    return {"id": restriction.restriction_id, "type": restriction.type.value, "value": value}


def _string_list(data: Dict[str, Any], key: str, required: bool = True) -> List[str]:
    if key not in data or data[key] is None:
        if required:
            raise ValidationError(f"'{key}' is required")
        return []
    value = data[key]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError(f"'{key}' must be a list of strings")
    return list(value)


def _bounded_int(data: Dict[str, Any], key: str, upper: int) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= upper:
        raise ValidationError(f"'{key}' must be an integer from 0 to {upper}", {"value": value})
    return value


def _window_bound(data: Dict[str, Any], prefix: str) -> str:
    """``HH:MM`` from ``<prefix>Hour``/``<prefix>Minute`` or a ``<prefix>Time`` string."""
    text = data.get(f"{prefix}Time")
    if text is not None:
        minutes = parse_time_of_day(text)
    else:
        minutes = _bounded_int(data, f"{prefix}Hour", 23) * 60 + _bounded_int(data, f"{prefix}Minute", 59)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def restriction_from_document(data: Dict[str, Any]) -> AccessRestriction:
    """Parse a stored restriction; the payload may sit under ``value`` or inline."""
    if not isinstance(data, dict):
        raise ValidationError("Restriction must be an object")
    try:
        restriction_type = RestrictionType(data.get("type"))
    except ValueError:
        raise ValidationError("Unknown restriction type", {"type": data.get("type")})

    payload = data.get("value", data)
    if not isinstance(payload, dict):
        raise ValidationError("Restriction 'value' must be an object")

    kind, _, mode = restriction_type.value.partition("_")
    mode = RestrictionMode(mode)
    restriction_id = data.get("id") or _new_id()

    if kind == "ip":
        return IpRestriction(
            mode=mode,
            ip_addresses=_string_list(payload, "ipAddresses"),
            restriction_id=restriction_id
        )
    elif kind == "time":
        days = payload.get("daysOfWeek")
        if not isinstance(days, list) or not all(
            isinstance(day, int) and not isinstance(day, bool) and 0 <= day <= 6 for day in days
        ):
            raise ValidationError("'daysOfWeek' must hold integers 0 (Sunday) to 6 (Saturday)")
        return TimeRestriction(
            mode=mode,
            days_of_week=list(days),
            start=_window_bound(payload, "start"),
            end=_window_bound(payload, "end"),
            timezone=payload.get("timezone") or "UTC",
            restriction_id=restriction_id
        )
    else:
        return GeoRestriction(
            mode=mode,
            countries=_string_list(payload, "countries"),
            regions=_string_list(payload, "regions", required=False),
            restriction_id=restriction_id
        )


def _parse_datetime(value: Any, key: str) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        raise ValidationError(f"'{key}' must be an ISO 8601 timestamp", {"value": value})


def assignment_to_document(assignment: PermissionAssignment) -> Dict[str, Any]:
    """Serialize an assignment to its stored camelCase shape."""
    custom = assignment.custom_permissions
    return {
        "userId": assignment.user_id,
        "role": assignment.role.value,
        "customPermissions": {
            "granted": [permission_to_document(p) for p in custom.granted],
            "denied": [permission_to_document(p) for p in custom.denied]
        },
        "accessRestrictions": [restriction_to_document(r) for r in assignment.access_restrictions],
        "expiresAt": assignment.expires_at.isoformat() if assignment.expires_at else None,
        "updatedAt": assignment.updated_at.isoformat() if assignment.updated_at else None
    }


def assignment_from_document(data: Dict[str, Any], user_id: Optional[str] = None) -> PermissionAssignment:
    """Parse a stored assignment document; raises ValidationError."""
    if not isinstance(data, dict):
        raise ValidationError("Assignment must be an object")

    try:
        role = Role(data.get("role", Role.CUSTOMER.value))
    except ValueError:
        raise ValidationError("Unknown role", {"role": data.get("role")})

    custom = data.get("customPermissions") or {}
    if not isinstance(custom, dict):
        raise ValidationError("'customPermissions' must be an object")
    restrictions = data.get("accessRestrictions") or []
    if not isinstance(restrictions, list):
        raise ValidationError("'accessRestrictions' must be a list")

    resolved_user_id = data.get("userId") or user_id
    if not resolved_user_id:
        raise ValidationError("Assignment has no user id")

    return PermissionAssignment(
        user_id=resolved_user_id,
        role=role,
        custom_permissions=CustomPermissions(
            granted=[permission_from_document(p) for p in custom.get("granted") or []],
            denied=[permission_from_document(p) for p in custom.get("denied") or []]
        ),
        access_restrictions=[restriction_from_document(r) for r in restrictions],
        expires_at=_parse_datetime(data.get("expiresAt"), "expiresAt"),
        updated_at=_parse_datetime(data.get("updatedAt"), "updatedAt")
    )
