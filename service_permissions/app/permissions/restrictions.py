"""
Access restriction evaluation.

Each restriction either permits or blocks a request given its context.
Missing context fails closed: an allow-list can't be satisfied without the
data it checks, and a deny-list can't prove the request is outside it.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.logging import get_logger
from shared.errors import ValidationError

from .models import (
    AccessContext, AccessRestriction, IpRestriction, TimeRestriction,
    GeoRestriction, RestrictionMode, ensure_utc, parse_time_of_day
)


logger = get_logger("permissions.restrictions")


def _ip_permits(restriction: IpRestriction, context: AccessContext) -> bool:
    if not context.ip_address:
        return False
    listed = context.ip_address in restriction.ip_addresses
    if restriction.mode == RestrictionMode.ALLOW:
        return listed
    return not listed


def time_window_matches(restriction: TimeRestriction, moment: datetime) -> Optional[bool]:
    """Whether ``moment`` falls in the weekly window; None if the window can't be read."""
    try:
        local = ensure_utc(moment).astimezone(ZoneInfo(restriction.timezone))
        start = parse_time_of_day(restriction.start)
        end = parse_time_of_day(restriction.end)
    except (ZoneInfoNotFoundError, ValueError, ValidationError) as e:
        logger.warning(
            "Unreadable time restriction",
            restriction_id=restriction.restriction_id,
            timezone=restriction.timezone,
            error=str(e)
        )
        return None

    # weekday() is 0 for Monday; stored days use 0 for Sunday
    day = (local.weekday() + 1) % 7
    minutes = local.hour * 60 + local.minute
    return day in restriction.days_of_week and start <= minutes <= end


def _time_permits(restriction: TimeRestriction, context: AccessContext) -> bool:
    moment = context.timestamp or datetime.now(timezone.utc)
    matches = time_window_matches(restriction, moment)
    if matches is None:
        return False
    if restriction.mode == RestrictionMode.ALLOW:
        return matches
    return not matches


def _geo_permits(restriction: GeoRestriction, context: AccessContext) -> bool:
    geo = context.geo_location
    if geo is None or not geo.country:
        return False

    # Codes compare exactly, as stored
    country_listed = geo.country in restriction.countries
    region_applies = bool(restriction.regions) and bool(geo.region)
    region_listed = region_applies and geo.region in restriction.regions

    if restriction.mode == RestrictionMode.ALLOW:
        if not country_listed:
            return False
        return region_listed if region_applies else True
    return not (country_listed or region_listed)


def restriction_permits(restriction: AccessRestriction, context: Optional[AccessContext]) -> bool:
    """True when the restriction lets the request through."""
    context = context or AccessContext()
    if isinstance(restriction, IpRestriction):
        return _ip_permits(restriction, context)
    elif isinstance(restriction, TimeRestriction):
        return _time_permits(restriction, context)
    elif isinstance(restriction, GeoRestriction):
        return _geo_permits(restriction, context)
    raise TypeError(f"Unsupported restriction: {type(restriction).__name__}")
