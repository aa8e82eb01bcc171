"""
Unit tests for access restriction evaluation.
"""

import pytest
from datetime import datetime, timezone

from service_permissions.app.permissions.models import (
    AccessContext, GeoLocation, IpRestriction, TimeRestriction, GeoRestriction,
    RestrictionMode
)
from service_permissions.app.permissions.restrictions import (
    restriction_permits, time_window_matches
)


# Sunday 1 March 2026
SUNDAY_NOON = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class TestIpRestriction:
    """Test cases for IP restrictions."""

    def test_allow_list(self):
        """Test only listed addresses pass an allow list."""
        restriction = IpRestriction(mode=RestrictionMode.ALLOW, ip_addresses=["192.168.1.10"])

        assert restriction_permits(restriction, AccessContext(ip_address="192.168.1.10")) is True
        assert restriction_permits(restriction, AccessContext(ip_address="192.168.1.11")) is False

    def test_deny_list(self):
        """Test listed addresses are blocked by a deny list."""
        restriction = IpRestriction(mode=RestrictionMode.DENY, ip_addresses=["203.0.113.5"])

        assert restriction_permits(restriction, AccessContext(ip_address="203.0.113.5")) is False
        assert restriction_permits(restriction, AccessContext(ip_address="203.0.113.6")) is True

    def test_exact_match_only(self):
        """Test ranges are not expanded."""
        restriction = IpRestriction(mode=RestrictionMode.ALLOW, ip_addresses=["10.0.0.0/8"])

        assert restriction_permits(restriction, AccessContext(ip_address="10.1.2.3")) is False

    @pytest.mark.parametrize("mode", [RestrictionMode.ALLOW, RestrictionMode.DENY])
    def test_missing_ip_fails_closed(self, mode):
        """Test a missing IP fails both allow and deny lists."""
        restriction = IpRestriction(mode=mode, ip_addresses=["10.0.0.1"])

        assert restriction_permits(restriction, AccessContext()) is False
        assert restriction_permits(restriction, None) is False


class TestTimeRestriction:
    """Test cases for time restrictions."""

    def test_sunday_is_zero(self):
        """Test day numbering starts at Sunday."""
        restriction = TimeRestriction(mode=RestrictionMode.ALLOW, days_of_week=[0])

        assert time_window_matches(restriction, SUNDAY_NOON) is True

    def test_window_inclusive(self):
        """Test both window ends are inside."""
        restriction = TimeRestriction(
            mode=RestrictionMode.ALLOW, days_of_week=[0], start="12:00", end="12:30"
        )

        assert time_window_matches(restriction, SUNDAY_NOON) is True
        assert time_window_matches(restriction, SUNDAY_NOON.replace(minute=30)) is True
        assert time_window_matches(restriction, SUNDAY_NOON.replace(minute=31)) is False

    def test_timezone_shifts_day(self):
        """Test the window is read in its own timezone."""
        # Sunday 23:30 in London is still Sunday; in Tokyo it is Monday
        moment = datetime(2026, 3, 1, 23, 30, tzinfo=timezone.utc)
        london = TimeRestriction(mode=RestrictionMode.ALLOW, days_of_week=[0], timezone="Europe/London")
        tokyo = TimeRestriction(mode=RestrictionMode.ALLOW, days_of_week=[1], timezone="Asia/Tokyo")

        assert time_window_matches(london, moment) is True
        assert time_window_matches(tokyo, moment) is True

    def test_deny_window(self):
        """Test a deny window blocks inside and permits outside."""
        restriction = TimeRestriction(
            mode=RestrictionMode.DENY, days_of_week=[0, 6], start="00:00", end="23:59"
        )

        assert restriction_permits(restriction, AccessContext(timestamp=SUNDAY_NOON)) is False
        monday = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
        assert restriction_permits(restriction, AccessContext(timestamp=monday)) is True

    def test_allow_window_wrong_day(self):
        """Test an allow window on other days blocks."""
        restriction = TimeRestriction(mode=RestrictionMode.ALLOW, days_of_week=[1, 2, 3, 4, 5])

        assert restriction_permits(restriction, AccessContext(timestamp=SUNDAY_NOON)) is False

    def test_reversed_window_never_matches(self):
        """Test a window with start after end matches nothing."""
        restriction = TimeRestriction(
            mode=RestrictionMode.ALLOW, days_of_week=[0], start="22:00", end="06:00"
        )

        assert time_window_matches(restriction, SUNDAY_NOON.replace(hour=23)) is False

    @pytest.mark.parametrize("mode", [RestrictionMode.ALLOW, RestrictionMode.DENY])
    def test_unknown_timezone_fails_closed(self, mode):
        """Test an unknown timezone blocks in either mode."""
        restriction = TimeRestriction(mode=mode, days_of_week=[0], timezone="Mars/Olympus_Mons")

        assert time_window_matches(restriction, SUNDAY_NOON) is None
        assert restriction_permits(restriction, AccessContext(timestamp=SUNDAY_NOON)) is False

    def test_malformed_time_fails_closed(self):
        """Test unreadable window times block."""
        restriction = TimeRestriction(mode=RestrictionMode.DENY, days_of_week=[0], start="noon")

        assert restriction_permits(restriction, AccessContext(timestamp=SUNDAY_NOON)) is False


class TestGeoRestriction:
    """Test cases for geo restrictions."""

    def _context(self, country=None, region=None):
        return AccessContext(geo_location=GeoLocation(country=country, region=region))

    def test_allow_country(self):
        """Test allowed countries pass."""
        restriction = GeoRestriction(mode=RestrictionMode.ALLOW, countries=["GB", "IE"])

        assert restriction_permits(restriction, self._context("GB")) is True
        assert restriction_permits(restriction, self._context("IE")) is True
        assert restriction_permits(restriction, self._context("FR")) is False

    def test_codes_match_exactly(self):
        """Test country and region codes are compared as stored."""
        allow = GeoRestriction(mode=RestrictionMode.ALLOW, countries=["GB"])
        deny = GeoRestriction(mode=RestrictionMode.DENY, countries=["RU"], regions=["Crimea"])

        assert restriction_permits(allow, self._context("gb")) is False
        assert restriction_permits(allow, self._context(" GB")) is False
        assert restriction_permits(deny, self._context("ru")) is True
        assert restriction_permits(deny, self._context("UA", "crimea")) is True

    def test_allow_region_narrows(self):
        """Test regions narrow an allow list when both sides have them."""
        restriction = GeoRestriction(mode=RestrictionMode.ALLOW, countries=["GB"], regions=["Wales"])

        assert restriction_permits(restriction, self._context("GB", "Wales")) is True
        assert restriction_permits(restriction, self._context("GB", "Scotland")) is False
        assert restriction_permits(restriction, self._context("GB")) is True

    def test_deny_country(self):
        """Test denied countries are blocked."""
        restriction = GeoRestriction(mode=RestrictionMode.DENY, countries=["RU"])

        assert restriction_permits(restriction, self._context("RU")) is False
        assert restriction_permits(restriction, self._context("GB")) is True

    def test_deny_region(self):
        """Test denied regions are blocked in any country."""
        restriction = GeoRestriction(mode=RestrictionMode.DENY, countries=[], regions=["Crimea"])

        assert restriction_permits(restriction, self._context("UA", "Crimea")) is False
        assert restriction_permits(restriction, self._context("UA", "Kyiv")) is True

    @pytest.mark.parametrize("mode", [RestrictionMode.ALLOW, RestrictionMode.DENY])
    def test_missing_location_fails_closed(self, mode):
        """Test missing geolocation blocks in either mode."""
        restriction = GeoRestriction(mode=mode, countries=["GB"])

        assert restriction_permits(restriction, AccessContext()) is False
        assert restriction_permits(restriction, self._context(region="Wales")) is False


class TestUnsupportedRestriction:
    """Test cases for unsupported restriction objects."""

    def test_unknown_type_raises(self):
        """Test unsupported restriction types raise TypeError."""
        with pytest.raises(TypeError):
            restriction_permits(object(), AccessContext())
