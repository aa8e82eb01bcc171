"""
Unit tests for ConfigState helpers.
"""

import base64
import pytest

from service_pricing.app.catalog.models import ProductCategory
from service_pricing.app.catalog.tables import load_catalog
from service_pricing.app.pricing.state import (
    default_state, resolve_state, encode_config_state, decode_config_state
)
from shared.errors import ValidationError


class TestResolveState:
    """Test cases for state normalization."""

    @pytest.fixture
    def garages(self):
        return load_catalog()[ProductCategory.GARAGES]

    def test_default_state(self, garages):
        """Test defaults for every garage option."""
        assert default_state(garages) == {
            "bays": 2,
            "size": "medium",
            "beamSize": "6x6",
            "trussType": "curved",
            "oakType": "green",
            "catSlide": False
        }

    def test_unknown_keys_dropped(self, garages):
        """Test options outside the catalogue are ignored."""
        resolved = resolve_state(garages, {"colour": "red", "bays": 3})

        assert "colour" not in resolved
        assert resolved["bays"] == 3

    def test_canonical_order(self, garages):
        """Test resolved state follows the option order."""
        resolved = resolve_state(garages, {"catSlide": True, "bays": "4"})

        assert list(resolved) == list(garages.option_ids)
        assert resolved["bays"] == 4

    def test_non_numeric_slider(self, garages):
        """Test non-numeric slider values use the default."""
        assert resolve_state(garages, {"bays": "many"})["bays"] == 2
        assert resolve_state(garages, {"bays": []})["bays"] == 2

    def test_default_state_copies_dicts(self):
        """Test default measures are copied, not shared."""
        beams = load_catalog()[ProductCategory.OAK_BEAMS]

        state = default_state(beams)
        state["dimensions"]["length"] = 1

        assert beams.option("dimensions").default_value["length"] == 200


class TestConfigToken:
    """Test cases for URL-safe configuration tokens."""

    def test_round_trip(self):
        """Test a token decodes to the encoded state."""
        state = {"bays": 3, "oakType": "reclaimed", "catSlide": True}

        assert decode_config_state(encode_config_state(state)) == state

    def test_token_is_url_safe(self):
        """Test tokens carry no padding or URL-reserved characters."""
        token = encode_config_state({"dimensions": {"length": 200, "width": 15, "thickness": 15}})

        assert "=" not in token
        assert "+" not in token
        assert "/" not in token

    def test_token_independent_of_key_order(self):
        """Test equal states give equal tokens."""
        assert encode_config_state({"a": 1, "b": 2}) == encode_config_state({"b": 2, "a": 1})

    @pytest.mark.parametrize("token", ["", "not*base64", "%%%"])
    def test_malformed_token(self, token):
        """Test malformed tokens raise ValidationError."""
        with pytest.raises(ValidationError):
            decode_config_state(token)

    def test_token_must_hold_object(self):
        """Test tokens holding a non-object are rejected."""
        token = base64.urlsafe_b64encode(b"[1, 2]").decode("ascii")

        with pytest.raises(ValidationError):
            decode_config_state(token)
