"""
Unit tests for the pricing catalogue.
"""

import pytest

from service_pricing.app.catalog.models import (
    ProductCategory, CalculationStrategy, OptionKind, Choice,
    SelectOption, SliderOption, CheckboxOption, DimensionsOption,
    PriceRule, CategoryCatalog, area_of, volume_m3
)
from service_pricing.app.catalog.tables import load_catalog
from shared.errors import CatalogError


class TestCatalogTables:
    """Test cases for the static catalogue."""

    def test_all_categories_present(self):
        """Test every product category has a catalogue."""
        catalogs = load_catalog()

        assert set(catalogs) == set(ProductCategory)

    def test_catalogue_is_read_only(self):
        """Test the loaded catalogue cannot be mutated."""
        catalogs = load_catalog()

        with pytest.raises(TypeError):
            catalogs[ProductCategory.GARAGES] = None

    def test_garage_option_order(self):
        """Test the canonical garage option order."""
        garages = load_catalog()[ProductCategory.GARAGES]

        assert garages.option_ids == ("bays", "size", "beamSize", "trussType", "oakType", "catSlide")
        assert garages.option("trussType").kind == OptionKind.RADIO

    def test_price_rule_keys_cover_options(self):
        """Test every rule key has one segment per option."""
        for catalog in load_catalog().values():
            for rule in catalog.price_rules:
                assert len(rule.key.split("|")) == len(catalog.options)


class TestCatalogValidation:
    """Test cases for catalogue invariants."""

    def _select(self, default="a"):
        return SelectOption(
            id="colour",
            label="Colour",
            choices=(Choice("a", "A"), Choice("b", "B")),
            default_value=default
        )

    def test_invalid_select_default(self):
        """Test a default outside the choices is rejected."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.PORCHES,
                title="Porch",
                noun="Porch",
                strategy=CalculationStrategy.CONFIGURABLE,
                options=(self._select(default="c"),)
            )

    def test_invalid_slider_default(self):
        """Test a slider default outside its range is rejected."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.GAZEBOS,
                title="Gazebo",
                noun="Gazebo",
                strategy=CalculationStrategy.CONFIGURABLE,
                options=(SliderOption(id="sides", label="Sides", min=0, max=4, default_value=5),)
            )

    def test_invalid_checkbox_default(self):
        """Test a non-boolean checkbox default is rejected."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.GAZEBOS,
                title="Gazebo",
                noun="Gazebo",
                strategy=CalculationStrategy.CONFIGURABLE,
                options=(CheckboxOption(id="floor", label="Floor", summary="floor", default_value="yes"),)
            )

    def test_duplicate_option(self):
        """Test duplicate option ids are rejected."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.PORCHES,
                title="Porch",
                noun="Porch",
                strategy=CalculationStrategy.CONFIGURABLE,
                options=(self._select(), self._select())
            )

    def test_rule_for_other_category(self):
        """Test price rules must belong to their catalogue."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.PORCHES,
                title="Porch",
                noun="Porch",
                strategy=CalculationStrategy.CONFIGURABLE,
                options=(self._select(),),
                price_rules=(PriceRule(ProductCategory.GARAGES, "a", 100),)
            )

    def test_rule_with_wrong_segments(self):
        """Test price rule keys must match the option count."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.PORCHES,
                title="Porch",
                noun="Porch",
                strategy=CalculationStrategy.CONFIGURABLE,
                options=(self._select(),),
                price_rules=(PriceRule(ProductCategory.PORCHES, "a|b", 100),)
            )

    def test_missing_rate(self):
        """Test volume catalogues need a rate for every rate choice."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.OAK_BEAMS,
                title="Beams",
                noun="Beam",
                strategy=CalculationStrategy.VOLUME,
                rate_option="colour",
                rates={"a": 10},
                options=(
                    self._select(),
                    DimensionsOption(id="dims", label="Dims", default_value={"length": 1, "width": 1, "thickness": 1})
                )
            )

    def test_bay_option_must_be_slider(self):
        """Test the bay option must refer to a slider."""
        with pytest.raises(CatalogError):
            CategoryCatalog(
                category=ProductCategory.GARAGES,
                title="Garage",
                noun="Garage",
                strategy=CalculationStrategy.CONFIGURABLE,
                bay_option="colour",
                options=(self._select(),)
            )


class TestMeasures:
    """Test cases for dimension helpers."""

    def test_volume(self):
        """Test volume in cubic metres."""
        assert volume_m3({"length": 100, "width": 100, "thickness": 100}) == 1

    def test_volume_rejects_bad_input(self):
        """Test invalid dimensions give no volume."""
        assert volume_m3({"length": 100, "width": True, "thickness": 100}) is None
        assert volume_m3("100x10x10") is None

    def test_area_derived(self):
        """Test area from length and width."""
        assert area_of({"length": 2, "width": 3}) == 6
        assert area_of({"area": 0}) is None
