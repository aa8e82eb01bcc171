"""
Static catalogue: option definitions, price rules and unit rates.

Loaded once by the service and handed to the PricingEngine. Prices are in
pounds sterling.
"""

from types import MappingProxyType
from typing import Mapping

from .models import (
    ProductCategory, CalculationStrategy, OptionKind, Choice,
    SelectOption, SliderOption, CheckboxOption, DimensionsOption, AreaOption,
    PriceRule, CategoryCatalog
)


TRUSS_CHOICES = (
    Choice("curved", "Curved", image="/images/config/truss-curved.jpg"),
    Choice("straight", "Straight", image="/images/config/truss-straight.jpg"),
)

OAK_TYPE_CHOICES = (
    Choice("green", "Green Oak"),
    Choice("kilned", "Kiln Dried Oak"),
    Choice("reclaimed", "Reclaimed Oak"),
)


# Canonical option order for garages; price-rule keys follow it:
# bays|size|beamSize|trussType|oakType|catSlide
GARAGES = CategoryCatalog(
    category=ProductCategory.GARAGES,
    title="Configure Your Garage",
    noun="Oak frame garage",
    description="Customize your oak frame garage with the options below.",
    strategy=CalculationStrategy.CONFIGURABLE,
    base_price=6500,
    bay_option="bays",
    options=(
        SliderOption(
            id="bays",
            label="Number of Bays (Added from Left)",
            min=1,
            max=4,
            default_value=2,
            unit="bays",
            step_price=1500,
        ),
        SelectOption(
            id="size",
            label="Size Per Bay",
            choices=(
                Choice("small", "Small (2.5m wide bays)", price_adjustment=-400),
                Choice("medium", "Medium (3m wide bays)"),
                Choice("large", "Large (3.5m wide bays)", price_adjustment=300),
            ),
            default_value="medium",
            per_bay=True,
        ),
        SelectOption(
            id="beamSize",
            label="Structural Beam Sizes",
            choices=(
                Choice("6x6", "6 inch x 6 inch beams"),
                Choice("7x7", "7 inch x 7 inch beams", price_adjustment=200),
                Choice("8x8", "8 inch x 8 inch beams", price_adjustment=450),
            ),
            default_value="6x6",
        ),
        SelectOption(
            id="trussType",
            label="Truss Type",
            kind=OptionKind.RADIO,
            choices=TRUSS_CHOICES,
            default_value="curved",
        ),
        SelectOption(
            id="oakType",
            label="Oak Type",
            choices=(
                Choice("green", "Green Oak"),
                Choice("kilned", "Kiln Dried Oak", price_adjustment=400),
                Choice("reclaimed", "Reclaimed Oak", price_adjustment=250),
            ),
            default_value="green",
            per_bay=True,
        ),
        CheckboxOption(
            id="catSlide",
            label="Include Cat Slide Roof? (Applies to all bays)",
            summary="cat slide roof",
            price_adjustment=150,
            per_bay=True,
        ),
    ),
    price_rules=(
        PriceRule(ProductCategory.GARAGES, "1|medium|6x6|curved|green|false", 6500),
        PriceRule(ProductCategory.GARAGES, "2|medium|6x6|curved|green|false", 8000),
        PriceRule(ProductCategory.GARAGES, "2|medium|6x6|curved|reclaimed|false", 8500),
        PriceRule(ProductCategory.GARAGES, "2|medium|6x6|straight|reclaimed|false", 8500),
        PriceRule(ProductCategory.GARAGES, "3|medium|6x6|curved|green|false", 9500),
        PriceRule(
            ProductCategory.GARAGES, "4|large|8x8|curved|kilned|true", 14500,
            description="Four bay barn package",
        ),
    ),
)


GAZEBOS = CategoryCatalog(
    category=ProductCategory.GAZEBOS,
    title="Configure Your Gazebo",
    noun="Oak frame gazebo",
    description="Customize your oak frame gazebo with the options below.",
    strategy=CalculationStrategy.CONFIGURABLE,
    base_price=5000,
    options=(
        SelectOption(
            id="size",
            label="Gazebo Size",
            choices=(
                Choice("small", "Small (2m x 2m)", price_adjustment=-500),
                Choice("medium", "Medium (3m x 3m)"),
                Choice("large", "Large (4m x 4m)", price_adjustment=800),
            ),
            default_value="medium",
        ),
        SelectOption(
            id="roofStyle",
            label="Roof Style",
            kind=OptionKind.RADIO,
            choices=(
                Choice("pitched", "Pitched roof", image="/images/config/roof-pitched.jpg"),
                Choice("hipped", "Hipped roof", image="/images/config/roof-hipped.jpg", price_adjustment=300),
            ),
            default_value="pitched",
        ),
        SliderOption(
            id="sides",
            label="Number of Enclosed Sides",
            min=0,
            max=4,
            default_value=0,
            unit="enclosed sides",
            step_price=250,
        ),
        CheckboxOption(
            id="floor",
            label="Include Floor",
            summary="with floor",
            price_adjustment=450,
        ),
    ),
)


PORCHES = CategoryCatalog(
    category=ProductCategory.PORCHES,
    title="Configure Your Porch",
    noun="Oak frame porch",
    description="Customize your oak frame porch with the options below.",
    strategy=CalculationStrategy.CONFIGURABLE,
    base_price=3650,
    options=(
        SelectOption(
            id="trussType",
            label="Truss Type",
            kind=OptionKind.RADIO,
            choices=TRUSS_CHOICES,
            default_value="curved",
        ),
        SelectOption(
            id="legType",
            label="Leg Type",
            choices=(
                Choice("floor", "Legs to Floor"),
                Choice("wall", "Legs to Wall", price_adjustment=-150),
            ),
            default_value="floor",
        ),
        SelectOption(
            id="sizeType",
            label="Size Type",
            choices=(
                Choice("narrow", "Narrow (1.5m wide)", price_adjustment=-200),
                Choice("standard", "Standard (2m wide)"),
                Choice("wide", "Wide (2.5m wide)", price_adjustment=400),
            ),
            default_value="standard",
        ),
    ),
)


OAK_BEAMS = CategoryCatalog(
    category=ProductCategory.OAK_BEAMS,
    title="Configure Your Oak Beams",
    noun="Oak beam",
    description="Customize your oak beams with the options below.",
    strategy=CalculationStrategy.VOLUME,
    rate_option="oakType",
    # Per cubic metre
    rates={"reclaimed": 1200, "kilned": 1000, "green": 800},
    options=(
        SelectOption(
            id="oakType",
            label="Oak Type",
            choices=OAK_TYPE_CHOICES,
            default_value="green",
        ),
        DimensionsOption(
            id="dimensions",
            label="Dimensions (cm)",
            default_value={"length": 200, "width": 15, "thickness": 15},
        ),
    ),
)


OAK_FLOORING = CategoryCatalog(
    category=ProductCategory.OAK_FLOORING,
    title="Configure Your Oak Flooring",
    noun="Oak flooring",
    description="Customize your oak flooring with the options below.",
    strategy=CalculationStrategy.AREA,
    rate_option="flooringType",
    # Per square metre
    rates={"solid": 75, "engineered": 65},
    finish_option="finish",
    finish_rates={"natural": 0, "lacquered": 5, "oiled": 7},
    options=(
        SelectOption(
            id="flooringType",
            label="Flooring Type",
            choices=(
                Choice("solid", "Solid Oak"),
                Choice("engineered", "Engineered Oak"),
            ),
            default_value="engineered",
        ),
        SelectOption(
            id="finish",
            label="Finish",
            choices=(
                Choice("natural", "Natural finish"),
                Choice("lacquered", "Lacquered finish"),
                Choice("oiled", "Oiled finish"),
            ),
            default_value="natural",
        ),
        AreaOption(
            id="area",
            label="Area (m²)",
            default_value={"length": 5, "width": 5, "area": 25},
        ),
    ),
)


SPECIAL_DEALS = CategoryCatalog(
    category=ProductCategory.SPECIAL_DEALS,
    title="Special Deals",
    noun="Special deal",
    description="Limited time offers on our oak products.",
    strategy=CalculationStrategy.FIXED,
)


def load_catalog() -> Mapping[ProductCategory, CategoryCatalog]:
    """Build the read-only category catalogue."""
    catalogs = (GARAGES, GAZEBOS, PORCHES, OAK_BEAMS, OAK_FLOORING, SPECIAL_DEALS)
    return MappingProxyType({catalog.category: catalog for catalog in catalogs})
