"""
Catalogue data models for the Pricing Service.
"""

import math
from typing import Dict, Any, Optional, Tuple, Union
from dataclasses import dataclass, field
from enum import Enum

from shared.errors import CatalogError


class ProductCategory(str, Enum):
    """Product categories sold through the storefront."""
    GARAGES = "garages"
    GAZEBOS = "gazebos"
    PORCHES = "porches"
    OAK_BEAMS = "oak-beams"
    OAK_FLOORING = "oak-flooring"
    SPECIAL_DEALS = "special-deals"


class CalculationStrategy(str, Enum):
    """How a category turns a configuration into a price."""
    CONFIGURABLE = "configurable"
    VOLUME = "volume"
    AREA = "area"
    FIXED = "fixed"


class OptionKind(str, Enum):
    """Configuration option kinds."""
    SELECT = "select"
    RADIO = "radio"
    SLIDER = "slider"
    CHECKBOX = "checkbox"
    DIMENSIONS = "dimensions"
    AREA = "area"


@dataclass(frozen=True)
class Choice:
    """One selectable value of a select or radio option."""
    value: str
    label: str
    image: Optional[str] = None
    price_adjustment: float = 0.0


@dataclass(frozen=True)
class SelectOption:
    """Select or radio option."""
    id: str
    label: str
    choices: Tuple[Choice, ...]
    default_value: str
    kind: OptionKind = OptionKind.SELECT
    per_bay: bool = False

    def choice(self, value: Any) -> Optional[Choice]:
        for candidate in self.choices:
            if candidate.value == value:
                return candidate
        return None

    def validate_default(self):
        if self.kind not in (OptionKind.SELECT, OptionKind.RADIO):
            raise CatalogError(f"Option '{self.id}' has kind {self.kind.value}, expected select or radio")
        if self.choice(self.default_value) is None:
            raise CatalogError(
                f"Default '{self.default_value}' is not a choice of option '{self.id}'",
                {"option": self.id}
            )


@dataclass(frozen=True)
class SliderOption:
    """Numeric slider option; contributes its single selected value."""
    id: str
    label: str
    min: int
    max: int
    default_value: int
    step: int = 1
    unit: str = ""
    step_price: float = 0.0
    kind: OptionKind = field(default=OptionKind.SLIDER, init=False)

    def validate_default(self):
        if self.min > self.max or self.step <= 0:
            raise CatalogError(f"Option '{self.id}' has an invalid range", {"option": self.id})
        if not self.min <= self.default_value <= self.max:
            raise CatalogError(
                f"Default {self.default_value} is outside [{self.min}, {self.max}] for option '{self.id}'",
                {"option": self.id}
            )


@dataclass(frozen=True)
class CheckboxOption:
    """Boolean option adding a fixed surcharge when switched on."""
    id: str
    label: str
    summary: str
    default_value: bool = False
    price_adjustment: float = 0.0
    per_bay: bool = False
    kind: OptionKind = field(default=OptionKind.CHECKBOX, init=False)

    def validate_default(self):
        if not isinstance(self.default_value, bool):
            raise CatalogError(f"Default of checkbox '{self.id}' must be a boolean", {"option": self.id})


def _positive_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value) and value > 0
    except OverflowError:
        # Integer too large for a float
        return False


@dataclass(frozen=True)
class DimensionsOption:
    """Length, width and thickness of a beam."""
    id: str
    label: str
    default_value: Dict[str, float]
    unit: str = "cm"
    kind: OptionKind = field(default=OptionKind.DIMENSIONS, init=False)

    def validate_default(self):
        for key in ("length", "width", "thickness"):
            if not _positive_number(self.default_value.get(key)):
                raise CatalogError(f"Default {key} of option '{self.id}' must be positive", {"option": self.id})


@dataclass(frozen=True)
class AreaOption:
    """Floor area given directly or as length by width."""
    id: str
    label: str
    default_value: Dict[str, float]
    unit: str = "m²"
    kind: OptionKind = field(default=OptionKind.AREA, init=False)

    def validate_default(self):
        if not _positive_number(area_of(self.default_value)):
            raise CatalogError(f"Default area of option '{self.id}' must be positive", {"option": self.id})


ConfigOption = Union[SelectOption, SliderOption, CheckboxOption, DimensionsOption, AreaOption]


def area_of(value: Any) -> Optional[float]:
    """Area of an area-option value; derived from length x width when absent."""
    if not isinstance(value, dict):
        return None
    area = value.get("area")
    if area is None:
        length = value.get("length")
        width = value.get("width")
        if not (_positive_number(length) and _positive_number(width)):
            return None
        area = length * width
    return area if _positive_number(area) else None


def volume_m3(value: Any) -> Optional[float]:
    """Volume in cubic metres of a dimensions value given in centimetres."""
    if not isinstance(value, dict):
        return None
    dims = [value.get("length"), value.get("width"), value.get("thickness")]
    if not all(_positive_number(d) for d in dims):
        return None
    volume = float(dims[0]) * float(dims[1]) * float(dims[2]) / 1_000_000
    return volume if math.isfinite(volume) else None


@dataclass(frozen=True)
class PriceRule:
    """Absolute price for one exact option combination."""
    category: ProductCategory
    key: str
    price: float
    description: Optional[str] = None


@dataclass(frozen=True)
class CategoryCatalog:
    """Options and pricing tables of one product category."""
    category: ProductCategory
    title: str
    noun: str
    strategy: CalculationStrategy
    options: Tuple[ConfigOption, ...] = ()
    base_price: float = 0.0
    bay_option: Optional[str] = None
    rates: Dict[str, float] = field(default_factory=dict)
    rate_option: Optional[str] = None
    finish_rates: Dict[str, float] = field(default_factory=dict)
    finish_option: Optional[str] = None
    price_rules: Tuple[PriceRule, ...] = ()
    description: Optional[str] = None

    def __post_init__(self):
        self.validate()

    def option(self, option_id: str) -> Optional[ConfigOption]:
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    @property
    def option_ids(self) -> Tuple[str, ...]:
        return tuple(option.id for option in self.options)

    def validate(self):
        """Check the catalogue invariants; raises CatalogError."""
        seen = set()
        for option in self.options:
            if option.id in seen:
                raise CatalogError(f"Duplicate option '{option.id}' in {self.category.value}")
            seen.add(option.id)
            option.validate_default()

        if self.bay_option is not None and not isinstance(self.option(self.bay_option), SliderOption):
            raise CatalogError(f"Bay option '{self.bay_option}' of {self.category.value} must be a slider")

        if self.strategy in (CalculationStrategy.VOLUME, CalculationStrategy.AREA):
            rate_option = self.option(self.rate_option) if self.rate_option else None
            if not isinstance(rate_option, SelectOption):
                raise CatalogError(f"{self.category.value} needs a select option carrying its rates")
            missing = [c.value for c in rate_option.choices if c.value not in self.rates]
            if missing:
                raise CatalogError(
                    f"{self.category.value} has no rate for {', '.join(missing)}",
                    {"missing": missing}
                )

        for rule in self.price_rules:
            if rule.category != self.category:
                raise CatalogError(f"Price rule '{rule.key}' belongs to {rule.category.value}")
            if rule.price < 0:
                raise CatalogError(f"Price rule '{rule.key}' has a negative price")
            if len(rule.key.split("|")) != len(self.options):
                raise CatalogError(
                    f"Price rule '{rule.key}' does not cover the options of {self.category.value}",
                    {"options": list(self.option_ids)}
                )
