"""
Pricing and configuration-description engine for the Pricing Service.
"""

import math
from typing import Dict, Any, Optional, List, Mapping
from dataclasses import dataclass

from shared.logging import get_logger
from shared.errors import UnknownCategoryError
from ..catalog.models import (
    ProductCategory, CalculationStrategy, CategoryCatalog, PriceRule,
    SelectOption, SliderOption, CheckboxOption, DimensionsOption, AreaOption,
    area_of, volume_m3
)
from .state import ConfigState, default_state, resolve_state, value_token


@dataclass
class Quote:
    """Price and description of one configuration."""
    category: ProductCategory
    price: float
    description: str
    key: str
    matched_rule: bool = False

    @property
    def purchasable(self) -> bool:
        return self.price > 0


def _round_half_up(value: float) -> float:
    # Whole pounds, halves rounded up
    return float(math.floor(value + 0.5))


def _priced(quantity: float, rate: float) -> float:
    total = quantity * rate
    if not math.isfinite(total):
        return 0.0
    return _round_half_up(total)


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class PricingEngine:
    """Maps (category, ConfigState) to a price and a description."""

    def __init__(self, catalogs: Mapping[ProductCategory, CategoryCatalog]):
        self.logger = get_logger("pricing.engine")
        self.catalogs = catalogs
        self._rules: Dict[ProductCategory, Dict[str, PriceRule]] = {
            category: {rule.key: rule for rule in catalog.price_rules}
            for category, catalog in catalogs.items()
        }

    def get_catalog(self, category: Any) -> CategoryCatalog:
        """Catalogue of a category; raises UnknownCategoryError."""
        try:
            key = ProductCategory(category)
        except ValueError:
            raise UnknownCategoryError(category)

        catalog = self.catalogs.get(key)
        if catalog is None:
            raise UnknownCategoryError(category)
        return catalog

    def default_configuration(self, category: Any) -> ConfigState:
        """Configuration with all options at their defaults."""
        return default_state(self.get_catalog(category))

    def composite_key(self, category: Any, config_state: ConfigState) -> str:
        """Price-rule key built in the category's canonical option order."""
        catalog = self.get_catalog(category)
        resolved = resolve_state(catalog, config_state)
        return self._key(catalog, resolved)

    def _key(self, catalog: CategoryCatalog, resolved: ConfigState) -> str:
        return "|".join(value_token(option, resolved[option.id]) for option in catalog.options)

    def calculate_product_price(self, category: Any, config_state: ConfigState) -> float:
        """Price of a configuration; 0 means not purchasable."""
        return self.quote(category, config_state).price

    def quote(self, category: Any, config_state: ConfigState) -> Quote:
        """Price, description and rule match for a configuration."""
        catalog = self.get_catalog(category)
        resolved = resolve_state(catalog, config_state)
        key = self._key(catalog, resolved)

        rule = None
        if catalog.strategy == CalculationStrategy.CONFIGURABLE:
            rule = self._rules[catalog.category].get(key)
            price = rule.price if rule else self._configurable_price(catalog, resolved)
        elif catalog.strategy == CalculationStrategy.VOLUME:
            price = self._volume_price(catalog, resolved)
        elif catalog.strategy == CalculationStrategy.AREA:
            price = self._area_price(catalog, resolved)
        elif catalog.strategy == CalculationStrategy.FIXED:
            price = 0.0
        else:
            raise TypeError(f"Unsupported calculation strategy: {catalog.strategy}")

        price = self._normalize_price(price)

        self.logger.debug(
            "Price calculated",
            category=catalog.category.value,
            key=key,
            price=price,
            matched_rule=rule is not None
        )

        return Quote(
            category=catalog.category,
            price=price,
            description=self._describe(catalog, resolved),
            key=key,
            matched_rule=rule is not None
        )

    def _bay_count(self, catalog: CategoryCatalog, resolved: ConfigState) -> float:
        if catalog.bay_option is None:
            return 1
        return resolved[catalog.bay_option]

    def _configurable_price(self, catalog: CategoryCatalog, resolved: ConfigState) -> float:
        """Base price plus additive per-option surcharges."""
        bays = self._bay_count(catalog, resolved)
        total = catalog.base_price

        for option in catalog.options:
            value = resolved[option.id]
            if isinstance(option, SelectOption):
                choice = option.choice(value)
                adjustment = choice.price_adjustment if choice else 0
                total += adjustment * (bays if option.per_bay else 1)
            elif isinstance(option, SliderOption):
                total += (value - option.min) * option.step_price
            elif isinstance(option, CheckboxOption):
                if value:
                    total += option.price_adjustment * (bays if option.per_bay else 1)
            elif isinstance(option, (DimensionsOption, AreaOption)):
                # Measured options only feed volume and area strategies
                continue
            else:
                raise TypeError(f"Unsupported option type: {type(option).__name__}")

        return total

    def _volume_price(self, catalog: CategoryCatalog, resolved: ConfigState) -> float:
        dimensions = next(o for o in catalog.options if isinstance(o, DimensionsOption))
        volume = volume_m3(resolved[dimensions.id])
        if volume is None:
            return 0.0
        rate = catalog.rates.get(resolved[catalog.rate_option], 0)
        return _priced(volume, rate)

    def _area_price(self, catalog: CategoryCatalog, resolved: ConfigState) -> float:
        area_option = next(o for o in catalog.options if isinstance(o, AreaOption))
        area = area_of(resolved[area_option.id])
        if area is None:
            return 0.0
        rate = catalog.rates.get(resolved[catalog.rate_option], 0)
        if catalog.finish_option:
            rate += catalog.finish_rates.get(resolved[catalog.finish_option], 0)
        return _priced(area, rate)

    @staticmethod
    def _normalize_price(price: Any) -> float:
        """Clamp to a finite, non-negative float."""
        try:
            price = float(price)
        except (TypeError, ValueError, OverflowError):
            return 0.0
        if not math.isfinite(price) or price < 0:
            return 0.0
        return price

    def generate_configuration_description(self, category: Any, config_state: ConfigState) -> str:
        """Comma-separated summary of the non-default selections."""
        catalog = self.get_catalog(category)
        return self._describe(catalog, resolve_state(catalog, config_state))

    def _describe(self, catalog: CategoryCatalog, resolved: ConfigState) -> str:
        parts: List[str] = [catalog.noun]

        for option in catalog.options:
            part = self._describe_option(option, resolved[option.id])
            if part:
                parts.append(part)

        return ", ".join(parts)

    @staticmethod
    def _describe_option(option, value: Any) -> Optional[str]:
        if isinstance(option, SelectOption):
            if value == option.default_value:
                return None
            choice = option.choice(value)
            return choice.label if choice else None
        elif isinstance(option, SliderOption):
            if value == option.default_value:
                return None
            return f"{_format_number(value)} {option.unit}".strip()
        elif isinstance(option, CheckboxOption):
            if value == option.default_value:
                return None
            return option.summary if value else f"no {option.summary}"
        elif isinstance(option, DimensionsOption):
            if not isinstance(value, dict):
                return None
            return " × ".join(
                f"{_format_number(value.get(key))}{option.unit}"
                for key in ("length", "width", "thickness")
            )
        elif isinstance(option, AreaOption):
            area = area_of(value)
            if area is None:
                return None
            return f"{_format_number(area)}{option.unit}"
        raise TypeError(f"Unsupported option type: {type(option).__name__}")

    def get_engine_stats(self) -> Dict[str, Any]:
        """Get engine statistics."""
        return {
            "categories": [category.value for category in self.catalogs],
            "price_rules": sum(len(rules) for rules in self._rules.values()),
            "strategies": {
                category.value: catalog.strategy.value
                for category, catalog in self.catalogs.items()
            }
        }
