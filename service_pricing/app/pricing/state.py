"""
ConfigState helpers: defaults, normalization and URL-safe serialization.
"""

import base64
import binascii
import json
import math
from typing import Dict, Any

from shared.errors import ValidationError
from ..catalog.models import (
    CategoryCatalog, ConfigOption,
    SelectOption, SliderOption, CheckboxOption, DimensionsOption, AreaOption
)

ConfigState = Dict[str, Any]

TRUE_STRINGS = {"true", "1", "yes", "on"}
FALSE_STRINGS = {"false", "0", "no", "off", ""}


def default_state(catalog: CategoryCatalog) -> ConfigState:
    """Configuration with every option at its default value."""
    state: ConfigState = {}
    for option in catalog.options:
        default = option.default_value
        state[option.id] = dict(default) if isinstance(default, dict) else default
    return state


def _slider_value(option: SliderOption, value: Any):
    # UI sliders report a one-element list
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, bool) or value is None:
        return option.default_value
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return option.default_value
    if not isinstance(value, (int, float)):
        return option.default_value
    if isinstance(value, float) and not math.isfinite(value):
        return option.default_value
    value = min(max(value, option.min), option.max)
    return int(value) if float(value).is_integer() else value


def _checkbox_value(option: CheckboxOption, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return option.default_value


def resolve_value(option: ConfigOption, state: ConfigState) -> Any:
    """Selected value of one option, falling back to its default."""
    if option.id not in state or state[option.id] is None:
        default = option.default_value
        return dict(default) if isinstance(default, dict) else default

    value = state[option.id]
    if isinstance(option, SelectOption):
        return value if option.choice(value) is not None else option.default_value
    elif isinstance(option, SliderOption):
        return _slider_value(option, value)
    elif isinstance(option, CheckboxOption):
        return _checkbox_value(option, value)
    elif isinstance(option, (DimensionsOption, AreaOption)):
        # Validated when priced; an invalid measure prices at zero
        return dict(value) if isinstance(value, dict) else value
    raise TypeError(f"Unsupported option type: {type(option).__name__}")


def resolve_state(catalog: CategoryCatalog, state: ConfigState) -> ConfigState:
    """Normalize a state against the category options, in canonical order."""
    state = state or {}
    return {option.id: resolve_value(option, state) for option in catalog.options}


def value_token(option: ConfigOption, value: Any) -> str:
    """Stable string form of a resolved value, used in composite keys."""
    if isinstance(option, CheckboxOption):
        return "true" if value else "false"
    elif isinstance(option, SliderOption):
        return str(value)
    elif isinstance(option, SelectOption):
        return str(value)
    elif isinstance(option, DimensionsOption):
        if not isinstance(value, dict):
            return "invalid"
        return "x".join(str(value.get(key)) for key in ("length", "width", "thickness"))
    elif isinstance(option, AreaOption):
        if not isinstance(value, dict):
            return "invalid"
        return str(value.get("area", f"{value.get('length')}x{value.get('width')}"))
    raise TypeError(f"Unsupported option type: {type(option).__name__}")


def encode_config_state(state: ConfigState) -> str:
    """Serialize a state to a URL-safe token."""
    payload = json.dumps(state, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")


def decode_config_state(token: str) -> ConfigState:
    """Parse a token produced by encode_config_state."""
    if not token:
        raise ValidationError("Empty configuration token")

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(padded.encode("ascii"))
        state = json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise ValidationError("Malformed configuration token", {"error": str(e)})

    if not isinstance(state, dict):
        raise ValidationError("Configuration token does not hold an object")
    return state
