"""Conversion of typed request parameters into their wire form."""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any, Iterable, Mapping

MULTI_VALUE_SEPARATOR = "|"
ALTERNATE_SEPARATOR = "\x1f"


def _float_to_string(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    magnitude = abs(value)
    if magnitude == 0:
        return "0"
    if value.is_integer() and magnitude < 1e21:
        return str(int(value))
    if 1e-6 <= magnitude < 1e21:
        return format(Decimal(repr(value)), "f")
    # exponent form: 1e-7, 1.5e+21
    mantissa, _, exponent = repr(value).partition("e")
    power = int(exponent)
    sign = "+" if power >= 0 else "-"
    return f"{mantissa}e{sign}{abs(power)}"


def _number_to_string(value: int | float) -> str:
    if isinstance(value, float):
        return _float_to_string(value)
    return str(value)


def _element_to_string(element: Any) -> str:
    if element is True:
        return "true"
    if element is False:
        return "false"
    if element is None:
        return ""
    if isinstance(element, (int, float)):
        return _number_to_string(element)
    return str(element)


def transform_param_array(values: Iterable[Any]) -> str:
    elements = [_element_to_string(element) for element in values]
    if any(MULTI_VALUE_SEPARATOR in element for element in elements):
        return ALTERNATE_SEPARATOR + ALTERNATE_SEPARATOR.join(elements)
    return MULTI_VALUE_SEPARATOR.join(elements)


def transform_param_scalar(value: Any) -> Any:
    """Return the wire form of a scalar, or None if it must be dropped.

    Values of unknown type are returned unmodified.
    """
    if value is True:
        return ""
    if value is False or value is None:
        return None
    if isinstance(value, (int, float)):
        return _number_to_string(value)
    return value


def transform_param_value(value: Any) -> Any:
    if isinstance(value, (set, frozenset, list, tuple)):
        return transform_param_array(value)
    return transform_param_scalar(value)


def transform_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Normalize a parameter mapping, omitting False and None values."""
    transformed: dict[str, Any] = {}
    for key, value in params.items():
        transformed_value = transform_param_value(value)
        if transformed_value is not None:
            transformed[key] = transformed_value
    return transformed


def split_post_parameters(params: Mapping[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split POST parameters into URL parameters (action, origin) and body parameters."""
    url_params: dict[str, Any] = {}
    body_params: dict[str, Any] = {}
    for key, value in params.items():
        if key in ("action", "origin"):
            url_params[key] = value
        else:
            body_params[key] = value
    return url_params, body_params
