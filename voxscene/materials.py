"""Typed material properties.

MATL chunks only carry strings. The keys below are known to hold numbers or
flags; everything else, including `_type`, stays a string.
"""

import logging
import math
from typing import Callable, Union

logger = logging.getLogger(__name__)

PropertyValue = Union[str, float, bool]


def to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true"):
        return True
    if lowered in ("0", "false", ""):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def to_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Not a finite number: {value!r}")
    return number


PROPERTY_CONVERTERS: dict[str, Callable[[str], PropertyValue]] = {
    "_weight": to_float,
    "_rough": to_float,
    "_spec": to_float,
    "_ior": to_float,
    "_att": to_float,
    "_flux": to_float,
    "_ldr": to_float,
    "_alpha": to_float,
    "_trans": to_float,
    "_d": to_float,
    "_sp": to_float,
    "_g": to_float,
    "_media": to_float,
    "_plastic": to_bool,
}


def convert_property(key: str, value: str) -> PropertyValue:
    """Convert one raw property value, keeping the string if it does not parse."""
    converter = PROPERTY_CONVERTERS.get(key)
    if converter is None:
        return value

    try:
        return converter(value)
    except ValueError:
        logger.warning("Could not convert material property %s=%r; keeping it as text", key, value)
        return value


def convert_properties(properties: dict[str, str]) -> dict[str, PropertyValue]:
    """Convert every property of a material, preserving key order."""
    return {key: convert_property(key, value) for key, value in properties.items()}


def describe_material(material_id: int, properties: dict[str, PropertyValue]) -> str:
    """One-line summary of a material, for logs."""
    fields = ", ".join(f"{key}={value}" for key, value in properties.items())
    return f"material {material_id}: {fields or '(no properties)'}"
