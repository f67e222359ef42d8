"""
Area-priced items (banners, vinyl, canvas) are sold per square metre.

Width and height are captured in centimetres and stored in the line's
attribute map under reserved keys; the computed area is the (fractional)
quantity passed to the resolver.
"""
import math
from typing import Any, Optional

M2_WIDTH_KEY = '__m2_width_cm'
M2_HEIGHT_KEY = '__m2_height_cm'
M2_AREA_KEY = '__m2_area_m2'

M2_ATTRIBUTE_KEYS = (M2_WIDTH_KEY, M2_HEIGHT_KEY, M2_AREA_KEY)

AREA_UNITS = {'m²', 'm2', 'm^2'}


def is_area_unit(unit: Optional[str]) -> bool:
    normalized = ''.join((unit or '').lower().split())
    return normalized in AREA_UNITS


def parse_measurement(value: Any) -> Optional[float]:
    """Parse "120,5" / 120.5 / "" into a float, or None when not a number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    text = str(value).replace(',', '.', 1).strip()
    if not text:
        return None
    try:
        parsed = float(text)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def calculate_area_m2(width_cm: float, height_cm: float) -> float:
    return (width_cm / 100) * (height_cm / 100)


def parse_m2_attributes(attributes: Optional[dict]) -> dict:
    """Read width, height and area back out of a line's attribute map."""
    attributes = attributes or {}
    return {
        'width_cm': parse_measurement(attributes.get(M2_WIDTH_KEY)),
        'height_cm': parse_measurement(attributes.get(M2_HEIGHT_KEY)),
        'area_m2': parse_measurement(attributes.get(M2_AREA_KEY)),
    }


_UNSET = object()


def build_m2_attributes(
    attributes: Optional[dict],
    width_cm: Any = _UNSET,
    height_cm: Any = _UNSET,
    area_m2: Any = _UNSET,
) -> dict:
    """
    Return a copy of ``attributes`` with the given dimensions written in.

    Omitted dimensions are left untouched; passing None removes the key.
    """
    updated = dict(attributes or {})
    for key, value in ((M2_WIDTH_KEY, width_cm), (M2_HEIGHT_KEY, height_cm), (M2_AREA_KEY, area_m2)):
        if value is _UNSET:
            continue
        if value is None:
            updated.pop(key, None)
        else:
            updated[key] = str(value)
    return updated


def strip_m2_attributes(attributes: Optional[dict]) -> dict:
    """Drop the reserved dimension keys, keeping customer-facing attributes."""
    return {k: v for k, v in (attributes or {}).items() if k not in M2_ATTRIBUTE_KEYS}


def area_from_attributes(attributes: Optional[dict]) -> Optional[float]:
    """Area in m² from stored width/height, or None when the dimensions are incomplete."""
    dims = parse_m2_attributes(attributes)
    width, height = dims['width_cm'], dims['height_cm']
    if width is None or height is None or width <= 0 or height <= 0:
        return None
    return calculate_area_m2(width, height)
