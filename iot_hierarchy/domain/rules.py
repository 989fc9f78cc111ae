from __future__ import annotations
import math
from typing import Optional


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def check_coordinates(latitude: Optional[float], longitude: Optional[float]) -> Optional[str]:
    """Return a reason string when either coordinate is out of range, else None."""
    if latitude is not None and (not _is_number(latitude) or not -90 <= latitude <= 90):
        return "Latitude must be a valid number between -90 and 90"
    if longitude is not None and (not _is_number(longitude) or not -180 <= longitude <= 180):
        return "Longitude must be a valid number between -180 and 180"
    return None


def check_bounds(min_value: Optional[float], max_value: Optional[float]) -> Optional[str]:
    for label, value in (("Minimum", min_value), ("Maximum", max_value)):
        if value is not None and not _is_number(value):
            return f"{label} value must be a valid number"
    if min_value is not None and max_value is not None and min_value > max_value:
        return f"Minimum value {min_value} is greater than the maximum value {max_value}"
    return None


def check_reading(
    value: Optional[float],
    min_value: Optional[float],
    max_value: Optional[float],
) -> Optional[str]:
    if value is None:
        return None
    if not _is_number(value):
        return "Current value must be a valid number"
    if min_value is not None and value < min_value:
        return f"Current value {value} is below the minimum value {min_value}"
    if max_value is not None and value > max_value:
        return f"Current value {value} is above the maximum value {max_value}"
    return None
