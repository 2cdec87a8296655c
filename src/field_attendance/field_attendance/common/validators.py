from __future__ import annotations

import math

from ..core.exceptions import ValidationError


def require_non_empty(value, field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_coordinate(latitude, longitude) -> tuple[float, float]:
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid coordinate: ({latitude!r}, {longitude!r})") from exc

    if not (math.isfinite(lat) and math.isfinite(lon)):
        raise ValidationError(f"Invalid coordinate: ({latitude!r}, {longitude!r})")
    if not -90.0 <= lat <= 90.0:
        raise ValidationError(f"latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise ValidationError(f"longitude out of range: {lon}")
    return lat, lon


_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


def parse_flag(value, field_name: str, *, default: bool) -> bool:
    """Read a JSON boolean; the strings "true"/"false" (and 1/0) are accepted too."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValidationError(f"{field_name} must be true or false, got {value!r}")
