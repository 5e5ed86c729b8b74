"""
Coordinate quantization for record correlation.

Two records are considered to be at the same place when their coordinates
fall into the same 3-decimal-degree bucket (~111 m at the equator). Buckets
are keyed by fixed-point integers so that equality never depends on float
formatting or identity.
"""

import math
from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field

from config.settings import config

_HALF = Decimal("0.5")


class CoordinateKey(BaseModel):
    """Quantized (latitude, longitude) bucket, stored as integer thousandths of a degree."""

    model_config = ConfigDict(frozen=True)

    latitude_milli: int = Field(..., description="round_half_up(latitude * 1000)")
    longitude_milli: int = Field(..., description="round_half_up(longitude * 1000)")

    @property
    def latitude(self) -> float:
        return self.latitude_milli / config.COORDINATE_PRECISION_SCALE

    @property
    def longitude(self) -> float:
        return self.longitude_milli / config.COORDINATE_PRECISION_SCALE

    def as_dict(self) -> dict:
        """Coordinates at 3-decimal precision, as exposed in match reports."""
        return {"latitude": self.latitude, "longitude": self.longitude}


def parse_coordinate(text) -> Decimal | None:
    """
    Parse coordinate text into a finite Decimal.

    Args:
        text: Coordinate as text (numbers are accepted and converted via str)

    Returns:
        Decimal value, or None when the text is empty, unparsable, not finite
        or too large to scale into a finite float
    """
    if text is None or isinstance(text, bool):
        return None
    raw = str(text).strip()
    if not raw:
        return None
    try:
        value = Decimal(raw)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    # Scaled keys are divided back into floats for reports
    if not math.isfinite(float(value) * config.COORDINATE_PRECISION_SCALE):
        return None
    return value


def round_half_up(value: Decimal) -> int:
    """Scale by the precision factor and round to nearest, ties towards +infinity."""
    scaled = value * config.COORDINATE_PRECISION_SCALE + _HALF
    return int(scaled.to_integral_value(rounding=ROUND_FLOOR))


def quantize(latitude_text, longitude_text) -> CoordinateKey | None:
    """
    Quantize a latitude/longitude pair into its matching bucket.

    Args:
        latitude_text: Latitude text (may be empty)
        longitude_text: Longitude text (may be empty)

    Returns:
        CoordinateKey, or None if either coordinate is missing or malformed
    """
    lat = parse_coordinate(latitude_text)
    if lat is None:
        return None
    lon = parse_coordinate(longitude_text)
    if lon is None:
        return None
    try:
        latitude_milli = round_half_up(lat)
        longitude_milli = round_half_up(lon)
    except ArithmeticError:
        return None
    return CoordinateKey(latitude_milli=latitude_milli, longitude_milli=longitude_milli)
