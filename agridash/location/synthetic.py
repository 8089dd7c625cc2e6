"""
Deterministic synthetic soil profiles.

Used only when SoilGrids cannot answer. Values are a pure function of the
coordinates, so a location always gets the same numbers; only the pH history
month labels follow the calendar.
"""

import math
from datetime import date
from typing import Optional

from agridash.data.schema import (
    NPK,
    SOURCE_SYNTHETIC,
    SYNTHETIC_SOIL_RANGES,
    Location,
    PhReading,
    SoilProfile,
    recent_month_labels,
)

# Max deviation of the synthetic pH history from the base pH
PH_HISTORY_AMPLITUDE = 0.5


def _mix(latitude: float, longitude: float) -> float:
    """Unbounded non-negative hash of the coordinates (sinusoidal mix)."""
    return abs(math.sin(latitude * 12.9898 + longitude * 78.233) * 43758.5453)


def location_seed(latitude: float, longitude: float) -> float:
    """
    Fractional seed in [0, 1) derived from a coordinate pair.

    Args:
        latitude: Decimal degrees in [-90, 90]
        longitude: Decimal degrees in [-180, 180]

    Returns:
        Float in [0, 1); identical inputs always give identical output.
    """
    return _mix(latitude, longitude) % 1


def _channel(raw: float, factor: float) -> float:
    """Independent-looking [0, 1) fraction per soil property."""
    return (raw * factor) % 1


def _scale(fraction: float, bounds) -> float:
    lo, hi = bounds
    return lo + fraction * (hi - lo)


def generate_soil(location: Location, today: Optional[date] = None) -> SoilProfile:
    """
    Plausible soil profile for a location, tagged `synthetic`.

    Ranges: pH 5.5-8.0, organic carbon 0.4-1.6 %, N 150-350, P 20-100,
    K 120-280 kg/ha. The six-month pH history oscillates around the base pH
    and never strays more than PH_HISTORY_AMPLITUDE from it.
    """
    raw = _mix(location.latitude, location.longitude)
    r = SYNTHETIC_SOIL_RANGES

    ph = round(_scale(raw % 1, r["ph"]), 1)
    organic_carbon = round(_scale(_channel(raw, 1.3), r["organic_carbon_pct"]), 2)
    n = int(round(_scale(_channel(raw, 1.7), r["n"])))
    p = int(round(_scale(_channel(raw, 2.1), r["p"])))
    k = int(round(_scale(_channel(raw, 2.7), r["k"])))

    labels = recent_month_labels(6, today)
    history = [
        PhReading(label, round(ph + math.sin(raw + i) * PH_HISTORY_AMPLITUDE, 2))
        for i, label in enumerate(labels)
    ]

    return SoilProfile(
        ph=ph,
        organic_carbon_pct=organic_carbon,
        npk=NPK(n=n, p=p, k=k),
        ph_history=history,
        source=SOURCE_SYNTHETIC,
    )
