"""
Canonical entity definitions and unit conversion utilities for the
AgriDash data service.

Every provider response is normalized into these shapes before it leaves a
chain; the API layer only ever serializes these.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import List, Optional

import pandas as pd


SOURCE_MEASURED = "measured"
SOURCE_SYNTHETIC = "synthetic"

# ---------- Validation ranges ----------
COORDINATE_RANGES = {
    "latitude":  (-90.0, 90.0),
    "longitude": (-180.0, 180.0),
}

# Clamp ranges for P/K estimated from SoilGrids N and organic carbon (kg/ha)
ESTIMATED_NUTRIENT_RANGES = {
    "p": (15, 120),
    "k": (80, 300),
}

# Output ranges of the deterministic synthetic soil generator
SYNTHETIC_SOIL_RANGES = {
    "ph":                 (5.5, 8.0),
    "organic_carbon_pct": (0.4, 1.6),
    "n":                  (150, 350),
    "p":                  (20, 100),
    "k":                  (120, 280),
}

# Bulk soil mass of a 0-5 cm slice at ~1.3 g/cc bulk density (kg/ha)
SOIL_MASS_0_5CM_KG_HA = 650000


# ---------- Canonical entities ----------

@dataclass(frozen=True)
class Location:
    """A resolved point; lives for one request only."""
    latitude: float
    longitude: float
    label: Optional[str] = None


@dataclass
class DailyRain:
    epoch_seconds: int
    mm: Optional[float] = None


@dataclass
class WeatherSnapshot:
    """Current conditions in canonical units (C, %, m/s) plus daily rain."""
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    wind_speed_ms: Optional[float] = None
    daily_rain: List[DailyRain] = field(default_factory=list)


@dataclass
class RainHistory:
    """Monthly rainfall totals (mm), oldest month first."""
    labels: List[str] = field(default_factory=list)
    values: List[float] = field(default_factory=list)

    def __post_init__(self):
        if len(self.labels) != len(self.values):
            raise ValueError(
                f"RainHistory labels/values length mismatch: "
                f"{len(self.labels)} != {len(self.values)}"
            )


@dataclass
class RainForecast:
    """Projected monthly rainfall following the last known history month."""
    labels: List[str]
    values: List[float]
    slope: float
    intercept: float


@dataclass
class NPK:
    n: Optional[int] = None
    p: Optional[int] = None
    k: Optional[int] = None


@dataclass
class PhReading:
    label: str
    value: float


@dataclass
class SoilProfile:
    ph: Optional[float]
    organic_carbon_pct: Optional[float]
    npk: NPK
    ph_history: List[PhReading]
    source: str = SOURCE_MEASURED


@dataclass
class GeocodeResult:
    latitude: float
    longitude: float
    label: str

    def to_location(self) -> Location:
        return Location(self.latitude, self.longitude, self.label)


# ---------- Unit conversions ----------

def kmh_to_ms(value: Optional[float]) -> Optional[float]:
    """Wind speed km/h -> m/s, rounded to 2 decimals."""
    if value is None:
        return None
    return round(float(value) / 3.6, 2)


def deci_ph_to_ph(value: Optional[float]) -> Optional[float]:
    """SoilGrids stores pH * 10; 65 -> 6.5."""
    if value is None:
        return None
    return round(float(value) / 10.0, 1)


def soc_to_pct(value: Optional[float]) -> Optional[float]:
    """Soil organic carbon as reported by SoilGrids -> percent."""
    if value is None:
        return None
    return round(float(value) / 10.0, 2)


def nitrogen_to_kg_ha(value: Optional[float]) -> Optional[int]:
    """Total nitrogen (g/kg) over the 0-5 cm slice -> kg/ha."""
    if value is None:
        return None
    return int(round((float(value) / 1000.0) * SOIL_MASS_0_5CM_KG_HA))


def iso_to_epoch(value: Optional[str]) -> Optional[int]:
    """
    ISO date or datetime string -> epoch seconds.

    Naive values are taken as UTC, so '2025-11-14' maps to midnight UTC.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


# ---------- Month labels ----------

MONTH_ABBRS: List[str] = [
    pd.Period(year=2000, month=m, freq="M").strftime("%b") for m in range(1, 13)
]


def recent_month_labels(count: int = 6, today: Optional[date] = None) -> List[str]:
    """Abbreviations of the `count` months ending with the current one."""
    today = today or date.today()
    end = pd.Timestamp(today).to_period("M")
    periods = pd.period_range(end=end, periods=count, freq="M")
    return [p.strftime("%b") for p in periods]


def following_month_labels(
    last_label: Optional[str],
    count: int = 6,
    today: Optional[date] = None,
) -> List[str]:
    """
    Abbreviations of the `count` months after `last_label`.

    Falls back to the months after the current one when the label is
    missing or unrecognized.
    """
    if last_label in MONTH_ABBRS:
        start = MONTH_ABBRS.index(last_label)
    else:
        start = (today or date.today()).month - 1
    return [MONTH_ABBRS[(start + i) % 12] for i in range(1, count + 1)]


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def as_float(value) -> Optional[float]:
    """Numeric provider field -> float; anything else (None, str, bool) -> None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)
