"""
Pydantic response schemas for the AgriDash API.

Field names mirror the canonical dataclasses in agridash.data.schema and are
serialized in camelCase. Optional fields are always emitted, as null when
unknown.
"""

from dataclasses import asdict
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @classmethod
    def from_entity(cls, entity):
        """Build from a canonical dataclass instance."""
        return cls.model_validate(asdict(entity))


class DailyRainOut(CamelModel):
    epoch_seconds: int
    mm: Optional[float] = None


class WeatherSnapshotOut(CamelModel):
    """Current conditions: Celsius, percent, metres per second."""
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    wind_speed_ms: Optional[float] = None
    daily_rain: List[DailyRainOut] = []

    model_config = ConfigDict(json_schema_extra={
        "examples": [{
            "temperatureC": 27.4, "humidityPct": 71.0, "windSpeedMs": 3.0,
            "dailyRain": [{"epochSeconds": 1763078400, "mm": 4.2}],
        }]
    })


class RainHistoryOut(CamelModel):
    labels: List[str]
    values: List[float]


class RainForecastOut(CamelModel):
    labels: List[str]
    values: List[float]
    slope: float
    intercept: float


class NPKOut(CamelModel):
    n: Optional[int] = Field(None, description="Nitrogen (kg/ha)")
    p: Optional[int] = Field(None, description="Phosphorus (kg/ha)")
    k: Optional[int] = Field(None, description="Potassium (kg/ha)")


class PhReadingOut(CamelModel):
    label: str
    value: float


class SoilProfileOut(CamelModel):
    ph: Optional[float] = None
    organic_carbon_pct: Optional[float] = None
    npk: NPKOut
    ph_history: List[PhReadingOut]
    source: Literal["measured", "synthetic"]


class GeocodeResultOut(CamelModel):
    latitude: float
    longitude: float
    label: Optional[str] = None


class DashboardOut(CamelModel):
    """Combined payload for one location."""
    location: GeocodeResultOut
    weather: WeatherSnapshotOut
    rain_history: RainHistoryOut
    rain_forecast: RainForecastOut
    soil: SoilProfileOut


class HealthOut(BaseModel):
    ok: bool
