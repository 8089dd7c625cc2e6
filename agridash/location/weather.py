"""
Weather chain: current conditions plus daily rain for a point.

    1. OpenWeather One Call 3.0   (API key, metric units)
    2. OpenWeather One Call 2.5   (same key, wider free-tier availability)
    3. Open-Meteo forecast        (no key; wind reported in km/h)

There is no synthetic weather: if all three fail the chain is exhausted.

API docs: https://openweathermap.org/api/one-call-3
          https://open-meteo.com/en/docs
"""

import logging
from functools import partial
from typing import List, Optional

import requests

from agridash.config import Settings, get_settings
from agridash.data.schema import (
    DailyRain,
    Location,
    WeatherSnapshot,
    as_float,
    iso_to_epoch,
    kmh_to_ms,
)
from agridash.location.chain import (
    MalformedPayload,
    MissingCredentialsError,
    ProviderStep,
    run_chain,
)

logger = logging.getLogger(__name__)

ONECALL_V3 = "https://api.openweathermap.org/data/3.0/onecall"
ONECALL_V25 = "https://api.openweathermap.org/data/2.5/onecall"
OPEN_METEO_FORECAST = "https://api.open-meteo.com/v1/forecast"


# ---------- Requests ----------

def _request_onecall(location: Location, url: str, settings: Settings) -> requests.Response:
    if not settings.openweather_api_key:
        raise MissingCredentialsError("OPENWEATHER_API_KEY not set")
    params = {
        "lat": location.latitude,
        "lon": location.longitude,
        "exclude": "minutely,alerts",
        "appid": settings.openweather_api_key,
        "units": "metric",
    }
    return requests.get(url, params=params, timeout=settings.http_timeout_s)


def _request_open_meteo(location: Location, settings: Settings) -> requests.Response:
    params = {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "current_weather": "true",
        "hourly": "temperature_2m,relative_humidity_2m,precipitation,wind_speed_10m",
        "daily": "precipitation_sum",
        "timezone": "auto",
    }
    return requests.get(OPEN_METEO_FORECAST, params=params, timeout=settings.http_timeout_s)


# ---------- Adapters ----------

def _round(value: Optional[float], ndigits: int = 2) -> Optional[float]:
    return None if value is None else round(value, ndigits)


def adapt_onecall(payload, location: Location) -> WeatherSnapshot:
    """One Call (any version) with units=metric: C, %, m/s already."""
    if not isinstance(payload, dict):
        raise MalformedPayload("expected a JSON object")
    current = payload.get("current")
    if not isinstance(current, dict):
        current = {}

    daily_rain: List[DailyRain] = []
    daily = payload.get("daily")
    if isinstance(daily, list):
        for day in daily:
            if not isinstance(day, dict) or as_float(day.get("dt")) is None:
                continue
            daily_rain.append(DailyRain(int(day["dt"]), as_float(day.get("rain"))))

    snapshot = WeatherSnapshot(
        temperature_c=_round(as_float(current.get("temp"))),
        humidity_pct=_round(as_float(current.get("humidity"))),
        wind_speed_ms=_round(as_float(current.get("wind_speed"))),
        daily_rain=daily_rain,
    )
    if _is_empty(snapshot):
        raise MalformedPayload("no current conditions or daily data")
    return snapshot


def _humidity_at(hourly: dict, target_time: Optional[str]) -> Optional[float]:
    """Hourly humidity at the current-weather timestamp, else the first reading."""
    times = hourly.get("time")
    values = hourly.get("relative_humidity_2m")
    if not isinstance(times, list) or not isinstance(values, list):
        return None
    if target_time in times:
        idx = times.index(target_time)
        if idx < len(values) and as_float(values[idx]) is not None:
            return as_float(values[idx])
    for v in values:
        if as_float(v) is not None:
            return as_float(v)
    return None


def adapt_open_meteo(payload, location: Location) -> WeatherSnapshot:
    """Open-Meteo forecast: wind km/h -> m/s, daily dates -> epoch seconds."""
    if not isinstance(payload, dict):
        raise MalformedPayload("expected a JSON object")
    current = payload.get("current_weather")
    if not isinstance(current, dict):
        current = {}
    hourly = payload.get("hourly")
    if not isinstance(hourly, dict):
        hourly = {}

    daily_rain: List[DailyRain] = []
    daily = payload.get("daily")
    if isinstance(daily, dict) and isinstance(daily.get("time"), list):
        precip = daily.get("precipitation_sum")
        if not isinstance(precip, list):
            precip = []
        for i, t in enumerate(daily["time"]):
            epoch = iso_to_epoch(t)
            if epoch is None:
                continue
            mm = as_float(precip[i]) if i < len(precip) else None
            daily_rain.append(DailyRain(epoch, mm))

    snapshot = WeatherSnapshot(
        temperature_c=_round(as_float(current.get("temperature"))),
        humidity_pct=_round(_humidity_at(hourly, current.get("time"))),
        wind_speed_ms=kmh_to_ms(as_float(current.get("windspeed"))),
        daily_rain=daily_rain,
    )
    if _is_empty(snapshot):
        raise MalformedPayload("no current_weather, hourly or daily data")
    return snapshot


def _is_empty(snapshot: WeatherSnapshot) -> bool:
    return (
        snapshot.temperature_c is None
        and snapshot.humidity_pct is None
        and snapshot.wind_speed_ms is None
        and not snapshot.daily_rain
    )


def weather_steps(settings: Settings) -> List[ProviderStep]:
    return [
        ProviderStep(
            "openweather-onecall-3.0",
            partial(_request_onecall, url=ONECALL_V3, settings=settings),
            adapt_onecall,
        ),
        ProviderStep(
            "openweather-onecall-2.5",
            partial(_request_onecall, url=ONECALL_V25, settings=settings),
            adapt_onecall,
        ),
        ProviderStep(
            "open-meteo-forecast",
            partial(_request_open_meteo, settings=settings),
            adapt_open_meteo,
        ),
    ]


def fetch_weather(location: Location, settings: Optional[Settings] = None) -> WeatherSnapshot:
    """
    Current weather for a location in canonical units.

    Raises:
        ChainExhaustedError: All three providers failed.
    """
    settings = settings or get_settings()
    return run_chain("weather", weather_steps(settings), location)
