"""
Rain-history chain: monthly rainfall totals for the last six months.

    1. Open-Meteo archive (ERA5) over a six-month window ending today
    2. Open-Meteo forecast with past_days (max 92, roughly three months)

Both return daily precipitation_sum; it is summed per calendar month and the
most recent months are kept, oldest first.

API docs: https://open-meteo.com/en/docs/historical-weather-api
License: CC-BY 4.0
"""

import logging
from datetime import date
from functools import partial
from typing import List, Optional, Sequence

import pandas as pd
import requests

from agridash.config import MAX_PAST_DAYS, MAX_RAIN_MONTHS, Settings, get_settings
from agridash.data.schema import Location, RainHistory, as_float
from agridash.location.chain import EmptyResult, MalformedPayload, ProviderStep, run_chain

logger = logging.getLogger(__name__)

OPEN_METEO_ARCHIVE = "https://archive-api.open-meteo.com/v1/archive"
OPEN_METEO_FORECAST = "https://api.open-meteo.com/v1/forecast"


def monthly_rain_history(
    times: Sequence[str],
    precipitation: Sequence[Optional[float]],
    months: int = 6,
) -> RainHistory:
    """
    Sum daily precipitation into calendar months.

    Missing or null daily values count as 0 mm. Keeps the `months` most
    recent months, ascending by month, values rounded to 0.1 mm.
    """
    if not times:
        return RainHistory()

    daily = [
        as_float(precipitation[i]) if i < len(precipitation) else None
        for i in range(len(times))
    ]
    series = pd.Series(daily, index=pd.to_datetime(list(times)), dtype="float64").fillna(0.0)
    monthly = series.groupby(series.index.to_period("M")).sum().sort_index().tail(months)

    return RainHistory(
        labels=[p.strftime("%b") for p in monthly.index],
        values=[round(float(v), 1) for v in monthly.values],
    )


# ---------- Requests ----------

def _window_months(settings: Settings) -> int:
    return max(1, min(settings.rain_months, MAX_RAIN_MONTHS))


def _request_archive(location: Location, settings: Settings, today: date) -> requests.Response:
    end = pd.Timestamp(today)
    start = end - pd.DateOffset(months=_window_months(settings))
    params = {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "start_date": start.strftime("%Y-%m-%d"),
        "end_date": end.strftime("%Y-%m-%d"),
        "daily": "precipitation_sum",
        "timezone": "auto",
    }
    return requests.get(OPEN_METEO_ARCHIVE, params=params, timeout=settings.http_timeout_s)


def _request_forecast(location: Location, settings: Settings) -> requests.Response:
    params = {
        "latitude": location.latitude,
        "longitude": location.longitude,
        "past_days": min(settings.past_days, MAX_PAST_DAYS),
        "daily": "precipitation_sum",
        "timezone": "auto",
    }
    return requests.get(OPEN_METEO_FORECAST, params=params, timeout=settings.http_timeout_s)


# ---------- Adapter ----------

def adapt_daily_precipitation(payload, location: Location, months: int = 6) -> RainHistory:
    """Shared by both steps: archive and forecast use the same `daily` block."""
    if not isinstance(payload, dict):
        raise MalformedPayload("expected a JSON object")
    daily = payload.get("daily")
    if not isinstance(daily, dict) or not isinstance(daily.get("time"), list):
        raise MalformedPayload("no daily.time series")
    times = daily["time"]
    if not times:
        raise EmptyResult("no daily precipitation records")
    precip = daily.get("precipitation_sum")
    if not isinstance(precip, list):
        raise MalformedPayload("no daily.precipitation_sum series")
    try:
        return monthly_rain_history(times, precip, months=months)
    except (ValueError, TypeError) as e:
        raise MalformedPayload(f"unparseable daily series: {e}")


def rain_history_steps(settings: Settings, today: Optional[date] = None) -> List[ProviderStep]:
    today = today or date.today()
    adapt = partial(adapt_daily_precipitation, months=_window_months(settings))
    return [
        ProviderStep(
            "open-meteo-archive",
            partial(_request_archive, settings=settings, today=today),
            adapt,
        ),
        ProviderStep(
            "open-meteo-forecast-past-days",
            partial(_request_forecast, settings=settings),
            adapt,
        ),
    ]


def fetch_rain_history(
    location: Location,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> RainHistory:
    """
    Monthly rainfall totals for a location.

    Raises:
        ChainExhaustedError: Archive and forecast endpoints both failed.
    """
    settings = settings or get_settings()
    return run_chain("rain-history", rain_history_steps(settings, today), location)
