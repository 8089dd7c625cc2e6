"""
Dashboard pipeline orchestrator: resolves a location, then runs the weather,
rain-history and soil chains concurrently and assembles one payload.

Each chain writes only its own slot of the result; steps inside a chain stay
sequential. Any chain error fails the whole request so callers never see a
partially filled dashboard.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Optional

from agridash.config import Settings, get_settings
from agridash.data.schema import (
    Location,
    RainForecast,
    RainHistory,
    SoilProfile,
    WeatherSnapshot,
)
from agridash.location.rainfall import fetch_rain_history
from agridash.location.resolver import resolve_location
from agridash.location.soilgrids import fetch_soil
from agridash.location.weather import fetch_weather
from agridash.models.trend import forecast_rain

logger = logging.getLogger(__name__)


@dataclass
class DashboardRequest:
    """Caller input for a dashboard run: a place name or explicit coordinates."""
    query: Optional[str] = None
    lat: Optional[str] = None
    lon: Optional[str] = None


@dataclass
class DashboardResult:
    location: Location
    weather: WeatherSnapshot
    rain_history: RainHistory
    rain_forecast: RainForecast
    soil: SoilProfile


class DashboardPipeline:
    """
    Orchestrate per-category chains for one location.

    Usage:
        pipeline = DashboardPipeline()
        result = pipeline.run(DashboardRequest(query="Pune"))
    """

    def __init__(self, settings: Optional[Settings] = None, today: Optional[date] = None):
        self.settings = settings or get_settings()
        self.today = today

    def run(self, request: DashboardRequest) -> DashboardResult:
        logger.info("Step 1: Resolving location (q=%r, lat=%r, lon=%r)",
                    request.query, request.lat, request.lon)
        location = resolve_location(
            query=request.query, lat=request.lat, lon=request.lon, settings=self.settings,
        )
        logger.info("Resolved: lat=%.4f, lon=%.4f, label=%s",
                    location.latitude, location.longitude, location.label)

        logger.info("Step 2: Running weather, rain-history and soil chains")
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="chain") as executor:
            weather_f = executor.submit(fetch_weather, location, self.settings)
            rain_f = executor.submit(fetch_rain_history, location, self.settings, self.today)
            soil_f = executor.submit(fetch_soil, location, self.settings, self.today)

            # .result() re-raises the chain's error in the caller thread
            weather = weather_f.result()
            rain_history = rain_f.result()
            soil = soil_f.result()

        logger.info("Step 3: Projecting rainfall trend")
        rain_forecast = forecast_rain(rain_history, today=self.today)

        return DashboardResult(
            location=location,
            weather=weather,
            rain_history=rain_history,
            rain_forecast=rain_forecast,
            soil=soil,
        )
