"""
CLI entry point for the dashboard data chains.

Usage:
    python scripts/dashboard.py --location "Pune, Maharashtra"
    python scripts/dashboard.py --location 18.52,73.85 --category soil
    python scripts/dashboard.py --location Nashik --category geocode -v
"""

import argparse
import json
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from agridash.api.schemas import (
    DashboardOut,
    GeocodeResultOut,
    RainForecastOut,
    RainHistoryOut,
    SoilProfileOut,
    WeatherSnapshotOut,
)
from agridash.config import get_settings
from agridash.errors import AgriDashError
from agridash.location.geocode import geocode
from agridash.location.pipeline import DashboardPipeline, DashboardRequest
from agridash.location.rainfall import fetch_rain_history
from agridash.location.resolver import resolve_location
from agridash.location.soilgrids import fetch_soil
from agridash.location.weather import fetch_weather
from agridash.models.trend import forecast_rain


def run_category(category: str, location_arg: str):
    settings = get_settings()

    if category == "all":
        result = DashboardPipeline(settings).run(DashboardRequest(query=location_arg))
        return DashboardOut.from_entity(result)
    if category == "geocode":
        return GeocodeResultOut.from_entity(geocode(location_arg, settings))

    location = resolve_location(query=location_arg, settings=settings)
    if category == "weather":
        return WeatherSnapshotOut.from_entity(fetch_weather(location, settings))
    if category == "rain":
        return RainHistoryOut.from_entity(fetch_rain_history(location, settings))
    if category == "forecast":
        history = fetch_rain_history(location, settings)
        return RainForecastOut.from_entity(forecast_rain(history))
    return SoilProfileOut.from_entity(fetch_soil(location, settings))


def main():
    parser = argparse.ArgumentParser(
        description="Fetch normalized dashboard data for a location",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/dashboard.py --location "Nashik, Maharashtra"
  python scripts/dashboard.py --location 18.52,73.85 --category rain
        """,
    )
    parser.add_argument(
        "--location", required=True,
        help="Place name or lat,lon (e.g., 18.52,73.85)",
    )
    parser.add_argument(
        "--category", default="all",
        choices=["all", "weather", "rain", "forecast", "soil", "geocode"],
        help="Data category to fetch (default: all)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        output = run_category(args.category, args.location)
    except AgriDashError as e:
        print(f"ERROR: {json.dumps(e.to_dict())}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(output.model_dump(by_alias=True), indent=2))


if __name__ == "__main__":
    main()
