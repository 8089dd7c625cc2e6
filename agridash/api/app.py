"""
FastAPI application for the AgriDash data service.

Endpoints:
    GET /api/weather        — Current weather snapshot (lat, lon)
    GET /api/rain-history   — Monthly rainfall for the last six months (lat, lon)
    GET /api/rain-forecast  — Six-month linear rainfall projection (lat, lon)
    GET /api/soil           — Soil profile, measured or synthetic (lat, lon)
    GET /api/geocode        — Place name to coordinates (q)
    GET /api/dashboard      — All of the above for one location (q or lat, lon)
    GET /api/health         — Health check
    GET /metrics            — Prometheus metrics
"""

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, Histogram, generate_latest

from agridash.api.schemas import (
    DashboardOut,
    GeocodeResultOut,
    HealthOut,
    RainForecastOut,
    RainHistoryOut,
    SoilProfileOut,
    WeatherSnapshotOut,
)
from agridash.config import get_settings
from agridash.errors import AgriDashError, ValidationError
from agridash.location.geocode import geocode
from agridash.location.pipeline import DashboardPipeline, DashboardRequest
from agridash.location.rainfall import fetch_rain_history
from agridash.location.resolver import location_from_params
from agridash.location.soilgrids import fetch_soil
from agridash.location.weather import fetch_weather
from agridash.models.trend import forecast_rain

logger = logging.getLogger(__name__)

# ---- App setup ----
app = FastAPI(
    title="AgriDash Data API",
    description="Weather, rainfall, soil and geocoding aggregated from public providers",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)

# ---- Prometheus metrics ----
REQUEST_LATENCY = Histogram(
    "api_request_latency_seconds", "API request latency",
    ["endpoint"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)


@app.middleware("http")
async def no_store(request: Request, call_next):
    """Disable caching: every response is computed fresh."""
    start = time.time()
    response = await call_next(request)
    response.headers["Cache-Control"] = "no-store"
    # Label by route template; unrouted paths would add a series per URL
    route = request.scope.get("route")
    route_path = getattr(route, "path", None)
    if route_path and route_path.startswith("/api/"):
        REQUEST_LATENCY.labels(endpoint=route_path).observe(time.time() - start)
    return response


@app.exception_handler(AgriDashError)
async def agridash_error_handler(request: Request, exc: AgriDashError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
async def startup_event():
    if not get_settings().openweather_api_key:
        logger.warning(
            "OPENWEATHER_API_KEY not set; OpenWeather steps will fall back "
            "to keyless providers. Put OPENWEATHER_API_KEY=your_key in .env"
        )


@app.get("/api/health", response_model=HealthOut)
def health_check():
    """Health check endpoint."""
    return HealthOut(ok=True)


@app.get("/api/weather", response_model=WeatherSnapshotOut)
def weather(lat: Optional[str] = None, lon: Optional[str] = None):
    location = location_from_params(lat, lon)
    return WeatherSnapshotOut.from_entity(fetch_weather(location, get_settings()))


@app.get("/api/rain-history", response_model=RainHistoryOut)
def rain_history(lat: Optional[str] = None, lon: Optional[str] = None):
    location = location_from_params(lat, lon)
    return RainHistoryOut.from_entity(fetch_rain_history(location, get_settings()))


@app.get("/api/rain-forecast", response_model=RainForecastOut)
def rain_forecast(lat: Optional[str] = None, lon: Optional[str] = None):
    location = location_from_params(lat, lon)
    history = fetch_rain_history(location, get_settings())
    return RainForecastOut.from_entity(forecast_rain(history))


@app.get("/api/soil", response_model=SoilProfileOut)
def soil(lat: Optional[str] = None, lon: Optional[str] = None):
    location = location_from_params(lat, lon)
    return SoilProfileOut.from_entity(fetch_soil(location, get_settings()))


@app.get("/api/geocode", response_model=GeocodeResultOut)
def geocode_place(q: Optional[str] = None):
    if not q or not q.strip():
        raise ValidationError("Missing q")
    return GeocodeResultOut.from_entity(geocode(q.strip(), get_settings()))


@app.get("/api/dashboard", response_model=DashboardOut)
def dashboard(q: Optional[str] = None, lat: Optional[str] = None, lon: Optional[str] = None):
    """
    Resolve a place (or coordinates) and fetch every category concurrently.
    """
    result = DashboardPipeline(get_settings()).run(DashboardRequest(query=q, lat=lat, lon=lon))
    return DashboardOut.from_entity(result)


@app.get("/metrics")
def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
