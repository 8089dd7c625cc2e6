"""
Geocode chain: place name -> GeocodeResult.

    1. OpenWeather direct geocoding (API key required)
    2. Open-Meteo geocoding search (no key)

An empty result set from either geocoder ends the chain with NotFoundError;
auth, network and malformed failures fall through to the next geocoder.

API docs: https://openweathermap.org/api/geocoding-api
          https://open-meteo.com/en/docs/geocoding-api
"""

import logging
from functools import partial
from typing import List, Optional

import requests

from agridash.config import Settings, get_settings
from agridash.data.schema import GeocodeResult, as_float
from agridash.location.chain import (
    EmptyResult,
    MalformedPayload,
    MissingCredentialsError,
    Outcome,
    ProviderStep,
    run_chain,
)

logger = logging.getLogger(__name__)

OPENWEATHER_GEOCODE = "https://api.openweathermap.org/geo/1.0/direct"
OPEN_METEO_GEOCODE = "https://geocoding-api.open-meteo.com/v1/search"


def _join_label(*parts) -> str:
    return ", ".join(str(p) for p in parts if p)


# ---------- Requests ----------

def _request_openweather(query: str, settings: Settings) -> requests.Response:
    if not settings.openweather_api_key:
        raise MissingCredentialsError("OPENWEATHER_API_KEY not set")
    params = {"q": query, "limit": 1, "appid": settings.openweather_api_key}
    return requests.get(OPENWEATHER_GEOCODE, params=params, timeout=settings.http_timeout_s)


def _request_open_meteo(query: str, settings: Settings) -> requests.Response:
    params = {"name": query, "count": 5, "language": "en"}
    return requests.get(OPEN_METEO_GEOCODE, params=params, timeout=settings.http_timeout_s)


# ---------- Adapters ----------

def adapt_openweather(payload, query: str) -> GeocodeResult:
    """OpenWeather returns a bare list of matches."""
    if not isinstance(payload, list):
        raise MalformedPayload("expected a list of matches")
    if not payload:
        raise EmptyResult(f"no match for {query!r}")
    first = payload[0] if isinstance(payload[0], dict) else {}
    lat, lon = as_float(first.get("lat")), as_float(first.get("lon"))
    if lat is None or lon is None:
        raise MalformedPayload("first match has no coordinates")
    label = _join_label(first.get("name"), first.get("state"), first.get("country"))
    return GeocodeResult(latitude=lat, longitude=lon, label=label or query)


def adapt_open_meteo(payload, query: str) -> GeocodeResult:
    """Open-Meteo wraps matches in `results`, omitted entirely when empty."""
    if not isinstance(payload, dict):
        raise MalformedPayload("expected a JSON object")
    results = payload.get("results") or []
    if not isinstance(results, list):
        raise MalformedPayload("`results` is not a list")

    usable = []
    suggestions: List[str] = []
    for r in results:
        if not isinstance(r, dict):
            continue
        label = _join_label(r.get("name"), r.get("admin1"), r.get("country"))
        lat, lon = as_float(r.get("latitude")), as_float(r.get("longitude"))
        if lat is None or lon is None:
            if label:
                suggestions.append(label)
            continue
        usable.append(GeocodeResult(latitude=lat, longitude=lon, label=label or query))

    if not usable:
        raise EmptyResult(f"no match for {query!r}", suggestions=suggestions)
    return usable[0]


def geocode_steps(settings: Settings) -> List[ProviderStep]:
    stop = frozenset({Outcome.NOT_FOUND})
    return [
        ProviderStep(
            "openweather-geocode",
            partial(_request_openweather, settings=settings),
            adapt_openweather,
            stop_on=stop,
        ),
        ProviderStep(
            "open-meteo-geocode",
            partial(_request_open_meteo, settings=settings),
            adapt_open_meteo,
            stop_on=stop,
        ),
    ]


def geocode(query: str, settings: Optional[Settings] = None) -> GeocodeResult:
    """
    Resolve a free-text place name to coordinates.

    Suggestions on a 404 are the labels of Open-Meteo matches that came back
    without coordinates. Open-Meteo rarely returns such entries, so the list
    is usually empty.

    Raises:
        NotFoundError: No geocoder matched the name (404, with suggestions).
        ChainExhaustedError: Both geocoders failed outright.
    """
    settings = settings or get_settings()
    return run_chain("geocode", geocode_steps(settings), query)
