"""
ISRIC SoilGrids v2.0 soil chain: pH, organic carbon and nitrogen for the
0-5 cm slice, with P/K estimated from N and organic carbon.

When SoilGrids fails or has no data for the point, a deterministic synthetic
profile is returned instead, tagged `source: synthetic`.

API docs: https://rest.isric.org/soilgrids/v2.0/docs
License: CC-BY 4.0
"""

import logging
import math
from datetime import date
from functools import partial
from typing import Dict, List, Optional, Tuple

import requests
from prometheus_client import Counter

from agridash.config import Settings, get_settings
from agridash.data.schema import (
    ESTIMATED_NUTRIENT_RANGES,
    NPK,
    SOURCE_MEASURED,
    Location,
    PhReading,
    SoilProfile,
    as_float,
    clamp,
    deci_ph_to_ph,
    nitrogen_to_kg_ha,
    recent_month_labels,
    soc_to_pct,
)
from agridash.errors import ChainExhaustedError
from agridash.location.chain import MalformedPayload, ProviderStep, run_chain
from agridash.location.synthetic import generate_soil

logger = logging.getLogger(__name__)

SOILGRIDS_BASE = "https://rest.isric.org/soilgrids/v2.0/properties/query"

SOILGRIDS_PROPERTIES = [
    "phh2o",    # pH in water (pH * 10)
    "soc",      # Soil organic carbon
    "nitrogen", # Total nitrogen
]

DEFAULT_DEPTH = "0-5cm"

# Base pH for the history series when SoilGrids has N/OC but no pH
FALLBACK_BASE_PH = 6.5

SYNTHETIC_FALLBACKS = Counter(
    "synthetic_fallbacks_total",
    "Responses served from deterministic synthetic data",
    ["category"],
)


def _request_soilgrids(location: Location, settings: Settings) -> requests.Response:
    params = [
        ("lat", location.latitude),
        ("lon", location.longitude),
        ("depth", DEFAULT_DEPTH),
        ("value", "mean"),
    ]
    # Each property is a separate repeated query param
    for prop in SOILGRIDS_PROPERTIES:
        params.append(("property", prop))
    return requests.get(
        SOILGRIDS_BASE, params=params, timeout=settings.http_timeout_s,
        headers={"Accept": "application/json"},
    )


def _layer_means(payload: Dict) -> Dict[str, Optional[float]]:
    """Mean of the first depth of each layer, keyed by property name."""
    props = payload.get("properties")
    layers = props.get("layers") if isinstance(props, dict) else payload.get("layers")
    if not isinstance(layers, list):
        layers = []

    means: Dict[str, Optional[float]] = {name: None for name in SOILGRIDS_PROPERTIES}
    for layer in layers:
        if not isinstance(layer, dict) or layer.get("name") not in means:
            continue
        depths = layer.get("depths")
        if not isinstance(depths, list) or not depths or not isinstance(depths[0], dict):
            continue
        values = depths[0].get("values") or {}
        means[layer["name"]] = as_float(values.get("mean")) if isinstance(values, dict) else None
    return means


def estimate_pk(n_kg_ha: Optional[int], organic_carbon_pct: Optional[float]) -> Tuple[Optional[int], Optional[int]]:
    """
    Rough P and K (kg/ha) from nitrogen and organic carbon.

    SoilGrids does not publish P or K. This is a display heuristic, clamped
    to P in [15, 120] and K in [80, 300]; both are None unless N and OC are known.
    """
    if n_kg_ha is None or organic_carbon_pct is None:
        return None, None
    p = clamp(n_kg_ha * 0.2 / 10 + organic_carbon_pct * 8, *ESTIMATED_NUTRIENT_RANGES["p"])
    k = clamp(n_kg_ha * 0.4 / 10 + organic_carbon_pct * 60, *ESTIMATED_NUTRIENT_RANGES["k"])
    return int(round(p)), int(round(k))


def ph_history(base_ph: float, today: Optional[date] = None) -> List[PhReading]:
    """Six monthly pH readings: base pH with a smooth 0.4-amplitude oscillation."""
    labels = recent_month_labels(6, today)
    return [
        PhReading(label, round(base_ph + (math.sin((i + 1) * 0.9) - 0.5) * 0.4, 2))
        for i, label in enumerate(labels)
    ]


def adapt_soilgrids(payload, location: Location, today: Optional[date] = None) -> SoilProfile:
    if not isinstance(payload, dict):
        raise MalformedPayload("expected a JSON object")
    means = _layer_means(payload)
    if all(v is None for v in means.values()):
        raise MalformedPayload("SoilGrids missing data")

    ph = deci_ph_to_ph(means["phh2o"])
    organic_carbon = soc_to_pct(means["soc"])
    n = nitrogen_to_kg_ha(means["nitrogen"])
    p, k = estimate_pk(n, organic_carbon)

    return SoilProfile(
        ph=ph,
        organic_carbon_pct=organic_carbon,
        npk=NPK(n=n, p=p, k=k),
        ph_history=ph_history(ph if ph is not None else FALLBACK_BASE_PH, today),
        source=SOURCE_MEASURED,
    )


def soil_steps(settings: Settings, today: Optional[date] = None) -> List[ProviderStep]:
    return [
        ProviderStep(
            "soilgrids",
            partial(_request_soilgrids, settings=settings),
            partial(adapt_soilgrids, today=today),
        ),
    ]


def fetch_soil(
    location: Location,
    settings: Optional[Settings] = None,
    today: Optional[date] = None,
) -> SoilProfile:
    """
    Soil profile for a location: measured when SoilGrids answers, synthetic otherwise.

    Raises:
        ChainExhaustedError: SoilGrids failed and the synthetic generator
            could not produce a profile either.
    """
    settings = settings or get_settings()
    try:
        return run_chain("soil", soil_steps(settings, today), location)
    except ChainExhaustedError as e:
        logger.warning("SoilGrids failed, using synthetic soil: %s", e.detail)
        try:
            profile = generate_soil(location, today)
        except (ValueError, TypeError, OverflowError) as gen_err:
            raise ChainExhaustedError(
                "soil",
                detail=f"{e.detail}; synthetic fallback failed: {gen_err}",
                attempts=e.attempts,
            )
        SYNTHETIC_FALLBACKS.labels(category="soil").inc()
        return profile
