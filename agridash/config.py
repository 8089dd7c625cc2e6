"""
Runtime settings for the AgriDash data service.

Values come from environment variables; a local `.env` file is loaded first
when present so development setups can keep provider keys out of the shell.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Open-Meteo forecast endpoint refuses past_days above this value
MAX_PAST_DAYS = 92

# Rain history never reports more than this many months
MAX_RAIN_MONTHS = 6


@dataclass(frozen=True)
class Settings:
    """Provider credentials and request tuning for one process."""
    openweather_api_key: Optional[str] = None
    http_timeout_s: float = 15.0
    rain_months: int = MAX_RAIN_MONTHS
    past_days: int = MAX_PAST_DAYS
    port: int = 3000


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r; using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


def get_settings() -> Settings:
    """
    Build Settings from the environment.

    Read on every call so tests (and long-running processes) see updated
    variables without restarting.
    """
    load_dotenv()
    past_days = _env_int("AGRIDASH_PAST_DAYS", MAX_PAST_DAYS)
    rain_months = _env_int("AGRIDASH_RAIN_MONTHS", MAX_RAIN_MONTHS)
    return Settings(
        openweather_api_key=os.environ.get("OPENWEATHER_API_KEY") or None,
        http_timeout_s=_env_float("AGRIDASH_HTTP_TIMEOUT", 15.0),
        rain_months=max(1, min(rain_months, MAX_RAIN_MONTHS)),
        past_days=max(1, min(past_days, MAX_PAST_DAYS)),
        port=_env_int("PORT", 3000),
    )
