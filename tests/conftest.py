"""Shared test fixtures. All provider HTTP is mocked; no network access."""

import sys
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def make_response(status_code=200, payload=None, bad_json=False):
    """A stand-in for requests.Response with a fixed status and JSON body."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = 200 <= status_code < 300
    if bad_json:
        resp.json.side_effect = ValueError("Expecting value: line 1 column 1")
    else:
        resp.json.return_value = payload
    return resp


@pytest.fixture
def fake_response():
    return make_response


@pytest.fixture
def settings():
    from agridash.config import Settings
    return Settings(openweather_api_key="test_key", http_timeout_s=5.0)


@pytest.fixture
def keyless_settings():
    from agridash.config import Settings
    return Settings(openweather_api_key=None, http_timeout_s=5.0)


@pytest.fixture
def pune():
    from agridash.data.schema import Location
    return Location(18.5204, 73.8567, "Pune, Maharashtra, India")


@pytest.fixture
def today():
    return date(2025, 11, 14)
