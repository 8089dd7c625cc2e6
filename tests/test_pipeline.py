"""Tests for the dashboard pipeline orchestrator."""

from unittest.mock import patch

import pytest

from agridash.data.schema import (
    NPK,
    GeocodeResult,
    RainHistory,
    SoilProfile,
    WeatherSnapshot,
)
from agridash.errors import ChainExhaustedError, ValidationError
from agridash.location.pipeline import DashboardPipeline, DashboardRequest

HISTORY = RainHistory(
    labels=["Jun", "Jul", "Aug", "Sep", "Oct", "Nov"],
    values=[2.0, 4.0, 6.0, 8.0, 10.0, 12.0],
)
WEATHER = WeatherSnapshot(26.0, 55.0, 1.5, [])
SOIL = SoilProfile(6.8, 0.9, NPK(200, 30, 150), [], "synthetic")


@pytest.fixture
def chains():
    with patch("agridash.location.pipeline.fetch_weather", return_value=WEATHER) as w, \
         patch("agridash.location.pipeline.fetch_rain_history", return_value=HISTORY) as r, \
         patch("agridash.location.pipeline.fetch_soil", return_value=SOIL) as s:
        yield w, r, s


class TestDashboardPipeline:
    def test_coordinates_skip_geocoding(self, chains, settings, today):
        with patch("agridash.location.resolver.geocode") as mock_geocode:
            result = DashboardPipeline(settings, today).run(DashboardRequest(lat="18.52", lon="73.85"))

        mock_geocode.assert_not_called()
        assert (result.location.latitude, result.location.longitude) == (18.52, 73.85)
        assert result.weather is WEATHER
        assert result.rain_history is HISTORY
        assert result.soil is SOIL

    def test_forecast_follows_history(self, chains, settings, today):
        result = DashboardPipeline(settings, today).run(DashboardRequest(query="18.52, 73.85"))

        assert result.rain_forecast.labels == ["Dec", "Jan", "Feb", "Mar", "Apr", "May"]
        assert result.rain_forecast.values == [14.0, 16.0, 18.0, 20.0, 22.0, 24.0]
        assert result.rain_forecast.slope == pytest.approx(2.0)

    def test_place_name_is_geocoded(self, chains, settings, today):
        hit = GeocodeResult(18.5204, 73.8567, "Pune, Maharashtra, India")
        with patch("agridash.location.resolver.geocode", return_value=hit) as mock_geocode:
            result = DashboardPipeline(settings, today).run(DashboardRequest(query="Pune"))

        assert mock_geocode.call_args[0][0] == "Pune"
        assert result.location.label == "Pune, Maharashtra, India"
        weather_mock, rain_mock, soil_mock = chains
        assert weather_mock.call_args[0][0] == result.location
        assert rain_mock.call_args[0][2] == today
        assert soil_mock.call_args[0][2] == today

    def test_one_chain_failure_fails_request(self, chains, settings, today):
        weather_mock, _, _ = chains
        weather_mock.side_effect = ChainExhaustedError("weather", detail="all down")

        with pytest.raises(ChainExhaustedError, match="All weather providers failed"):
            DashboardPipeline(settings, today).run(DashboardRequest(lat="1", lon="2"))

    def test_invalid_input_never_reaches_chains(self, chains, settings):
        with pytest.raises(ValidationError):
            DashboardPipeline(settings).run(DashboardRequest(lat="95", lon="0"))
        for mock in chains:
            mock.assert_not_called()
