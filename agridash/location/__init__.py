"""
Provider chains for the AgriDash data service.

Modules:
    chain      — Fallback chain runner and failure classification
    resolver   — Validate coordinates / resolve place names to a Location
    geocode    — OpenWeather -> Open-Meteo geocoding chain
    weather    — One Call 3.0 -> One Call 2.5 -> Open-Meteo weather chain
    rainfall   — Open-Meteo archive -> forecast past_days rain-history chain
    soilgrids  — ISRIC SoilGrids soil chain with synthetic fallback
    synthetic  — Deterministic coordinate-seeded soil generator
    pipeline   — Run all chains concurrently for the dashboard
"""
