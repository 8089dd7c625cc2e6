"""
Linear trend extrapolation for short monthly rainfall series.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Sequence

import numpy as np

from agridash.data.schema import RainForecast, RainHistory, following_month_labels

FORECAST_HORIZON = 6


@dataclass(frozen=True)
class TrendFit:
    slope: float
    intercept: float


def fit(series: Sequence[float]) -> TrendFit:
    """
    Ordinary least squares of `series` against x = 1..n.

    Fewer than two points gives a flat zero line (slope 0, intercept 0).
    """
    n = len(series)
    if n < 2:
        return TrendFit(0.0, 0.0)

    xs = np.arange(1, n + 1, dtype=float)
    ys = np.asarray(series, dtype=float)
    mx, my = xs.mean(), ys.mean()
    den = float(((xs - mx) ** 2).sum()) or 1.0
    slope = float(((xs - mx) * (ys - my)).sum()) / den
    intercept = float(my - slope * mx)
    return TrendFit(slope, intercept)


def project(
    series: Sequence[float],
    trend: TrendFit,
    horizon: int = FORECAST_HORIZON,
) -> List[float]:
    """Evaluate the fitted line at x = n+1 .. n+horizon; rainfall is clamped at 0."""
    start = len(series) + 1
    xs = np.arange(start, start + horizon, dtype=float)
    values = np.maximum(0.0, trend.slope * xs + trend.intercept)
    return [float(v) for v in values]


def forecast_rain(
    history: RainHistory,
    horizon: int = FORECAST_HORIZON,
    today: Optional[date] = None,
) -> RainForecast:
    """Project rainfall for the months following the last history label."""
    trend = fit(history.values)
    values = project(history.values, trend, horizon)
    last_label = history.labels[-1] if history.labels else None
    return RainForecast(
        labels=following_month_labels(last_label, horizon, today),
        values=[round(v, 1) for v in values],
        slope=round(trend.slope, 4),
        intercept=round(trend.intercept, 4),
    )
