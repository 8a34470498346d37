"""
Statistics over aligned series.

Every function masks non-finite values first: unresolved days are absent,
never zero. Zero-variance or too-small inputs raise DegenerateSeriesError
instead of letting NaN/inf reach a chart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np
import pandas as pd

from .regions import LOCKDOWN_PHASES, Phase


class DegenerateSeriesError(ValueError):
    """Statistic is undefined for this input (constant values or too few points)."""


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float
    n: int

    def predict(self, x) -> np.ndarray:
        return self.slope * np.asarray(x, dtype=float) + self.intercept


def _paired(x, y) -> Tuple[np.ndarray, np.ndarray]:
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    if x_arr.shape != y_arr.shape:
        raise ValueError(f"x and y must have the same length, got {x_arr.shape} and {y_arr.shape}")
    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    return x_arr[mask], y_arr[mask]


def min_max_normalize(values: pd.Series) -> pd.Series:
    """
    Scale values to [0, 1] with (v - min) / (max - min).

    NaN stays NaN. Raises DegenerateSeriesError when there are no finite
    values or all finite values are equal.
    """
    series = pd.to_numeric(pd.Series(values), errors="coerce").astype("float64")
    finite = series[np.isfinite(series)]
    if finite.empty:
        raise DegenerateSeriesError("Cannot normalize: no finite values")

    lo = float(finite.min())
    hi = float(finite.max())
    if hi == lo:
        raise DegenerateSeriesError(f"Cannot normalize: all values equal {lo}")

    return (series - lo) / (hi - lo)


def linear_regression(x, y) -> RegressionResult:
    """
    Ordinary least squares fit of y on x.

        slope = (n*Sxy - Sx*Sy) / (n*Sxx - Sx^2)
        intercept = (Sy - slope*Sx) / n
    """
    xs, ys = _paired(x, y)
    n = len(xs)
    if n < 2:
        raise DegenerateSeriesError(f"Regression needs at least 2 points, got {n}")

    sum_x = xs.sum()
    sum_y = ys.sum()
    sum_xy = (xs * ys).sum()
    sum_xx = (xs * xs).sum()

    denominator = n * sum_xx - sum_x * sum_x
    if np.ptp(xs) == 0 or denominator <= 0:
        raise DegenerateSeriesError("Regression undefined: all x values are identical")

    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return RegressionResult(slope=float(slope), intercept=float(intercept), n=n)


def pearson_correlation(x, y) -> float:
    """Pearson r over finite pairs; raises if either variable is constant."""
    xs, ys = _paired(x, y)
    n = len(xs)
    if n < 2:
        raise DegenerateSeriesError(f"Correlation needs at least 2 points, got {n}")

    sum_x = xs.sum()
    sum_y = ys.sum()
    sum_xy = (xs * ys).sum()
    sum_xx = (xs * xs).sum()
    sum_yy = (ys * ys).sum()

    var_x = n * sum_xx - sum_x * sum_x
    var_y = n * sum_yy - sum_y * sum_y
    if np.ptp(xs) == 0 or np.ptp(ys) == 0 or var_x <= 0 or var_y <= 0:
        raise DegenerateSeriesError("Correlation undefined: a variable is constant")

    r = (n * sum_xy - sum_x * sum_y) / np.sqrt(var_x * var_y)
    # rounding can push |r| a hair past 1
    return float(np.clip(r, -1.0, 1.0))


def trend_line(x, result: RegressionResult) -> pd.DataFrame:
    """Points on the fitted line, sorted by x, for plotting."""
    xs = np.sort(np.asarray(x, dtype=float)[np.isfinite(np.asarray(x, dtype=float))])
    return pd.DataFrame({"x": xs, "y": result.predict(xs)})


def phase_averages(series: pd.DataFrame, phases: Iterable[Phase] = LOCKDOWN_PHASES) -> pd.DataFrame:
    """
    Mean of ``y`` within each phase's inclusive date range.

    Unresolved days are ignored; a phase with no resolved days gets NaN.

    Returns columns: phase, start, end, average, n_days
    """
    ds = pd.to_datetime(series["ds"])
    y = pd.to_numeric(series["y"], errors="coerce")

    rows = []
    for phase in phases:
        mask = (ds >= pd.Timestamp(phase.start)) & (ds <= pd.Timestamp(phase.end)) & y.notna()
        n_days = int(mask.sum())
        rows.append({
            "phase": phase.name,
            "start": phase.start,
            "end": phase.end,
            "average": float(y[mask].mean()) if n_days else float("nan"),
            "n_days": n_days,
        })
    return pd.DataFrame(rows, columns=["phase", "start", "end", "average", "n_days"])
