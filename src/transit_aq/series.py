"""
Daily series construction.

Turns dated observations into the canonical one-row-per-day frame:
- aggregate_daily: collapse same-day readings to a mean + reading count
- fill_date_gaps: expand to the full calendar range, NaN for absent days
- linear_interpolate: fill interior gaps, flag synthesized days
- validate_daily_series: check the one-row-per-day contract
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import pandas as pd

logger = logging.getLogger(__name__)

SERIES_COLUMNS = ["unique_id", "ds", "y", "reading_count", "interpolated"]
BOUNDARY_POLICIES = ("none", "nearest")


def to_day(values: pd.Series) -> pd.Series:
    """Parse dates (fail loud) and truncate to timezone-naive midnight."""
    ds = pd.to_datetime(values, errors="raise")
    if getattr(ds.dt, "tz", None) is not None:
        ds = ds.dt.tz_localize(None)
    return ds.dt.normalize().astype("datetime64[ns]")


def calendar(start: str, end: str) -> pd.DatetimeIndex:
    start_ts = pd.Timestamp(start)
    end_ts = pd.Timestamp(end)
    if start_ts > end_ts:
        raise ValueError(f"start ({start}) must not be after end ({end})")
    return pd.date_range(start_ts, end_ts, freq="D").astype("datetime64[ns]")


def aggregate_daily(df: pd.DataFrame, value_col: str = "value") -> pd.DataFrame:
    """
    Average all readings that share a calendar day.

    Args:
        df: DataFrame with a ``ds`` column and a numeric ``value_col``

    Returns:
        DataFrame [ds, average, reading_count] sorted by ds, one row per day
    """
    if df.empty:
        return pd.DataFrame({
            "ds": pd.Series(dtype="datetime64[ns]"),
            "average": pd.Series(dtype="float64"),
            "reading_count": pd.Series(dtype="int64"),
        })

    work = df[["ds", value_col]].copy()
    work["ds"] = to_day(work["ds"])
    work[value_col] = pd.to_numeric(work[value_col], errors="coerce")
    work = work.dropna(subset=[value_col])

    grouped = (
        work.groupby("ds")[value_col]
        .agg(average="mean", reading_count="count")
        .reset_index()
        .sort_values("ds")
        .reset_index(drop=True)
    )
    grouped["reading_count"] = grouped["reading_count"].astype("int64")
    return grouped


def fill_date_gaps(
    daily: pd.DataFrame,
    start: str,
    end: str,
    unique_id: str = "",
) -> pd.DataFrame:
    """
    Expand a sparse daily frame to every day of [start, end].

    Absent days get ``y = NaN`` (zero is a valid reading) and ``reading_count = 0``.
    Input days outside the range are dropped.
    """
    days = calendar(start, end)
    frame = pd.DataFrame({"ds": days})

    if daily.empty:
        frame["y"] = float("nan")
        frame["reading_count"] = 0
    else:
        work = daily.copy()
        work["ds"] = to_day(work["ds"])
        if work["ds"].duplicated().any():
            raise ValueError("fill_date_gaps expects one row per day; aggregate first")
        if "reading_count" not in work.columns:
            work["reading_count"] = 1
        work = work.rename(columns={"average": "y"})[["ds", "y", "reading_count"]]
        frame = frame.merge(work, on="ds", how="left")
        frame["y"] = pd.to_numeric(frame["y"], errors="coerce").astype("float64")
        frame["reading_count"] = frame["reading_count"].fillna(0).astype("int64")

    frame.insert(0, "unique_id", unique_id)
    return frame


def linear_interpolate(series: pd.DataFrame, boundary_fill: str = "none") -> pd.DataFrame:
    """
    Fill missing days by linear interpolation between the bounding known days.

    Interior runs are weighted by day offset:
        y = last + (next - last) / days_between * offset

    Leading/trailing runs have only one bound. With ``boundary_fill="none"`` they
    stay NaN (unresolved, interpolated=False). With ``"nearest"`` the first/last
    observed value is copied over them and they are flagged as interpolated.
    Days already flagged interpolated keep their flag on repeated runs.
    """
    if boundary_fill not in BOUNDARY_POLICIES:
        raise ValueError(f"boundary_fill must be one of {BOUNDARY_POLICIES}, got {boundary_fill!r}")

    out = series.sort_values("ds").reset_index(drop=True).copy()
    if "interpolated" in out.columns:
        previously = out["interpolated"].fillna(False).astype(bool)
    else:
        previously = pd.Series(False, index=out.index)

    y = pd.Series(
        pd.to_numeric(out["y"], errors="coerce").astype("float64").to_numpy(),
        index=pd.DatetimeIndex(out["ds"]),
    )
    filled = y.interpolate(method="time", limit_area="inside")
    if boundary_fill == "nearest":
        filled = filled.bfill().ffill()

    was_missing = y.isna().to_numpy()
    now_known = filled.notna().to_numpy()

    out["y"] = filled.to_numpy()
    out["interpolated"] = (was_missing & now_known) | previously.to_numpy()

    n_filled = int((was_missing & now_known).sum())
    n_unresolved = int((~now_known).sum())
    if n_unresolved:
        logger.debug(
            "[interpolate] %s: filled=%d unresolved=%d",
            out["unique_id"].iloc[0] if "unique_id" in out.columns and len(out) else "?",
            n_filled,
            n_unresolved,
        )
    return out


def build_daily_series(
    daily: pd.DataFrame,
    start: str,
    end: str,
    unique_id: str,
    boundary_fill: str = "none",
) -> pd.DataFrame:
    """Gap-fill then interpolate an aggregated [ds, average, reading_count] frame."""
    filled = fill_date_gaps(daily, start, end, unique_id=unique_id)
    return linear_interpolate(filled, boundary_fill=boundary_fill)[SERIES_COLUMNS]


@dataclass
class DailySeriesValidation:
    """Results of daily series validation"""
    is_valid: bool
    n_rows: int
    expected_rows: int
    n_duplicates: int
    n_missing_days: int
    missing_days: List[pd.Timestamp]
    n_out_of_range: int
    n_unresolved: int
    is_monotonic: bool


def validate_daily_series(df: pd.DataFrame, start: str, end: str) -> DailySeriesValidation:
    """
    Check the DailySeries contract.

    Checks:
    1. One row per day of [start, end] (no missing, none outside)
    2. No duplicate dates
    3. Dates increase by exactly one day
    4. Count of unresolved (NaN) values, reported but not a failure
    """
    expected = calendar(start, end)
    ds = pd.DatetimeIndex(pd.to_datetime(df["ds"]))

    n_duplicates = int(ds.duplicated(keep=False).sum())
    missing = expected.difference(ds)
    outside = ds.difference(expected)

    steps = pd.Series(ds).diff().dropna()
    is_monotonic = bool(ds.is_monotonic_increasing) and bool((steps == pd.Timedelta(days=1)).all())

    is_valid = (
        len(df) == len(expected)
        and n_duplicates == 0
        and len(missing) == 0
        and len(outside) == 0
        and is_monotonic
    )

    return DailySeriesValidation(
        is_valid=is_valid,
        n_rows=len(df),
        expected_rows=len(expected),
        n_duplicates=n_duplicates,
        n_missing_days=len(missing),
        missing_days=list(missing[:10]),
        n_out_of_range=len(outside),
        n_unresolved=int(pd.to_numeric(df["y"], errors="coerce").isna().sum()),
        is_monotonic=is_monotonic,
    )
