from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .regions import City, city_from_county, series_id
from .series import aggregate_daily, to_day

logger = logging.getLogger(__name__)

TRANSIT_COL = "transit_stations_percent_change_from_baseline"
REQUIRED_COLUMNS = ("date", "sub_region_1", "sub_region_2", TRANSIT_COL)


def read_mobility_csv(path: Path) -> pd.DataFrame:
    """
    Read the Google Community Mobility Report, keeping only the columns we use.

    Raises ValueError if a required column is absent.
    """
    df = pd.read_csv(
        path,
        usecols=lambda c: c in REQUIRED_COLUMNS,
        dtype={"sub_region_1": "string", "sub_region_2": "string", "date": "string"},
        low_memory=False,
    )
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Mobility report missing columns: {missing}")
    logger.info("[mobility] read %s rows from %s", len(df), path)
    return df


def normalize_mobility(df_raw: pd.DataFrame) -> pd.DataFrame:
    """
    Keep rows for the tracked counties and map them to cities.

    Returns columns: city (City), ds, y (transit % change from baseline).
    Rows for untracked regions are dropped silently; blank transit values are
    dropped rather than read as zero.
    """
    if df_raw.empty:
        return pd.DataFrame({
            "city": pd.Series(dtype="object"),
            "ds": pd.Series(dtype="datetime64[ns]"),
            "y": pd.Series(dtype="float64"),
        })

    df = df_raw.copy()
    df["city"] = [
        city_from_county(state, county)
        for state, county in zip(df["sub_region_1"], df["sub_region_2"])
    ]
    kept = df[df["city"].notna()]
    logger.debug("[mobility] %s of %s rows match a tracked county", len(kept), len(df))

    out = pd.DataFrame({
        "city": kept["city"].to_numpy(),
        "ds": to_day(kept["date"]).to_numpy(),
        "y": pd.to_numeric(kept[TRANSIT_COL], errors="coerce").astype("float64").to_numpy(),
    })

    n_blank = int(out["y"].isna().sum())
    if n_blank:
        logger.info("[mobility] dropped %s rows with blank transit values", n_blank)

    return out.dropna(subset=["y"]).reset_index(drop=True)


def prepare_mobility(
    normalized: pd.DataFrame,
    start: Optional[str] = None,
    end: Optional[str] = None,
) -> Dict[City, pd.DataFrame]:
    """
    Split normalized rows per city into sorted, one-row-per-day series.

    Mobility is already daily, so this only dedupes (mean of duplicate rows)
    and sorts. Series are not gap-filled. Every city gets an entry, possibly empty.
    """
    work = normalized
    if start is not None:
        work = work[work["ds"] >= pd.Timestamp(start)]
    if end is not None:
        work = work[work["ds"] <= pd.Timestamp(end)]

    out: Dict[City, pd.DataFrame] = {}
    for city in City:
        rows = work[work["city"] == city]
        daily = aggregate_daily(rows, value_col="y")

        n_dupes = int((daily["reading_count"] > 1).sum())
        if n_dupes:
            logger.warning("[mobility] %s: %s days had duplicate region rows (averaged)", city.value, n_dupes)

        series = daily.rename(columns={"average": "y"})[["ds", "y"]]
        series.insert(0, "unique_id", series_id(city, "transit"))
        out[city] = series.reset_index(drop=True)

    return out
