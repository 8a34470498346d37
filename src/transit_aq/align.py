from __future__ import annotations

import logging

import pandas as pd

logger = logging.getLogger(__name__)

MERGED_COLUMNS = ["ds", "pollutant_value", "transit_value"]


def align_series(pollutant_series: pd.DataFrame, mobility_series: pd.DataFrame) -> pd.DataFrame:
    """
    Inner-join a pollutant DailySeries and a mobility series on date.

    Rows follow the mobility series' order. Dates found in only one series are
    dropped, so the window shrinks to the mobility calendar. Unresolved
    pollutant days (NaN) are kept; the statistics layer masks them.

    Returns columns: ds, pollutant_value, transit_value
    """
    left = mobility_series[["ds", "y"]].rename(columns={"y": "transit_value"})
    right = pollutant_series[["ds", "y"]].rename(columns={"y": "pollutant_value"})

    left = left.assign(ds=pd.to_datetime(left["ds"]).astype("datetime64[ns]"))
    right = right.assign(ds=pd.to_datetime(right["ds"]).astype("datetime64[ns]"))

    merged = left.merge(right, on="ds", how="inner", sort=False)
    logger.debug(
        "[align] mobility=%s pollutant=%s merged=%s",
        len(left),
        len(right),
        len(merged),
    )
    return merged[MERGED_COLUMNS].reset_index(drop=True)
