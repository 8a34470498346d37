"""
Session data store.

build_store() is the single initialization step: it loads both inputs, builds
every DailySeries, validates them and only then returns a DataStore. Readers
(charts, statistics, dashboard) receive the store itself; there is no global
lookup. Accessors hand out copies so the cached series stay read-only.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping

import pandas as pd

from .align import align_series
from .config import TransitAQConfig
from .mobility import normalize_mobility, prepare_mobility, read_mobility_csv
from .openaq import parse_pollutant_payload
from .regions import City, Pollutant, series_id
from .series import build_daily_series, validate_daily_series

logger = logging.getLogger(__name__)


class DataLoadError(RuntimeError):
    """An input file is missing or malformed; no store is published."""


@dataclass(frozen=True)
class DataStore:
    start_date: str
    end_date: str
    pollutant: Mapping[tuple[City, Pollutant], pd.DataFrame]
    mobility: Mapping[City, pd.DataFrame]

    def pollutant_series(self, city: City, pollutant: Pollutant) -> pd.DataFrame:
        return self.pollutant[(city, pollutant)].copy()

    def mobility_series(self, city: City) -> pd.DataFrame:
        return self.mobility[city].copy()

    def merged(self, city: City, pollutant: Pollutant) -> pd.DataFrame:
        """Aligned pollutant/transit rows for one pair (computed on demand, not cached)."""
        return align_series(self.pollutant[(city, pollutant)], self.mobility[city])

    def pairs(self) -> list[tuple[City, Pollutant]]:
        return [(city, pollutant) for city in City for pollutant in Pollutant]

    def pollutant_frame(self) -> pd.DataFrame:
        """All pollutant series stacked in long [unique_id, ds, y, ...] form."""
        return pd.concat([self.pollutant[key] for key in self.pairs()], ignore_index=True)

    def mobility_frame(self) -> pd.DataFrame:
        return pd.concat([self.mobility[city] for city in City], ignore_index=True)


def load_pollutant_file(path: Path) -> Dict[tuple[City, Pollutant], pd.DataFrame]:
    """Read data_all.json into aggregated frames, failing fast on any defect."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return parse_pollutant_payload(payload)
    except (OSError, ValueError, TypeError) as exc:
        raise DataLoadError(f"Failed to load pollutant data from {path}: {exc}") from exc


def load_mobility_file(path: Path) -> pd.DataFrame:
    """Read and normalize the mobility report, failing fast on any defect."""
    try:
        return normalize_mobility(read_mobility_csv(path))
    except (OSError, ValueError, KeyError) as exc:
        raise DataLoadError(f"Failed to load mobility data from {path}: {exc}") from exc


def assemble_store(
    pollutant_daily: Mapping[tuple[City, Pollutant], pd.DataFrame],
    mobility_rows: pd.DataFrame,
    start_date: str,
    end_date: str,
    boundary_fill: str = "none",
) -> DataStore:
    """Build and validate every series from already-parsed inputs."""
    series: Dict[tuple[City, Pollutant], pd.DataFrame] = {}
    for city in City:
        for pollutant in Pollutant:
            key = (city, pollutant)
            if key not in pollutant_daily:
                raise DataLoadError(f"No pollutant data for {city.value}/{pollutant.value}")

            daily_series = build_daily_series(
                pollutant_daily[key],
                start_date,
                end_date,
                unique_id=series_id(city, pollutant),
                boundary_fill=boundary_fill,
            )
            result = validate_daily_series(daily_series, start_date, end_date)
            if not result.is_valid:
                raise DataLoadError(
                    f"Daily series {series_id(city, pollutant)} failed validation: "
                    f"rows={result.n_rows}/{result.expected_rows} "
                    f"duplicates={result.n_duplicates} missing_days={result.n_missing_days} "
                    f"monotonic={result.is_monotonic}"
                )
            if result.n_unresolved:
                logger.info(
                    "[store] %s: %s unresolved boundary days",
                    series_id(city, pollutant),
                    result.n_unresolved,
                )
            series[key] = daily_series

    mobility = prepare_mobility(mobility_rows, start_date, end_date)
    for city, frame in mobility.items():
        if frame.empty:
            logger.warning("[store] no mobility rows for %s", city.value)

    logger.info("[store] built %s pollutant series and %s mobility series", len(series), len(mobility))
    return DataStore(
        start_date=start_date,
        end_date=end_date,
        pollutant=MappingProxyType(series),
        mobility=MappingProxyType(mobility),
    )


def build_store(config: TransitAQConfig) -> DataStore:
    """Load both input files and publish a fully built store (or raise DataLoadError)."""
    pollutant_daily = load_pollutant_file(config.pollutant_path())
    mobility_rows = load_mobility_file(config.mobility_path())
    return assemble_store(
        pollutant_daily,
        mobility_rows,
        config.start_date,
        config.end_date,
        boundary_fill=config.boundary_fill,
    )
