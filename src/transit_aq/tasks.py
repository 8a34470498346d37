from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict

import pandas as pd

from .charts import phase_bar_figure, scatter_figure, time_series_figure
from .config import TransitAQConfig
from .io_utils import atomic_write_html, atomic_write_json, atomic_write_parquet, ensure_dir
from .openaq import build_pollutant_payload
from .regions import City, Pollutant, series_id
from .stats import DegenerateSeriesError, linear_regression, pearson_correlation
from .store import DataStore, build_store

logger = logging.getLogger(__name__)


def _utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def ingest_openaq(config: TransitAQConfig, run_id: str = "") -> str:
    raw_path = config.pollutant_path()
    ensure_dir(raw_path.parent)

    if raw_path.exists() and not config.overwrite:
        logger.info("[openaq-ingest] raw exists, skipping: %s", raw_path)
        return str(raw_path)

    payload = build_pollutant_payload(config)
    atomic_write_json(payload, raw_path)
    logger.info("[openaq-ingest] wrote raw: %s", raw_path)
    return str(raw_path)


def summarize_pair(store: DataStore, city: City, pollutant: Pollutant) -> Dict[str, Any]:
    """Coverage and correlation figures for one city/pollutant."""
    series = store.pollutant_series(city, pollutant)
    merged = store.merged(city, pollutant).dropna(subset=["pollutant_value", "transit_value"])

    row: Dict[str, Any] = {
        "unique_id": series_id(city, pollutant),
        "observed_days": int((series["reading_count"] > 0).sum()),
        "interpolated_days": int(series["interpolated"].sum()),
        "unresolved_days": int(series["y"].isna().sum()),
        "aligned_days": int(len(merged)),
        "pearson_r": None,
        "slope": None,
        "intercept": None,
    }

    try:
        fit = linear_regression(merged["transit_value"], merged["pollutant_value"])
        row["slope"] = fit.slope
        row["intercept"] = fit.intercept
        row["pearson_r"] = pearson_correlation(merged["transit_value"], merged["pollutant_value"])
    except DegenerateSeriesError as exc:
        logger.warning("[summary] %s: %s", row["unique_id"], exc)

    return row


def summarize_store(store: DataStore) -> pd.DataFrame:
    rows = [summarize_pair(store, city, pollutant) for city, pollutant in store.pairs()]
    return pd.DataFrame(rows)


def export_store(
    store: DataStore,
    summary: pd.DataFrame,
    config: TransitAQConfig,
    run_id: str = "",
) -> Dict[str, str]:
    atomic_write_parquet(store.pollutant_frame(), config.series_path())
    atomic_write_parquet(store.mobility_frame(), config.mobility_series_path())

    metadata = {
        "run_id": run_id,
        "built_at": _utc_iso(),
        "start_date": store.start_date,
        "end_date": store.end_date,
        "boundary_fill": config.boundary_fill,
        "pollutant_rows": int(sum(len(store.pollutant[key]) for key in store.pairs())),
        "mobility_rows": int(sum(len(store.mobility[city]) for city in City)),
        "pairs": summary.astype(object).where(summary.notna(), None).to_dict(orient="records"),
    }
    atomic_write_json(metadata, config.summary_path())

    n_charts = 0
    for city, pollutant in store.pairs():
        atomic_write_html(time_series_figure(store, city, pollutant), config.chart_path(city, pollutant, "timeseries"))
        atomic_write_html(phase_bar_figure(store, city, pollutant), config.chart_path(city, pollutant, "phases"))
        atomic_write_html(scatter_figure(store, city, pollutant), config.chart_path(city, pollutant, "scatter"))
        n_charts += 3

    logger.info("[export] wrote series, summary and %s charts to %s", n_charts, config.artifacts_path())
    return {
        "series": str(config.series_path()),
        "mobility_series": str(config.mobility_series_path()),
        "summary": str(config.summary_path()),
        "charts": str(config.artifacts_path() / "charts"),
    }


def run_full_pipeline(config: TransitAQConfig, export: bool = False) -> Dict[str, Any]:
    run_id = config.run_id()

    store = build_store(config)
    summary = summarize_store(store)

    results: Dict[str, Any] = {
        "run_id": run_id,
        "pollutant_file": str(config.pollutant_path()),
        "mobility_file": str(config.mobility_path()),
        "n_series": len(store.pairs()),
        "unresolved_days": int(summary["unresolved_days"].sum()),
        "summary": summary,
    }
    if export:
        results.update(export_store(store, summary, config, run_id=run_id))
    return results
