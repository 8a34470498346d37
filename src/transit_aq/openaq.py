from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

import pandas as pd
import requests
from dotenv import load_dotenv
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import TransitAQConfig
from .regions import CITIES, City, Pollutant, city_from_metro
from .series import aggregate_daily, to_day

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUSES = [429, 500, 502, 503, 504]


def load_openaq_api_key() -> Optional[str]:
    """OpenAQ key is optional; v2 accepted anonymous requests at a lower rate limit."""
    load_dotenv()
    return os.getenv("OPENAQ_API_KEY") or None


def _create_session(config: TransitAQConfig, api_key: Optional[str] = None) -> requests.Session:
    session = requests.Session()
    # Bounded: at most max_retries attempts, sleeping Retry-After when the server sends it.
    retries = Retry(
        total=config.max_retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=RATE_LIMIT_STATUSES,
        allowed_methods=["GET"],
        respect_retry_after_header=True,
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    if api_key:
        session.headers["X-API-Key"] = api_key
    return session


def pull_openaq_measurements(
    session: requests.Session,
    config: TransitAQConfig,
    city: City,
    pollutant: Pollutant,
) -> list[dict]:
    """
    Pull raw measurements for one city/pollutant over the configured window.

    Pages until a page comes back shorter than ``openaq_limit``. Requests are
    strictly sequential.
    """
    metro = CITIES[city].openaq_metro
    records: list[dict] = []
    page = 1

    while True:
        params = {
            "city": metro,
            "parameter": pollutant.value,
            "date_from": config.start_date,
            "date_to": config.end_date,
            "limit": config.openaq_limit,
            "page": page,
        }

        resp = session.get(config.openaq_base_url, params=params, timeout=config.request_timeout)
        resp.raise_for_status()
        payload = resp.json()
        results = payload.get("results", []) if isinstance(payload, dict) else []

        records.extend(results)
        logger.info("[openaq] %s/%s page %s: %s records", city.value, pollutant.value, page, len(results))

        if len(results) < config.openaq_limit:
            break

        page += 1
        time.sleep(config.request_pause_seconds)

    return records


def normalize_measurements(records: list[dict]) -> pd.DataFrame:
    """
    Flatten raw OpenAQ measurements to [ds, value].

    The calendar day is the first 10 characters of the UTC timestamp (no
    timezone conversion). Sub-location is dropped.
    """
    if not records:
        return pd.DataFrame({
            "ds": pd.Series(dtype="datetime64[ns]"),
            "value": pd.Series(dtype="float64"),
        })

    df = pd.json_normalize(records)
    date_col = "date.utc" if "date.utc" in df.columns else "date"
    for col in (date_col, "value"):
        if col not in df.columns:
            df[col] = None

    date_str = df[date_col].astype(str).str.slice(0, 10)
    out = pd.DataFrame({
        "ds": pd.to_datetime(date_str, format="%Y-%m-%d", errors="coerce"),
        "value": pd.to_numeric(df["value"], errors="coerce"),
    })

    n_bad = int(out.isna().any(axis=1).sum())
    if n_bad:
        logger.warning("[openaq] dropped %s measurements with unparseable date/value", n_bad)

    out = out.dropna().reset_index(drop=True)
    out["ds"] = out["ds"].astype("datetime64[ns]")
    return out


def to_payload_entries(daily: pd.DataFrame) -> list[dict]:
    """Serialize an aggregated frame to the data_all.json entry shape."""
    return [
        {
            "date": ds.strftime("%Y-%m-%d"),
            "average": float(avg),
            "readingCount": int(count),
        }
        for ds, avg, count in zip(daily["ds"], daily["average"], daily["reading_count"])
    ]


def build_pollutant_payload(
    config: TransitAQConfig,
    session: Optional[requests.Session] = None,
) -> Dict[str, Dict[str, list[dict]]]:
    """
    Fetch, normalize and aggregate every tracked city/pollutant.

    Returns {metro_name: {pollutant_id: [{date, average, readingCount}, ...]}}.
    """
    if session is None:
        session = _create_session(config, load_openaq_api_key())

    payload: Dict[str, Dict[str, list[dict]]] = {}
    for city in City:
        metro = CITIES[city].openaq_metro
        payload[metro] = {}
        for pollutant in Pollutant:
            records = pull_openaq_measurements(session, config, city, pollutant)
            daily = aggregate_daily(normalize_measurements(records))
            payload[metro][pollutant.value] = to_payload_entries(daily)
            logger.info(
                "[openaq] %s/%s: %s raw -> %s days",
                city.value,
                pollutant.value,
                len(records),
                len(daily),
            )
            time.sleep(config.request_pause_seconds)

    return payload


def parse_pollutant_payload(payload: Any) -> Dict[tuple[City, Pollutant], pd.DataFrame]:
    """
    Read the data_all.json mapping into aggregated frames [ds, average, reading_count].

    Untracked metro names and pollutant keys are ignored. A tracked city or
    pollutant that is missing, or an entry with a bad date/number, raises ValueError.
    """
    if not isinstance(payload, dict):
        raise ValueError(f"Pollutant payload must be a mapping, got {type(payload).__name__}")

    by_city: Dict[City, Any] = {}
    for metro, block in payload.items():
        city = city_from_metro(metro)
        if city is None:
            logger.debug("[openaq] ignoring untracked metro: %s", metro)
            continue
        by_city[city] = block

    missing_cities = [c.value for c in City if c not in by_city]
    if missing_cities:
        raise ValueError(f"Pollutant payload missing cities: {missing_cities}")

    out: Dict[tuple[City, Pollutant], pd.DataFrame] = {}
    for city, block in by_city.items():
        if not isinstance(block, dict):
            raise ValueError(f"Pollutant block for {city.value} must be a mapping")
        for pollutant in Pollutant:
            if pollutant.value not in block:
                raise ValueError(f"Pollutant payload missing {pollutant.value} for {city.value}")
            entries = block[pollutant.value]
            if not isinstance(entries, list):
                raise ValueError(f"{city.value}/{pollutant.value} entries must be a list")
            out[(city, pollutant)] = _entries_to_frame(entries)

    return out


def _entries_to_frame(entries: list[dict]) -> pd.DataFrame:
    if not entries:
        return aggregate_daily(pd.DataFrame(columns=["ds", "value"]))

    df = pd.DataFrame.from_records(entries)
    missing = {"date", "average"} - set(df.columns)
    if missing:
        raise ValueError(f"Pollutant entries missing fields: {sorted(missing)}")
    if "readingCount" not in df.columns:
        df["readingCount"] = 1
    for col in ("date", "average", "readingCount"):
        n_null = int(df[col].isna().sum())
        if n_null:
            raise ValueError(f"Pollutant entries contain {n_null} null '{col}' values")

    frame = pd.DataFrame({
        "ds": to_day(df["date"]),
        "average": pd.to_numeric(df["average"], errors="raise").astype("float64"),
        "reading_count": pd.to_numeric(df["readingCount"], errors="raise").astype("int64"),
    })

    n_dupes = int(frame["ds"].duplicated().sum())
    if n_dupes:
        raise ValueError(f"Pollutant entries contain {n_dupes} duplicate dates")

    return frame.sort_values("ds").reset_index(drop=True)
