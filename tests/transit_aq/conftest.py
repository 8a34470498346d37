"""Synthetic inputs shaped like data_all.json and the mobility report."""

import json

import pandas as pd
import pytest

from src.transit_aq.config import TransitAQConfig
from src.transit_aq.mobility import TRANSIT_COL
from src.transit_aq.regions import CITIES, City

START = "2020-01-01"
END = "2020-01-10"


def make_pollutant_payload() -> dict:
    """
    Per city:
    - pm25: sparse (01-02, 01-05, 01-09), leading and trailing gaps
    - so2: every day observed
    - no2: constant 5.0 every day
    """
    payload = {}
    for offset, city in enumerate(City):
        days = pd.date_range(START, END, freq="D")
        payload[CITIES[city].openaq_metro] = {
            "pm25": [
                {"date": "2020-01-02", "average": 10.0 + offset, "readingCount": 2},
                {"date": "2020-01-05", "average": 16.0 + offset, "readingCount": 3},
                {"date": "2020-01-09", "average": 8.0 + offset, "readingCount": 1},
            ],
            "so2": [
                {"date": d.strftime("%Y-%m-%d"), "average": 0.1 * (i + 1), "readingCount": 4}
                for i, d in enumerate(days)
            ],
            "no2": [
                {"date": d.strftime("%Y-%m-%d"), "average": 5.0, "readingCount": 1}
                for d in days
            ],
        }
    # Untracked metro: ignored by the loader
    payload["Boston-Cambridge-Quincy"] = {"pm25": [{"date": "2020-01-01", "average": 1.0, "readingCount": 1}]}
    return payload


def make_mobility_frame() -> pd.DataFrame:
    """Transit rows 01-03..01-12 for every tracked county plus noise rows."""
    rows = []
    for offset, city in enumerate(City):
        info = CITIES[city]
        for i, d in enumerate(pd.date_range("2020-01-03", "2020-01-12", freq="D")):
            rows.append({
                "country_region": "United States",
                "sub_region_1": info.state,
                "sub_region_2": info.county,
                "date": d.strftime("%Y-%m-%d"),
                TRANSIT_COL: -5.0 * i - offset,
            })
    rows.append({
        "country_region": "United States",
        "sub_region_1": "Georgia",
        "sub_region_2": "Cook County",
        "date": "2020-01-05",
        TRANSIT_COL: 12.0,
    })
    rows.append({
        "country_region": "United States",
        "sub_region_1": "Illinois",
        "sub_region_2": None,
        "date": "2020-01-05",
        TRANSIT_COL: 3.0,
    })
    return pd.DataFrame(rows)


@pytest.fixture
def pollutant_payload() -> dict:
    return make_pollutant_payload()


@pytest.fixture
def mobility_frame() -> pd.DataFrame:
    return make_mobility_frame()


@pytest.fixture
def input_config(tmp_path, pollutant_payload, mobility_frame) -> TransitAQConfig:
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    cfg = TransitAQConfig(
        start_date=START,
        end_date=END,
        data_dir=str(data_dir),
        artifacts_dir=str(tmp_path / "artifacts"),
    )
    with open(cfg.pollutant_path(), "w", encoding="utf-8") as f:
        json.dump(pollutant_payload, f)
    mobility_frame.to_csv(cfg.mobility_path(), index=False)
    return cfg
