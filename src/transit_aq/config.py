from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from .regions import City, Pollutant


@dataclass(frozen=True)
class TransitAQConfig:
    # Analysis window (inclusive)
    start_date: str = "2020-01-01"
    end_date: str = "2020-12-31"

    # Inputs
    data_dir: str = "data"
    pollutant_file: str = "data_all.json"
    mobility_file: str = "2020_US_Region_Mobility_Report.csv"

    # OpenAQ ingestion
    openaq_base_url: str = "https://api.openaq.org/v2/measurements"
    openaq_limit: int = 10000
    request_pause_seconds: float = 1.0
    max_retries: int = 5
    backoff_factor: float = 2.0
    request_timeout: int = 60

    # Interpolation: "none" leaves leading/trailing gaps unresolved, "nearest" copies the bound
    boundary_fill: str = "none"

    # IO
    artifacts_dir: str = "artifacts/transit_aq"
    overwrite: bool = False

    def run_id(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def data_path(self) -> Path:
        return Path(self.data_dir)

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def pollutant_path(self) -> Path:
        return self.data_path() / self.pollutant_file

    def mobility_path(self) -> Path:
        return self.data_path() / self.mobility_file

    def series_path(self) -> Path:
        return self.artifacts_path() / "daily_series.parquet"

    def mobility_series_path(self) -> Path:
        return self.artifacts_path() / "mobility_series.parquet"

    def summary_path(self) -> Path:
        return self.artifacts_path() / "summary.json"

    def chart_path(self, city: City, pollutant: Pollutant, kind: str) -> Path:
        return self.artifacts_path() / "charts" / f"{city.value}_{pollutant.value}_{kind}.html"
