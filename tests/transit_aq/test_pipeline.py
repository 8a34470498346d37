"""
Smoke tests: store -> summary -> charts -> export, all on synthetic files.
"""

import json
from unittest.mock import patch

import pandas as pd
import pytest
from typer.testing import CliRunner

from src.transit_aq.charts import (
    phase_bar_figure,
    pollutant_description,
    scatter_figure,
    time_series_figure,
)
from src.transit_aq.cli import app
from src.transit_aq.config import TransitAQConfig
from src.transit_aq.regions import City, Pollutant
from src.transit_aq.store import build_store
from src.transit_aq.tasks import ingest_openaq, run_full_pipeline, summarize_pair, summarize_store


@pytest.mark.smoke
class TestSummary:
    def test_sparse_pair(self, input_config):
        store = build_store(input_config)

        row = summarize_pair(store, City.CHICAGO, Pollutant.PM25)

        assert row["unique_id"] == "chicago_pm25"
        assert row["observed_days"] == 3
        assert row["interpolated_days"] == 5
        assert row["unresolved_days"] == 2
        # mobility covers 01-03..01-10, pollutant 01-10 is unresolved
        assert row["aligned_days"] == 7
        assert -1.0 <= row["pearson_r"] <= 1.0

    def test_constant_pollutant_has_no_correlation(self, input_config):
        store = build_store(input_config)

        row = summarize_pair(store, City.SEATTLE, Pollutant.NO2)

        assert row["pearson_r"] is None
        assert row["slope"] == pytest.approx(0.0)
        assert row["intercept"] == pytest.approx(5.0)

    def test_every_pair_summarized(self, input_config):
        summary = summarize_store(build_store(input_config))

        assert len(summary) == 15
        assert summary["unique_id"].is_unique


@pytest.mark.smoke
class TestCharts:
    def test_time_series_has_both_signals(self, input_config):
        store = build_store(input_config)

        fig = time_series_figure(store, City.CHICAGO, Pollutant.PM25, "2020-01-02", "2020-01-08")

        assert len(fig.data) == 2
        assert len(fig.data[0].x) == 7
        assert fig.data[1].yaxis == "y2"

    def test_constant_series_not_plotted(self, input_config):
        store = build_store(input_config)

        fig = time_series_figure(store, City.CHICAGO, Pollutant.NO2)

        assert len(fig.data) == 1
        assert "Transit" in fig.data[0].name

    def test_phase_bars(self, input_config):
        store = build_store(input_config)

        fig = phase_bar_figure(store, City.LOS_ANGELES, Pollutant.SO2)

        assert list(fig.data[0].x) == ["Pre-Lockdown", "Lockdown", "Post-Lockdown"]
        assert fig.data[0].y[0] == pytest.approx(0.55)
        assert pd.isna(fig.data[0].y[1])

    def test_scatter_with_trend(self, input_config):
        store = build_store(input_config)

        fig = scatter_figure(store, City.MIAMI, Pollutant.SO2)

        assert [trace.name for trace in fig.data] == ["Daily reading", "Trend"]
        assert fig.layout.annotations[0].text.startswith("r = -1.00")

    def test_scatter_degenerate(self, input_config):
        store = build_store(input_config)

        fig = scatter_figure(store, City.MIAMI, Pollutant.NO2)

        assert fig.layout.annotations[0].text.startswith("r = n/a")

    def test_description(self):
        assert pollutant_description(Pollutant.SO2).startswith("SO2:")


@pytest.mark.smoke
class TestRunPipeline:
    def test_export_writes_artifacts(self, input_config):
        results = run_full_pipeline(input_config, export=True)

        assert results["n_series"] == 15
        assert results["series"] == str(input_config.series_path())
        assert input_config.series_path().exists()
        assert input_config.mobility_series_path().exists()

        series = pd.read_parquet(input_config.series_path())
        assert len(series) == 15 * 10
        assert set(series.columns) == {"unique_id", "ds", "y", "reading_count", "interpolated"}

        with open(input_config.summary_path(), encoding="utf-8") as f:
            summary = json.load(f)
        assert summary["start_date"] == "2020-01-01"
        assert len(summary["pairs"]) == 15

        charts = list((input_config.artifacts_path() / "charts").glob("*.html"))
        assert len(charts) == 45
        assert input_config.chart_path(City.CHICAGO, Pollutant.PM25, "scatter").exists()

    def test_cli_run(self, input_config):
        runner = CliRunner()

        result = runner.invoke(
            app,
            ["run", "--data-dir", input_config.data_dir, "--artifacts-dir", input_config.artifacts_dir],
        )

        assert result.exit_code == 0, result.output
        assert "Pipeline Results" in result.output
        assert "n_series" in result.output

    def test_cli_run_nearest_boundary(self, input_config):
        runner = CliRunner()

        result = runner.invoke(
            app,
            [
                "run",
                "--data-dir", input_config.data_dir,
                "--artifacts-dir", input_config.artifacts_dir,
                "--boundary-fill", "nearest",
            ],
        )

        assert result.exit_code == 0, result.output

    @pytest.mark.fail_loud
    def test_cli_rejects_unknown_boundary_fill(self, input_config):
        runner = CliRunner()

        result = runner.invoke(
            app,
            ["run", "--data-dir", input_config.data_dir, "--boundary-fill", "zero"],
        )

        # usage error, raised before any data is loaded
        assert result.exit_code == 2
        assert result.exception is None or isinstance(result.exception, SystemExit)


class TestIngest:
    def test_writes_payload_then_skips(self, tmp_path, pollutant_payload):
        cfg = TransitAQConfig(data_dir=str(tmp_path / "data"))

        with patch("src.transit_aq.tasks.build_pollutant_payload", return_value=pollutant_payload) as build:
            first = ingest_openaq(cfg)
            second = ingest_openaq(cfg)

        assert first == second == str(cfg.pollutant_path())
        assert build.call_count == 1
        with open(cfg.pollutant_path(), encoding="utf-8") as f:
            assert json.load(f) == pollutant_payload
