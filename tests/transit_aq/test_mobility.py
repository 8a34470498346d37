"""Mobility report normalization tests."""

import pandas as pd
import pytest

from src.transit_aq.mobility import (
    TRANSIT_COL,
    normalize_mobility,
    prepare_mobility,
    read_mobility_csv,
)
from src.transit_aq.regions import City, city_from_county, city_from_metro


class TestCountyMapping:
    """Each tracked (state, county) pair maps to exactly one city"""

    def test_known_pairs(self):
        assert city_from_county("Illinois", "Cook County") == City.CHICAGO
        assert city_from_county("Florida", "Miami-Dade County") == City.MIAMI
        assert city_from_metro("Seattle-Tacoma-Bellevue") == City.SEATTLE

    def test_same_county_name_other_state(self):
        """Cook County, Georgia is not Chicago"""
        assert city_from_county("Georgia", "Cook County") is None

    def test_blank_cells(self):
        assert city_from_county("Illinois", float("nan")) is None
        assert city_from_county(pd.NA, "Cook County") is None


class TestNormalizeMobility:
    def test_keeps_only_tracked_counties(self, mobility_frame):
        out = normalize_mobility(mobility_frame)

        assert set(out["city"]) == set(City)
        assert len(out) == len(City) * 10
        assert list(out.columns) == ["city", "ds", "y"]

    def test_unmapped_rows_contribute_nothing(self):
        """Re-running on rows with no tracked county yields empty output, not an error"""
        df = pd.DataFrame({
            "date": ["2020-04-01", "2020-04-02"],
            "sub_region_1": ["Georgia", "Texas"],
            "sub_region_2": ["Cook County", "Harris County"],
            TRANSIT_COL: [-40.0, -35.0],
        })

        out = normalize_mobility(df)

        assert out.empty
        assert prepare_mobility(out)[City.CHICAGO].empty

    def test_blank_transit_dropped_not_zero(self):
        df = pd.DataFrame({
            "date": ["2020-04-01", "2020-04-02"],
            "sub_region_1": ["Washington", "Washington"],
            "sub_region_2": ["King County", "King County"],
            TRANSIT_COL: [None, -35.0],
        })

        out = normalize_mobility(df)

        assert len(out) == 1
        assert out["y"].iloc[0] == -35.0

    def test_empty(self):
        out = normalize_mobility(pd.DataFrame(columns=["date", "sub_region_1", "sub_region_2", TRANSIT_COL]))

        assert out.empty


class TestPrepareMobility:
    def test_sorted_deduped_per_city(self):
        normalized = pd.DataFrame({
            "city": [City.MIAMI, City.MIAMI, City.MIAMI, City.CHICAGO],
            "ds": pd.to_datetime(["2020-04-03", "2020-04-01", "2020-04-03", "2020-04-01"]),
            "y": [-20.0, -10.0, -30.0, 5.0],
        })

        out = prepare_mobility(normalized)

        miami = out[City.MIAMI]
        assert list(miami.columns) == ["unique_id", "ds", "y"]
        assert list(miami["ds"]) == [pd.Timestamp("2020-04-01"), pd.Timestamp("2020-04-03")]
        assert list(miami["y"]) == [-10.0, -25.0]
        assert (miami["unique_id"] == "miami_transit").all()
        assert set(out) == set(City)
        assert out[City.SEATTLE].empty

    def test_window_applied(self, mobility_frame):
        out = prepare_mobility(normalize_mobility(mobility_frame), "2020-01-01", "2020-01-10")

        for series in out.values():
            assert series["ds"].max() == pd.Timestamp("2020-01-10")
            assert len(series) == 8


@pytest.mark.fail_loud
class TestReadMobilityCsv:
    def test_reads_required_columns(self, tmp_path, mobility_frame):
        path = tmp_path / "mobility.csv"
        mobility_frame.to_csv(path, index=False)

        df = read_mobility_csv(path)

        assert set(df.columns) == {"date", "sub_region_1", "sub_region_2", TRANSIT_COL}
        assert len(df) == len(mobility_frame)

    def test_missing_column_raises(self, tmp_path, mobility_frame):
        path = tmp_path / "mobility.csv"
        mobility_frame.drop(columns=[TRANSIT_COL]).to_csv(path, index=False)

        with pytest.raises(ValueError, match=TRANSIT_COL):
            read_mobility_csv(path)
