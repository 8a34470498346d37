# file: src/transit_aq/dashboard.py
"""Streamlit page comparing pollutant levels with transit activity.

Provides:
- City / pollutant selectors and a date window
- Normalized dual-axis time series
- Lockdown phase averages
- Transit vs pollutant scatter with OLS trend and Pearson r

Run with:
    streamlit run src/transit_aq/dashboard.py
"""

import sys
from datetime import date
from pathlib import Path

import streamlit as st

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.transit_aq.charts import (
    phase_bar_figure,
    pollutant_description,
    scatter_figure,
    time_series_figure,
)
from src.transit_aq.config import TransitAQConfig
from src.transit_aq.regions import CITIES, POLLUTANTS, City, Pollutant
from src.transit_aq.store import DataLoadError, DataStore, build_store

# Page config
st.set_page_config(
    page_title="Transit vs Air Quality 2020",
    page_icon="🚇",
    layout="wide",
)


@st.cache_resource
def load_store(data_dir: str, boundary_fill: str) -> DataStore:
    """Built once per session; every chart reads the same store."""
    return build_store(TransitAQConfig(data_dir=data_dir, boundary_fill=boundary_fill))


def main():
    st.title("🚇 Transit Activity vs Air Quality (2020)")

    with st.sidebar:
        st.header("Configuration")
        data_dir = st.text_input("Data Directory", value="data")
        boundary_fill = st.selectbox("Boundary gaps", options=["none", "nearest"], index=0)

        city = st.selectbox(
            "City",
            options=list(City),
            format_func=lambda c: CITIES[c].name,
        )
        pollutant = st.selectbox(
            "Pollutant",
            options=list(Pollutant),
            format_func=lambda p: POLLUTANTS[p].label,
        )

    try:
        store = load_store(data_dir, boundary_fill)
    except DataLoadError as exc:
        st.error(f"Could not load data: {exc}")
        return

    col_start, col_end = st.columns(2)
    start = col_start.date_input("Start date", value=date.fromisoformat(store.start_date))
    end = col_end.date_input("End date", value=date.fromisoformat(store.end_date))
    if start > end:
        st.warning("Start date is after end date")
        return

    st.markdown(pollutant_description(pollutant))

    st.plotly_chart(
        time_series_figure(store, city, pollutant, start.isoformat(), end.isoformat()),
        width="stretch",
    )

    left, right = st.columns(2)
    with left:
        st.plotly_chart(phase_bar_figure(store, city, pollutant), width="stretch")
    with right:
        st.plotly_chart(scatter_figure(store, city, pollutant), width="stretch")

    with st.expander("View Data"):
        st.dataframe(store.merged(city, pollutant), width="stretch")


if __name__ == "__main__":
    main()
