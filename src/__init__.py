"""
Transit vs Air Quality - 2020 lockdown comparison for five US metros

Modules:
- transit_aq: OpenAQ + Google mobility ingestion, daily series reconciliation,
  statistics, plotly charts, Typer CLI and Streamlit dashboard
"""
