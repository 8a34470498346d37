"""
Transit activity vs air quality (2020, five US metros).

Modules:
- regions: cities, pollutants, county/metro lookups, lockdown phases
- config: pipeline configuration and paths
- openaq: OpenAQ ingestion + measurement normalization
- mobility: Google mobility report normalization
- series: daily aggregation, gap filling, interpolation
- align: pollutant/transit date alignment
- stats: normalization, regression, correlation, phase averages
- store: immutable session data store
- charts: plotly figures
- tasks: pipeline orchestration
"""
