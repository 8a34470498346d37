"""
Transit vs Air Quality Test Suite

Tests organized by module under tests/transit_aq/:
- test_series.py — aggregation, gap filling, interpolation, validation
- test_openaq.py — measurement normalization, payload parsing, fetch loop
- test_mobility.py — county mapping and mobility normalization
- test_align.py — inner-join alignment
- test_stats.py — normalization, regression, correlation (degenerate inputs)
- test_store.py — fail-fast store initialization
- test_pipeline.py — smoke test (synthetic files -> charts -> export)
"""
