"""Core (UI-agnostic) service dashboard logic.

This package contains:
- settings normalization and the theme resolver
- the fetch boundary (backend -> record collections)
- pure aggregations (distributions, day-bucketed trends)
- chart helpers (Altair -> Vega-Lite spec dict) and the paginated table contract
- page compute functions (JSON-serializable payloads) and their polling
"""
