"""Core (UI-agnostic) paper-usage analytics.

This package contains:
- data loading (CSV -> pandas) and date normalization
- record filters
- aggregation functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- CSV export and the AI insight client
"""
