"""Normalize free-form record dates into calendar dates.

Precedence is fixed: a string that parses as ISO 8601 is always read as ISO,
and slash/dash numeric forms are always read day-first (``D/M/YYYY``).
"""

from __future__ import annotations

import re
import warnings
from datetime import date, datetime
from typing import Optional

import pandas as pd

_DMY_RE = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{4})$")
_MONTH_NAME_RE = re.compile(r"[A-Za-z]{3,}")
_YEAR_RE = re.compile(r"\d{4}")


def _parse_iso(value: str) -> Optional[date]:
    ts = pd.to_datetime(value, format="ISO8601", errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date()


def _parse_textual(value: str) -> Optional[date]:
    # Only "15 Jan 2024" style strings; bare weekday names would resolve relative to today.
    if not (_MONTH_NAME_RE.search(value) and _YEAR_RE.search(value)):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            ts = pd.to_datetime(value, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if pd.isna(ts):
        return None
    return ts.date()


def parse_date(value: object) -> Optional[date]:
    """Parse a record date; ``None`` means unparseable. Never raises."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return None
    s = str(value).strip()
    if not s:
        return None

    parsed = _parse_iso(s)
    if parsed is not None:
        return parsed

    match = _DMY_RE.match(s)
    if match:
        day, month, year = match.groups()
        return _parse_iso(f"{year}-{month.zfill(2)}-{day.zfill(2)}")

    return _parse_textual(s)


def date_key(value: object) -> Optional[str]:
    """ISO day string (``YYYY-MM-DD``) used to bucket daily trends."""
    d = parse_date(value)
    return d.isoformat() if d is not None else None


def year_key(value: object) -> Optional[str]:
    d = parse_date(value)
    return str(d.year) if d is not None else None
