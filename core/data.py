from __future__ import annotations

import csv
import io
import logging
import warnings
from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, Mapping, Optional, Union

import numpy as np
import pandas as pd
import requests

from core.config import get_settings

logger = logging.getLogger(__name__)

TEXT_COLUMNS = ["date", "user_type", "department"]
NUMERIC_COLUMNS = ["pages_per_sheet", "total_pages", "copies", "sheet_used"]
RECORD_COLUMNS = ["date", "user_type", "department", "pages_per_sheet", "total_pages", "copies", "sheet_used"]
# Fill values for count columns absent from the header.
COLUMN_DEFAULTS = {"pages_per_sheet": 1}
_INT64_LIMIT = float(2**63)


class DataSourceError(RuntimeError):
    """Raised when the record source cannot be fetched or read."""


@dataclass(frozen=True)
class PaperRecord:
    date: str = ""
    user_type: str = ""
    department: str = ""
    pages_per_sheet: int = 1
    total_pages: int = 0
    copies: int = 0
    sheet_used: int = 0


def empty_records() -> pd.DataFrame:
    frame = pd.DataFrame({c: pd.Series(dtype=object) for c in TEXT_COLUMNS})
    for c in NUMERIC_COLUMNS:
        frame[c] = pd.Series(dtype="int64")
    return frame[RECORD_COLUMNS]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    """Strip grouping commas and coerce to int64; malformed or out-of-range values become 0."""
    for col in cols:
        if col not in df.columns:
            df[col] = COLUMN_DEFAULTS.get(col, 0)
            continue
        cleaned = df[col].fillna("").astype(str).str.replace(",", "", regex=False).str.strip()
        values = pd.to_numeric(cleaned, errors="coerce").astype(float)
        values = values.replace([np.inf, -np.inf], np.nan).fillna(0)
        values = values.where(values.abs() < _INT64_LIMIT, 0)
        df[col] = values.astype("int64")
    return df


def coerce_str_safe(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col not in df.columns:
            df[col] = ""
            continue
        df[col] = df[col].fillna("").astype(str).str.strip()
    return df


def _coerce_frame(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return empty_records()
    df = coerce_str_safe(df, TEXT_COLUMNS)
    df = numericize(df, NUMERIC_COLUMNS)
    return df[RECORD_COLUMNS].reset_index(drop=True)


def _read_delimited(text: str, delimiter: str, quoting: int = csv.QUOTE_MINIMAL) -> pd.DataFrame:
    with warnings.catch_warnings():
        # Surplus trailing fields are dropped on purpose; pandas warns about each such row.
        warnings.simplefilter("ignore", pd.errors.ParserWarning)
        return pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            quoting=quoting,
            # Surplus trailing fields are dropped instead of shifting into the index.
            index_col=False,
            engine="python",
        )


def parse_records(text: str, delimiter: str = ",") -> pd.DataFrame:
    """Parse a delimited blob whose first line names the columns."""
    if not (text or "").strip():
        return empty_records()

    try:
        df = _read_delimited(text, delimiter)
    except pd.errors.ParserError as exc:
        # Unbalanced quotes swallow the rest of the file; reparse with quotes as plain text.
        logger.warning("Quoted CSV parse failed (%s); retrying without quote handling", exc)
        try:
            df = _read_delimited(text, delimiter, quoting=csv.QUOTE_NONE)
        except pd.errors.ParserError as retry_exc:
            raise DataSourceError(f"Failed to parse data: {retry_exc}") from retry_exc
        df = df.apply(lambda s: s.str.strip().str.strip('"'))
    df.columns = [str(c).replace("\ufeff", "").strip().strip('"').strip().lower() for c in df.columns]
    df = df.loc[:, ~df.columns.duplicated()]
    blank = (df.fillna("").astype(str).apply(lambda s: s.str.strip()) == "").all(axis=1)
    df = df[~blank]
    if df.empty:
        return empty_records()
    return _coerce_frame(df)


def records_frame(records: Iterable[Union[PaperRecord, Mapping[str, object]]]) -> pd.DataFrame:
    rows = [asdict(r) if isinstance(r, PaperRecord) else dict(r) for r in records]
    if not rows:
        return empty_records()
    return _coerce_frame(pd.DataFrame(rows))


def iter_records(frame: pd.DataFrame) -> Iterator[PaperRecord]:
    for row in frame[RECORD_COLUMNS].itertuples(index=False):
        yield PaperRecord(
            date=str(row.date),
            user_type=str(row.user_type),
            department=str(row.department),
            pages_per_sheet=int(row.pages_per_sheet),
            total_pages=int(row.total_pages),
            copies=int(row.copies),
            sheet_used=int(row.sheet_used),
        )


def fetch_csv_text(source: str, timeout: Optional[int] = None) -> str:
    """Read raw CSV text from an http(s) URL or a local path."""
    if source.startswith(("http://", "https://")):
        timeout = timeout or get_settings().fetch_timeout
        try:
            response = requests.get(source, timeout=timeout)
        except requests.RequestException as exc:
            raise DataSourceError(f"Failed to fetch data: {exc}") from exc
        if not response.ok:
            raise DataSourceError(f"Failed to fetch data: {response.status_code} {response.reason}")
        return response.content.decode("utf-8-sig", errors="replace")

    path = Path(source).expanduser()
    try:
        return path.read_text(encoding="utf-8-sig")
    except OSError as exc:
        raise DataSourceError(f"Failed to read data file {path}: {exc}") from exc


@lru_cache(maxsize=4)
def _load_records_cached(source: str) -> pd.DataFrame:
    frame = parse_records(fetch_csv_text(source))
    logger.info("Loaded %d paper records from %s", len(frame), source)
    return frame


def load_records(source: Optional[str] = None) -> pd.DataFrame:
    """Load the session snapshot once per source; later calls hit the cache."""
    return _load_records_cached(source or get_settings().data_url)


def clear_records_cache() -> None:
    _load_records_cached.cache_clear()


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_number(value: object, decimals: int = 0) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):,.{decimals}f}"


def format_currency(value: object, currency: str = "THB") -> str:
    if value is None or pd.isna(value):
        return "N/A"
    return f"{float(value):,.0f} {currency}"
