from __future__ import annotations

from datetime import date
from typing import Optional

import pandas as pd

from core.data import RECORD_COLUMNS

EXPORT_PREFIX = "EcoPrint_Report"


def records_to_csv(frame: pd.DataFrame, delimiter: str = ",") -> str:
    """Serialize records as delimited text; values holding the delimiter are quoted.

    An empty frame yields ``""`` so callers can skip the download entirely.
    """
    if frame is None or frame.empty:
        return ""
    return frame[RECORD_COLUMNS].to_csv(index=False, sep=delimiter, lineterminator="\n")


def export_filename(today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{EXPORT_PREFIX}_{today.isoformat()}.csv"
