"""
Date/time formatting utilities.
"""

from datetime import datetime
from typing import Any


def _to_timestamp_str(value: Any) -> Any:
    """Render driver datetimes as strings; SQLite already returns text."""
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return value


def _now_display_str() -> str:
    """Local time for report footers."""
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")
