"""Calendar helpers shared by row normalization and the SQL day projection.

A stored timestamp belongs to the day it falls on in the configured
timezone. Offset-bearing values are converted into that zone; naive values
are taken as already local.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo


def coerce_datetime(value: Any, tz: Optional[ZoneInfo] = None) -> Optional[datetime]:
    """Normalize driver values (datetime, date, ISO text) to naive local datetimes."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif hasattr(value, "year") and hasattr(value, "month") and hasattr(value, "day"):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace("T", " ").replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        if tz is not None:
            parsed = parsed.astimezone(tz)
        parsed = parsed.replace(tzinfo=None)
    return parsed


def local_day(value: Any, tz: Optional[ZoneInfo] = None) -> Optional[str]:
    """ISO calendar day of ``value`` in ``tz``; NULL for unparseable input like SQL ``date()``."""
    try:
        parsed = coerce_datetime(value, tz)
    except ValueError:
        return None
    return parsed.date().isoformat() if parsed is not None else None
