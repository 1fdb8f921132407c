"""
Audit timestamp helpers.

The write connection's ``timezone`` setting decides the zone the
``created_at``/``updated_at`` columns are stamped in. Both UTC offsets
(``+03:00``, ``-0530``, ``Z``) and IANA names (``America/Sao_Paulo``) are
accepted; anything else is a ``ClockError``.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from recordmodel.exceptions import ClockError

DEFAULT_TIMEZONE = "+00:00"

_OFFSET_RE = re.compile(r"^(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})$")


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """
    Turn a configured timezone string into a ``tzinfo``.

    Raises
    ------
    ClockError
        If the value is neither a valid UTC offset nor a known zone name.
    """
    if name is None or name == "":
        name = DEFAULT_TIMEZONE
    if name in ("Z", "UTC"):
        return timezone.utc

    match = _OFFSET_RE.match(name)
    if match:
        hours = int(match["hours"])
        minutes = int(match["minutes"])
        if hours > 23 or minutes > 59:
            raise ClockError(name, f"Timezone offset '{name}' is out of range")
        delta = timedelta(hours=hours, minutes=minutes)
        return timezone(-delta if match["sign"] == "-" else delta)

    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ClockError(name) from exc


def now(datetime_format: str, tz_name: Optional[str] = None) -> str:
    """Return the current instant in ``tz_name`` formatted with ``datetime_format``."""
    return datetime.now(resolve_timezone(tz_name)).strftime(datetime_format)


__all__ = ["DEFAULT_TIMEZONE", "now", "resolve_timezone"]
