from __future__ import annotations

import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

Clock = Callable[[], datetime]

_FRESH_MARKERS = ("today", "just posted", "active")
_DAYS_PATTERN = re.compile(r"(\d+)\s*day")
_HOURS_PATTERN = re.compile(r"(\d+)\s*hour")


def utc_now() -> datetime:
    return datetime.now(UTC)


def resolve_relative_date(text: str, *, now: datetime) -> datetime:
    """Turn phrases like "Posted 3 days ago" into an absolute timestamp.

    Unrecognised text resolves to ``now``.
    """
    lowered = (text or "").lower()

    if any(marker in lowered for marker in _FRESH_MARKERS):
        return now

    days = _DAYS_PATTERN.search(lowered)
    if days:
        return now - timedelta(days=int(days.group(1)))

    hours = _HOURS_PATTERN.search(lowered)
    if hours:
        return now - timedelta(hours=int(hours.group(1)))

    return now
