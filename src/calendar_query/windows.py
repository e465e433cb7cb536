"""Time windows used to bound calendar queries.

All helpers take an optional reference instant ``now``.  When omitted, the
current local time is used as a *naive* wall-clock value, so each bound is
resolved to an instant on its own (``to_rfc3339``) and picks up the correct
UTC offset even in a week that crosses a DST change.  An aware ``now`` keeps
its tzinfo; pass a ``zoneinfo.ZoneInfo`` rather than a fixed offset to get
the same per-bound resolution for a specific zone.

Weeks start on **Sunday**.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import NamedTuple

from src.errors import InvalidArgumentError

DEFAULT_DAYS_BACK = 7


class Window(NamedTuple):
    """Closed interval ``[start, end]``."""

    start: datetime
    end: datetime


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now()


def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=23, minute=59, second=59, microsecond=0)


def today_window(now: datetime | None = None) -> Window:
    """Local midnight to 23:59:59 of the current date."""
    now = _now(now)
    return Window(_start_of_day(now), _end_of_day(now))


def week_window(now: datetime | None = None) -> Window:
    """Sunday 00:00:00 on/before ``now`` through the following Saturday 23:59:59."""
    now = _now(now)
    # weekday(): Monday=0 … Sunday=6
    days_since_sunday = (now.weekday() + 1) % 7
    start = _start_of_day(now - timedelta(days=days_since_sunday))
    end = _end_of_day(start + timedelta(days=6))
    return Window(start, end)


def past_window(days_back: int = DEFAULT_DAYS_BACK, now: datetime | None = None) -> Window:
    """``[now - days_back days, now]``.

    Raises:
        InvalidArgumentError: if ``days_back`` is not a positive integer.
    """
    if isinstance(days_back, bool) or not isinstance(days_back, int) or days_back <= 0:
        raise InvalidArgumentError(
            f"days_back must be a positive integer, got {days_back!r}"
        )
    now = _now(now)
    return Window(now - timedelta(days=days_back), now)


def format_day(dt: datetime) -> str:
    """Render a date the way the frontend displays it: ``Mon Oct 19 2026``."""
    return dt.strftime("%a %b %d %Y")
