"""Run one of the fixed calendar operations against the provider.

``Operation`` is a closed set.  Adding a member means touching three places
together: the enum below, the ``match`` in ``CalendarQueryExecutor.execute``
and the operation list in ``src.prompts.CLASSIFIER_PROMPT``.
``tests/test_executor.py`` and ``tests/test_classifier.py`` fail if they drift.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import Any, assert_never

from src.calendar_query.models import CalendarEvent, CalendarQueryResult
from src.calendar_query.windows import (
    DEFAULT_DAYS_BACK,
    format_day,
    past_window,
    today_window,
    week_window,
)
from src.services.google_calendar import GoogleCalendarClient

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 10


class Operation(StrEnum):
    """The calendar queries the gateway knows how to run."""

    TODAY_EVENTS = "TodayEvents"
    WEEK_EVENTS = "WeekEvents"
    UPCOMING_EVENTS = "UpcomingEvents"
    PAST_EVENTS = "PastEvents"


@dataclass(frozen=True)
class QueryParams:
    """Caller-tunable knobs; only Upcoming and Past honour them."""

    max_results: int | None = None
    days_back: int | None = None

    @classmethod
    def from_context(cls, context: dict[str, Any] | None) -> QueryParams:
        context = context or {}
        return cls(
            max_results=context.get("max_results"),
            days_back=context.get("days_back"),
        )


def _start_key(event: CalendarEvent) -> datetime:
    """Sort key that puts all-day dates and timed events on one timeline."""
    parsed = datetime.fromisoformat(event.start)
    if parsed.tzinfo is None:
        # All-day ``YYYY-MM-DD``: local midnight
        parsed = parsed.astimezone()
    return parsed


def normalize_events(items: list[dict[str, Any]]) -> list[CalendarEvent]:
    """Convert provider records to ``CalendarEvent`` ordered by start ascending."""
    events = [CalendarEvent.from_provider(item) for item in items]
    try:
        return sorted(events, key=_start_key)
    except ValueError:
        logger.warning("Unparseable event start; keeping provider order")
        return events


class CalendarQueryExecutor:
    """Resolve an operation to a window, fetch once, normalize."""

    def __init__(self, client: GoogleCalendarClient):
        self._client = client

    def execute(
        self,
        credential: str,
        operation: Operation,
        params: QueryParams | None = None,
        *,
        now: datetime | None = None,
    ) -> CalendarQueryResult:
        """Run *operation* for the owner of *credential*.

        Raises:
            InvalidArgumentError: ``params.days_back`` is not a positive int.
            AuthError: the provider rejected the credential.
            UpstreamError: any other provider failure.
        """
        params = params or QueryParams()
        logger.debug("Executing %s with %s", operation, params)

        match operation:
            case Operation.TODAY_EVENTS:
                return self._today(credential, now)
            case Operation.WEEK_EVENTS:
                return self._week(credential, now)
            case Operation.UPCOMING_EVENTS:
                return self._upcoming(credential, params, now)
            case Operation.PAST_EVENTS:
                return self._past(credential, params, now)
            case _:
                assert_never(operation)

    # ── Operations ───────────────────────────────────────────────────

    def _today(self, credential: str, now: datetime | None) -> CalendarQueryResult:
        window = today_window(now)
        items = self._client.list_events(
            credential, time_min=window.start, time_max=window.end,
        )
        date = format_day(window.start)
        if not items:
            return CalendarQueryResult(message="No events found for today.", date=date)
        return CalendarQueryResult(date=date, events=normalize_events(items))

    def _week(self, credential: str, now: datetime | None) -> CalendarQueryResult:
        window = week_window(now)
        items = self._client.list_events(
            credential, time_min=window.start, time_max=window.end,
        )
        bounds = {
            "week_start": format_day(window.start),
            "week_end": format_day(window.end),
        }
        if not items:
            return CalendarQueryResult(message="No events found for this week.", **bounds)
        return CalendarQueryResult(events=normalize_events(items), **bounds)

    def _upcoming(
        self, credential: str, params: QueryParams, now: datetime | None,
    ) -> CalendarQueryResult:
        start = now if now is not None else datetime.now().astimezone()
        items = self._client.list_events(
            credential,
            time_min=start,
            max_results=params.max_results or DEFAULT_MAX_RESULTS,
        )
        if not items:
            return CalendarQueryResult(message="No upcoming events found.")
        return CalendarQueryResult(events=normalize_events(items))

    def _past(
        self, credential: str, params: QueryParams, now: datetime | None,
    ) -> CalendarQueryResult:
        days_back = DEFAULT_DAYS_BACK if params.days_back is None else params.days_back
        window = past_window(days_back, now)
        items = self._client.list_events(
            credential,
            time_min=window.start,
            time_max=window.end,
            max_results=params.max_results or DEFAULT_MAX_RESULTS,
        )
        bounds = {
            "period_start": format_day(window.start),
            "period_end": format_day(window.end),
        }
        if not items:
            return CalendarQueryResult(
                message=f"No events found in the past {days_back} days.", **bounds,
            )
        return CalendarQueryResult(
            days_back=days_back, events=normalize_events(items), **bounds,
        )
