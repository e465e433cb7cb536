"""Pydantic models for normalized calendar data."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CalendarEvent(BaseModel):
    """One provider event in the gateway's uniform shape.

    ``start`` / ``end`` hold the provider's RFC 3339 timestamp for timed
    events, or the bare ``YYYY-MM-DD`` date for all-day events.
    """

    model_config = ConfigDict(frozen=True)

    title: str = ""
    start: str
    end: str
    description: str = ""
    location: str = ""
    link: str = ""

    @classmethod
    def from_provider(cls, raw: dict[str, Any]) -> CalendarEvent:
        """Normalize a raw Google Calendar event resource."""
        start = raw.get("start") or {}
        end = raw.get("end") or {}
        return cls(
            title=raw.get("summary") or "",
            start=start.get("dateTime") or start.get("date") or "",
            end=end.get("dateTime") or end.get("date") or "",
            description=raw.get("description") or "",
            location=raw.get("location") or "",
            link=raw.get("htmlLink") or "",
        )


class CalendarQueryResult(BaseModel):
    """Outcome of one calendar query.

    Either ``message`` is set (no events in the window) or ``events`` holds
    the matches ordered by start time.  Period bounds are filled in where the
    operation has a bounded window.
    """

    message: str | None = None
    date: str | None = None
    week_start: str | None = None
    week_end: str | None = None
    period_start: str | None = None
    period_end: str | None = None
    days_back: int | None = None
    events: list[CalendarEvent] | None = Field(default=None)

    @property
    def is_empty(self) -> bool:
        return not self.events

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict without the unset optional fields."""
        return self.model_dump(exclude_none=True)
