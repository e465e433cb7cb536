"""HTTP client for the Google Calendar API v3 events endpoint.

Google Calendar API docs: https://developers.google.com/calendar/api/v3/reference/events/list
The caller's OAuth access token is passed per call as a Bearer token; the
client itself holds no credential, so one instance can serve every request.

No retries: each call is attempted exactly once.
"""

from __future__ import annotations

import logging
import time
from datetime import UTC, datetime
from typing import Any

import httpx

from src.config import CALENDAR_TIMEOUT_SECONDS, GOOGLE_CALENDAR_BASE_URL
from src.errors import AuthError, UpstreamError
from src.services.metrics import metrics

logger = logging.getLogger(__name__)

PRIMARY_CALENDAR = "primary"

# Google's structured status for a rejected / expired access token
_UNAUTHENTICATED = "UNAUTHENTICATED"


def to_rfc3339(dt: datetime) -> str:
    """Serialize *dt* as a UTC RFC 3339 timestamp (naive means local time)."""
    return dt.astimezone(UTC).isoformat(timespec="seconds").replace("+00:00", "Z")


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Return ``(message, status)`` from a Google error body.

    Google wraps failures as ``{"error": {"code", "message", "status"}}``.
    Falls back to the raw response text when the body is not JSON.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text, None

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or response.text, error.get("status")
    return response.text, None


class GoogleCalendarClient:
    """Thin wrapper around ``GET /calendars/{id}/events``."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout: float | None = None,
    ):
        self._base_url = base_url or GOOGLE_CALENDAR_BASE_URL
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=timeout or CALENDAR_TIMEOUT_SECONDS,
        )

    # ── Internal helpers ─────────────────────────────────────────────

    def _request(
        self,
        method: str,
        path: str,
        *,
        credential: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute one authenticated request and map failures to our errors."""
        operation = f"{method} {path}"
        t0 = time.perf_counter()
        try:
            response = self._client.request(
                method,
                path,
                params=params,
                headers={"Authorization": f"Bearer {credential}"},
            )
        except httpx.HTTPError as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(
                "google_calendar", operation,
                error_type=type(exc).__name__, latency_ms=elapsed,
            )
            logger.error("Calendar API transport error: %s", exc)
            raise UpstreamError(f"Calendar API request failed: {exc}") from exc

        elapsed = (time.perf_counter() - t0) * 1000
        if response.status_code >= 400:
            message, status = _error_details(response)
            metrics.record_failure(
                "google_calendar", operation,
                error_type=str(response.status_code), latency_ms=elapsed,
            )
            if response.status_code == 401 or status == _UNAUTHENTICATED:
                logger.warning("Calendar API rejected the access token: %s", message)
                raise AuthError(
                    "Access token expired or invalid",
                    status_code=response.status_code,
                )
            logger.error(
                "Calendar API error %d: %s", response.status_code, message,
            )
            raise UpstreamError(message, status_code=response.status_code)

        metrics.record_success("google_calendar", operation, latency_ms=elapsed)
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Calendar API returned a non-JSON body: %s", response.text[:200])
            raise UpstreamError(
                "Calendar API returned an unreadable response",
                status_code=response.status_code,
            ) from exc

    # ── Public API methods ───────────────────────────────────────────

    def list_events(
        self,
        credential: str,
        *,
        time_min: datetime,
        time_max: datetime | None = None,
        max_results: int | None = None,
        calendar_id: str = PRIMARY_CALENDAR,
        single_events: bool = True,
        order_by: str = "startTime",
    ) -> list[dict[str, Any]]:
        """List raw event resources between *time_min* and *time_max*.

        Args:
            credential: OAuth access token supplied by the caller.
            time_min: Lower bound (exclusive bound on event end time).
            time_max: Optional upper bound (exclusive bound on event start time).
            max_results: Optional cap on the number of events returned.
            calendar_id: Calendar identifier, ``"primary"`` by default.
            single_events: Expand recurring events into individual instances.
            order_by: ``"startTime"`` (requires ``single_events``) or ``"updated"``.

        Returns:
            The ``items`` array of the provider response (may be empty).
        """
        params: dict[str, Any] = {
            "timeMin": to_rfc3339(time_min),
            "singleEvents": "true" if single_events else "false",
            "orderBy": order_by,
        }
        if time_max is not None:
            params["timeMax"] = to_rfc3339(time_max)
        if max_results is not None:
            params["maxResults"] = max_results

        data = self._request(
            "GET",
            f"/calendars/{calendar_id}/events",
            credential=credential,
            params=params,
        )
        return data.get("items") or []

    def close(self) -> None:
        self._client.close()
