"""Exception taxonomy shared by the calendar and completion integrations.

Calendar-fetch and synthesis failures propagate to the HTTP layer as one of
these types so the routes can tell "please re-authenticate" apart from a
generic upstream failure.
"""

from __future__ import annotations


class CalendarGatewayError(Exception):
    """Base class for every error raised by this package."""


class InvalidArgumentError(CalendarGatewayError):
    """Malformed caller input (e.g. a non-positive ``days_back``)."""


class AuthError(CalendarGatewayError):
    """The calendar or OAuth provider rejected the credential."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class UpstreamError(CalendarGatewayError):
    """Any other failure talking to the calendar provider or the LLM."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)
