"""Shared test fixtures for the calendar gateway test suite."""

from __future__ import annotations

import os
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py won't fail on module load.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("METRICS_ENABLED", "false")


@pytest.fixture
def mock_http_response():
    """Factory fixture for creating mock httpx responses."""

    def _make(data: dict | None, status_code: int = 200, text: str | None = None):
        mock = MagicMock()
        mock.status_code = status_code
        if data is None:
            mock.json.side_effect = ValueError("not JSON")
        else:
            mock.json.return_value = data
        mock.text = text if text is not None else str(data)
        return mock

    return _make


@pytest.fixture
def make_llm():
    """Factory fixture for a chat-model double answering with fixed text."""

    def _make(content: str | list = "", error: Exception | None = None):
        llm = MagicMock()
        if error is not None:
            llm.invoke.side_effect = error
        else:
            llm.invoke.return_value = AIMessage(content=content)
        return llm

    return _make


@pytest.fixture
def provider_event():
    """Factory for raw Google Calendar event resources."""

    def _make(
        summary: str = "Standup",
        start: str = "2026-10-19T09:00:00+02:00",
        end: str = "2026-10-19T09:15:00+02:00",
        *,
        all_day: bool = False,
        **extra,
    ) -> dict:
        key = "date" if all_day else "dateTime"
        event = {
            "summary": summary,
            "start": {key: start},
            "end": {key: end},
            "htmlLink": f"https://www.google.com/calendar/event?eid={summary.lower()}",
        }
        event.update(extra)
        return event

    return _make
