"""Prompts sent to the completion service."""

from __future__ import annotations

import json
from typing import Any

# Keep the operation list in sync with ``src.calendar_query.executor.Operation``.
CLASSIFIER_PROMPT = """You are a calendar assistant. Based on the user's message, determine which calendar query should be run.

Available operations:
1. "TodayEvents" - Get events for today only
2. "WeekEvents" - Get events for the entire current week (Sunday to Saturday)
3. "UpcomingEvents" - Get upcoming events (future events, good for next few days or general future queries)
4. "PastEvents" - Get past events (for questions about what happened, previous meetings, etc.)

User message: "{message}"

Respond with ONLY the operation name (TodayEvents, WeekEvents, UpcomingEvents, or PastEvents). No explanation needed.

Examples:
- "What's my schedule today?" → TodayEvents
- "What are my plans for this week?" → WeekEvents
- "Do I have anything coming up?" → UpcomingEvents
- "What's on my calendar tomorrow?" → UpcomingEvents
- "Weekly schedule" → WeekEvents
- "What meetings did I have yesterday?" → PastEvents
- "Show me last week's events" → PastEvents
- "What did I do on Monday?" → PastEvents
- "Any events this afternoon?" → TodayEvents
- "Free time next week?" → UpcomingEvents
"""

SYNTHESIS_PROMPT_TEMPLATE = """The user is asking about their calendar. Here is their calendar data in JSON format:

{calendar_data}

Please analyze this calendar data and provide a helpful, natural response to the user's query. \
Format your response clearly with proper structure (bullet points, headings, etc.) and include \
relevant details like event names, times, locations, and descriptions. \
If there are no events, let the user know in a friendly way."""


def get_classifier_prompt(message: str) -> str:
    """Return the classification prompt with *message* embedded verbatim."""
    return CLASSIFIER_PROMPT.format(message=message)


def get_synthesis_prompt(calendar_data: dict[str, Any]) -> str:
    """Return the system instruction embedding *calendar_data* as JSON."""
    return SYNTHESIS_PROMPT_TEMPLATE.format(
        calendar_data=json.dumps(calendar_data, indent=2, default=str),
    )
