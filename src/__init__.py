"""Calendar Gateway: a thin HTTP bridge between a chat frontend, Google
Calendar and an LLM.

Architecture Overview
=====================

Every request is a stateless, single pass.  For free-text questions the
flow is a **LangGraph** pipeline with three nodes:

1. **classify**: a low-temperature LLM call maps the question to one of four
   fixed operations (TodayEvents, WeekEvents, UpcomingEvents, PastEvents).
   Any invalid answer or service failure falls back to TodayEvents.

2. **fetch**: one ``events.list`` call against the caller's primary Google
   Calendar, bounded by a computed time window, normalized into a uniform
   event shape.

3. **respond**: the LLM phrases an answer from the normalized events.

Key Design Decisions
--------------------
- **Credentials**: the Google access token arrives with each request and is
  never stored; the calendar client is shared but credential-free.
- **Failures**: classification degrades silently (logged + metric); calendar
  and synthesis failures surface as ``AuthError`` / ``UpstreamError`` and map
  to 401 / 502.  No retries anywhere.
- **Dependency injection**: chat models and the calendar client are built in
  the FastAPI lifespan and passed into each component.

Package Structure
-----------------
- ``src/agent.py``: LangGraph pipeline definition
- ``src/config.py``: Centralized configuration from environment variables
- ``src/errors.py``: Error taxonomy
- ``src/prompts.py``: Classification prompt and synthesis instruction
- ``src/server.py``: FastAPI application
- ``src/main.py``: CLI question loop
- ``src/calendar_query/``: Time windows, event models, query executor
- ``src/assistant/``: Classifier, synthesizer, chat pass-through
- ``src/services/``: External API clients (Google Calendar, Google OAuth) and metrics
- ``src/api/``: FastAPI routes, dependencies and Pydantic schemas
"""
