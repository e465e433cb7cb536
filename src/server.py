"""FastAPI server for the calendar gateway.

Run with:
    uv run uvicorn src.server:app --reload --host 0.0.0.0 --port 3001
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from src.agent import create_calendar_agent
from src.api.routes import router
from src.assistant.classifier import IntentClassifier
from src.assistant.llm import build_chat_llm
from src.assistant.synthesizer import ResponseSynthesizer
from src.calendar_query.executor import CalendarQueryExecutor
from src.config import CORS_ORIGINS, MODEL_NAME, SERVER_HOST, SERVER_PORT
from src.services.google_calendar import GoogleCalendarClient
from src.services.google_oauth import GoogleOAuthClient

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Build the clients and the pipeline once and store them in app state.

    None of these hold per-user state: the caller's access token is passed
    into every calendar call.
    """
    calendar_client = GoogleCalendarClient()
    oauth = GoogleOAuthClient()
    try:
        chat_llm = build_chat_llm()
        executor = CalendarQueryExecutor(calendar_client)

        application.state.chat_llm = chat_llm
        application.state.executor = executor
        application.state.oauth = oauth
        application.state.agent = create_calendar_agent(
            IntentClassifier(),
            executor,
            ResponseSynthesizer(chat_llm),
        )
        logger.info("Calendar gateway ready (model: %s).", MODEL_NAME)
        yield
    finally:
        calendar_client.close()
        oauth.close()


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Calendar Gateway",
    description=(
        "Bridges a chat frontend to Google Calendar and an LLM: "
        "fetch events and ask questions about your schedule."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS (needed for the chat frontend) ─────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation.

    The ID is echoed in the ``X-Request-ID`` response header and prefixed to
    the route log lines for this request.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info(
        "[%s] %s %s", request_id, request.method, request.url.path,
    )
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Calendar Gateway",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


# ── CLI entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    logger.info("Starting calendar gateway on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "src.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
