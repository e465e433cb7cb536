"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Conversation forwarded verbatim to the completion service."""

    messages: list[ChatMessage] = Field(..., min_length=1)


class ChatResponse(BaseModel):
    """Assistant text, shared by ``/chat`` and ``/calendar/query``."""

    response: str = Field(..., description="The model's reply")


class QueryContext(BaseModel):
    """Optional knobs for UpcomingEvents / PastEvents."""

    max_results: int | None = Field(default=None, ge=1, le=2500)
    days_back: int | None = None


class CalendarQueryRequest(BaseModel):
    """Free-text calendar question from the frontend."""

    query: str = Field(..., min_length=1, max_length=2000, description="The user's question")
    context: QueryContext = Field(default_factory=QueryContext)
    access_token: str | None = Field(
        default=None,
        description="Google access token when not sent as a Bearer header",
    )


class TokenExchangeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    redirect_uri: str | None = None


class TokenRefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str = "Bearer"
    scope: str | None = None


class AuthUrlResponse(BaseModel):
    auth_url: str
    client_id: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "calendar-gateway"
