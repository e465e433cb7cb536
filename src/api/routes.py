"""FastAPI route definitions for the calendar gateway API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from src.api.dependencies import bearer_token, get_component, require_google_token, validate_token
from src.api.schemas import (
    AuthUrlResponse,
    CalendarQueryRequest,
    ChatRequest,
    ChatResponse,
    HealthResponse,
    TokenExchangeRequest,
    TokenRefreshRequest,
    TokenResponse,
)
from src.assistant.chat import complete_chat
from src.calendar_query.executor import DEFAULT_MAX_RESULTS, Operation, QueryParams
from src.calendar_query.windows import DEFAULT_DAYS_BACK
from src.errors import AuthError, InvalidArgumentError, UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter()

TOKEN_EXPIRED_DETAIL = "Token expired or invalid. Please refresh your access token."


async def _call(
    http_request: Request,
    func: Callable[..., Any],
    *args: Any,
    auth_status: int = 401,
    auth_detail: str = TOKEN_EXPIRED_DETAIL,
    upstream_detail: str = "Failed to retrieve calendar events.",
) -> Any:
    """Run blocking *func* in a worker thread and map our errors to HTTP.

    The calendar and completion clients are synchronous; offloading keeps the
    event loop free for other requests.
    """
    request_id = getattr(http_request.state, "request_id", "?")
    try:
        return await asyncio.to_thread(func, *args)
    except InvalidArgumentError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except AuthError as e:
        logger.info("[%s] Credential rejected: %s", request_id, e)
        raise HTTPException(status_code=auth_status, detail=auth_detail) from e
    except UpstreamError as e:
        logger.error("[%s] Upstream failure: %s", request_id, e)
        raise HTTPException(status_code=502, detail=upstream_detail) from e
    except Exception as e:
        # Full traceback stays server-side
        logger.exception("[%s] Unexpected error", request_id)
        raise HTTPException(
            status_code=500,
            detail="An internal error occurred. Please try again.",
        ) from e


# ── Health ───────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse()


# ── Chat ─────────────────────────────────────────────────────────────


@router.post("/chat", response_model=ChatResponse)
async def chat(request: ChatRequest, http_request: Request):
    """Forward a conversation to the completion service."""
    llm = get_component(http_request, "chat_llm")
    messages = [m.model_dump() for m in request.messages]
    reply = await _call(
        http_request, complete_chat, llm, messages,
        upstream_detail="An error occurred while processing your request.",
    )
    return ChatResponse(response=reply)


# ── Calendar ─────────────────────────────────────────────────────────


async def _execute(
    http_request: Request,
    token: str,
    operation: Operation,
    params: QueryParams | None = None,
) -> dict[str, Any]:
    executor = get_component(http_request, "executor")
    result = await _call(http_request, executor.execute, token, operation, params)
    return result.to_payload()


@router.get("/calendar/today")
async def today_schedule(
    http_request: Request,
    token: Annotated[str, Depends(require_google_token)],
):
    """Today's events, midnight to 23:59:59 local time."""
    return await _execute(http_request, token, Operation.TODAY_EVENTS)


@router.get("/calendar/week")
async def week_schedule(
    http_request: Request,
    token: Annotated[str, Depends(require_google_token)],
):
    """Events from Sunday through Saturday of the current week."""
    return await _execute(http_request, token, Operation.WEEK_EVENTS)


@router.get("/calendar/upcoming")
async def upcoming_schedule(
    http_request: Request,
    token: Annotated[str, Depends(require_google_token)],
    max_results: Annotated[int, Query(ge=1, le=2500)] = DEFAULT_MAX_RESULTS,
):
    """The next ``max_results`` events from now on."""
    return await _execute(
        http_request, token, Operation.UPCOMING_EVENTS,
        QueryParams(max_results=max_results),
    )


@router.get("/calendar/past")
async def past_schedule(
    http_request: Request,
    token: Annotated[str, Depends(require_google_token)],
    days_back: int = DEFAULT_DAYS_BACK,
    max_results: Annotated[int, Query(ge=1, le=2500)] = DEFAULT_MAX_RESULTS,
):
    """Events from the last ``days_back`` days."""
    return await _execute(
        http_request, token, Operation.PAST_EVENTS,
        QueryParams(max_results=max_results, days_back=days_back),
    )


@router.post("/calendar/query", response_model=ChatResponse)
async def calendar_query(
    request: CalendarQueryRequest,
    http_request: Request,
    header_token: Annotated[str | None, Depends(bearer_token)],
):
    """Answer a free-text calendar question.

    The model picks which calendar query to run, the events are fetched with
    the caller's token, and the model phrases the answer.
    """
    token = validate_token(header_token or request.access_token)
    agent = get_component(http_request, "agent")
    state = {
        "query": request.query,
        "access_token": token,
        "context": request.context.model_dump(exclude_none=True),
    }
    result = await _call(
        http_request, agent.invoke, state,
        upstream_detail="Failed to answer the calendar query.",
    )
    return ChatResponse(response=result["response"])


# ── OAuth ────────────────────────────────────────────────────────────


def _oauth_client(http_request: Request):
    oauth = get_component(http_request, "oauth")
    if not oauth.is_configured:
        raise HTTPException(
            status_code=500,
            detail=(
                "Google OAuth not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET."
            ),
        )
    return oauth


def _token_response(tokens: dict[str, Any]) -> TokenResponse:
    return TokenResponse(
        access_token=tokens["access_token"],
        refresh_token=tokens.get("refresh_token"),
        expires_in=tokens.get("expires_in"),
        token_type=tokens.get("token_type", "Bearer"),
        scope=tokens.get("scope"),
    )


@router.post("/auth/google", response_model=TokenResponse, response_model_exclude_none=True)
async def exchange_code(request: TokenExchangeRequest, http_request: Request):
    """Exchange an authorization code from the consent screen for tokens."""
    oauth = _oauth_client(http_request)
    tokens = await _call(
        http_request, oauth.exchange_code, request.code, request.redirect_uri,
        auth_status=400,
        auth_detail="The authorization code is invalid or has expired.",
        upstream_detail="Token exchange failed.",
    )
    return _token_response(tokens)


@router.post("/auth/refresh", response_model=TokenResponse, response_model_exclude_none=True)
async def refresh_token(request: TokenRefreshRequest, http_request: Request):
    """Mint a new access token from a refresh token."""
    oauth = _oauth_client(http_request)
    tokens = await _call(
        http_request, oauth.refresh, request.refresh_token,
        auth_detail="The refresh token is invalid or has expired. Please re-authenticate.",
        upstream_detail="Token refresh failed.",
    )
    return _token_response(tokens)


@router.get("/auth/google/url", response_model=AuthUrlResponse)
async def auth_url(http_request: Request, redirect_uri: str | None = None):
    """Consent-screen URL for the frontend to redirect to."""
    oauth = _oauth_client(http_request)
    return AuthUrlResponse(
        auth_url=oauth.authorization_url(redirect_uri),
        client_id=oauth.client_id,
    )
