"""Request dependencies: bearer-token extraction and app-state lookups."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import Header, HTTPException, Request

MIN_TOKEN_LENGTH = 10


def bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, if any."""
    if not authorization:
        return None
    return authorization.removeprefix("Bearer ").strip() or None


def validate_token(token: str | None) -> str:
    """Reject missing or obviously malformed access tokens with 401."""
    if not token:
        raise HTTPException(
            status_code=401,
            detail=(
                "Access token required. Provide it in the Authorization "
                "header or request body."
            ),
        )
    if len(token) < MIN_TOKEN_LENGTH:
        raise HTTPException(
            status_code=401,
            detail="Invalid token format: the access token appears to be malformed.",
        )
    return token


def require_google_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Header-only variant used by the GET calendar routes."""
    return validate_token(bearer_token(authorization))


def get_component(request: Request, name: str) -> Any:
    """Fetch a component built by the server lifespan, or 503 if not ready."""
    component = getattr(request.app.state, name, None)
    if component is None:
        raise HTTPException(
            status_code=503,
            detail="The service is still starting up. Please try again in a moment.",
        )
    return component
