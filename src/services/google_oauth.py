"""Google OAuth 2.0 helpers for the frontend sign-in flow.

This is a sibling of the calendar core: it exchanges authorization codes and
refresh tokens for access tokens that the frontend later sends back as the
per-request calendar credential.  Nothing here is stored server-side.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from src.config import CALENDAR_TIMEOUT_SECONDS, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET
from src.errors import AuthError, UpstreamError
from src.services.metrics import metrics

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"

CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/userinfo.profile",
    "https://www.googleapis.com/auth/userinfo.email",
]


class GoogleOAuthClient:
    """Authorization-code and refresh-token grants against Google's token endpoint."""

    def __init__(
        self,
        client_id: str | None = None,
        client_secret: str | None = None,
    ):
        self._client_id = client_id or GOOGLE_CLIENT_ID
        self._client_secret = client_secret or GOOGLE_CLIENT_SECRET
        self._client = httpx.Client(timeout=CALENDAR_TIMEOUT_SECONDS)

    @property
    def is_configured(self) -> bool:
        return bool(self._client_id and self._client_secret)

    @property
    def client_id(self) -> str | None:
        return self._client_id

    def authorization_url(self, redirect_uri: str | None = None) -> str:
        """Consent-screen URL that yields a refresh token (offline + consent)."""
        params = {
            "client_id": self._client_id or "",
            "response_type": "code",
            "scope": " ".join(CALENDAR_SCOPES),
            "access_type": "offline",
            "prompt": "consent",
        }
        if redirect_uri:
            params["redirect_uri"] = redirect_uri
        return str(httpx.URL(GOOGLE_AUTH_URL, params=params))

    def _token_request(self, form: dict[str, str], operation: str) -> dict[str, Any]:
        payload = {
            "client_id": self._client_id or "",
            "client_secret": self._client_secret or "",
            **form,
        }
        t0 = time.perf_counter()
        try:
            response = self._client.post(GOOGLE_TOKEN_URL, data=payload)
        except httpx.HTTPError as exc:
            metrics.record_failure(
                "google_oauth", operation, error_type=type(exc).__name__,
            )
            raise UpstreamError(f"Token endpoint unreachable: {exc}") from exc

        elapsed = (time.perf_counter() - t0) * 1000
        if response.status_code >= 400:
            metrics.record_failure(
                "google_oauth", operation,
                error_type=str(response.status_code), latency_ms=elapsed,
            )
            try:
                body = response.json()
            except ValueError:
                body = {}
            error_code = body.get("error") if isinstance(body, dict) else None
            description = (
                body.get("error_description") if isinstance(body, dict) else None
            ) or response.text
            # RFC 6749 §5.2: invalid_grant covers expired/revoked codes and tokens
            if error_code == "invalid_grant":
                logger.warning("Google rejected the grant (%s): %s", operation, description)
                raise AuthError(description, status_code=response.status_code)
            logger.error(
                "Token endpoint error %d (%s): %s",
                response.status_code, operation, description,
            )
            raise UpstreamError(description, status_code=response.status_code)

        metrics.record_success("google_oauth", operation, latency_ms=elapsed)
        try:
            tokens = response.json()
        except ValueError:
            tokens = None
        if not isinstance(tokens, dict) or not tokens.get("access_token"):
            logger.error("Token endpoint response has no access_token (%s)", operation)
            raise UpstreamError(
                "Token endpoint returned no access token",
                status_code=response.status_code,
            )
        return tokens

    def exchange_code(self, code: str, redirect_uri: str | None = None) -> dict[str, Any]:
        """Trade an authorization code for access (and refresh) tokens.

        A 400 from the token endpoint (``invalid_grant``,
        ``redirect_uri_mismatch`` ...) means the code cannot be redeemed and
        is raised as ``AuthError``.
        """
        form = {"code": code, "grant_type": "authorization_code"}
        if redirect_uri:
            form["redirect_uri"] = redirect_uri
        try:
            return self._token_request(form, "exchange_code")
        except UpstreamError as exc:
            if exc.status_code == 400:
                raise AuthError(str(exc), status_code=exc.status_code) from exc
            raise

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Obtain a fresh access token from a refresh token."""
        return self._token_request(
            {"refresh_token": refresh_token, "grant_type": "refresh_token"},
            "refresh_token",
        )

    def close(self) -> None:
        self._client.close()
