"""Tests for the FastAPI endpoints."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from src.calendar_query.executor import Operation, QueryParams
from src.calendar_query.models import CalendarEvent, CalendarQueryResult
from src.errors import AuthError, InvalidArgumentError, UpstreamError
from src.server import app
from src.services.google_oauth import GoogleOAuthClient

TOKEN = "ya29.test-access-token"
AUTH = {"Authorization": f"Bearer {TOKEN}"}

TODAY_RESULT = CalendarQueryResult(
    date="Mon Oct 19 2026",
    events=[
        CalendarEvent(
            title="Standup",
            start="2026-10-19T09:00:00+02:00",
            end="2026-10-19T09:15:00+02:00",
            link="https://www.google.com/calendar/event?eid=abc",
        )
    ],
)


@pytest.fixture
def components():
    """Attach mock components to app state (mirrors the lifespan)."""
    executor = MagicMock()
    executor.execute.return_value = TODAY_RESULT

    agent = MagicMock()
    agent.invoke.return_value = {"response": "You have a standup at 9."}

    chat_llm = MagicMock()
    chat_llm.invoke.return_value = AIMessage(content="Hello! How can I help?")

    oauth = MagicMock()
    oauth.is_configured = True
    oauth.client_id = "client-123.apps.googleusercontent.com"

    app.state.executor = executor
    app.state.agent = agent
    app.state.chat_llm = chat_llm
    app.state.oauth = oauth
    yield {"executor": executor, "agent": agent, "chat_llm": chat_llm, "oauth": oauth}
    for name in ("executor", "agent", "chat_llm", "oauth"):
        setattr(app.state, name, None)


@pytest.fixture
def client(components):
    return TestClient(app)


class TestHealthEndpoint:
    def test_health_returns_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "calendar-gateway"}


class TestRootEndpoint:
    def test_root_returns_service_info(self, client):
        data = client.get("/").json()
        assert data["service"] == "Calendar Gateway"
        assert "docs" in data


class TestTokenHandling:
    def test_missing_token_is_401(self, client, components):
        response = client.get("/api/calendar/today")
        assert response.status_code == 401
        assert "access token required" in response.json()["detail"].lower()
        components["executor"].execute.assert_not_called()

    def test_malformed_token_is_401(self, client, components):
        response = client.get("/api/calendar/today", headers={"Authorization": "Bearer abc"})
        assert response.status_code == 401
        assert "malformed" in response.json()["detail"]
        components["executor"].execute.assert_not_called()

    def test_bare_token_without_bearer_prefix_is_accepted(self, client, components):
        response = client.get("/api/calendar/today", headers={"Authorization": TOKEN})
        assert response.status_code == 200
        assert components["executor"].execute.call_args[0][0] == TOKEN


class TestCalendarEndpoints:
    def test_today_returns_normalized_events(self, client, components):
        response = client.get("/api/calendar/today", headers=AUTH)
        assert response.status_code == 200
        data = response.json()
        assert data["date"] == "Mon Oct 19 2026"
        assert data["events"][0]["title"] == "Standup"
        assert data["events"][0]["description"] == ""
        assert "message" not in data
        components["executor"].execute.assert_called_once_with(
            TOKEN, Operation.TODAY_EVENTS, None,
        )

    def test_week(self, client, components):
        client.get("/api/calendar/week", headers=AUTH)
        assert components["executor"].execute.call_args[0][1] is Operation.WEEK_EVENTS

    def test_upcoming_defaults_to_ten(self, client, components):
        client.get("/api/calendar/upcoming", headers=AUTH)
        args = components["executor"].execute.call_args[0]
        assert args[1] is Operation.UPCOMING_EVENTS
        assert args[2] == QueryParams(max_results=10)

    def test_upcoming_max_results(self, client, components):
        client.get("/api/calendar/upcoming?max_results=3", headers=AUTH)
        assert components["executor"].execute.call_args[0][2] == QueryParams(max_results=3)

    def test_past_params(self, client, components):
        client.get("/api/calendar/past?days_back=14&max_results=5", headers=AUTH)
        args = components["executor"].execute.call_args[0]
        assert args[1] is Operation.PAST_EVENTS
        assert args[2] == QueryParams(max_results=5, days_back=14)

    def test_empty_result_is_200_with_message(self, client, components):
        components["executor"].execute.return_value = CalendarQueryResult(
            message="No events found for this week.",
            week_start="Sun Oct 18 2026",
            week_end="Sat Oct 24 2026",
        )
        response = client.get("/api/calendar/week", headers=AUTH)
        assert response.status_code == 200
        assert response.json()["message"] == "No events found for this week."

    def test_invalid_days_back_is_400(self, client, components):
        components["executor"].execute.side_effect = InvalidArgumentError(
            "days_back must be a positive integer, got 0",
        )
        response = client.get("/api/calendar/past?days_back=0", headers=AUTH)
        assert response.status_code == 400
        assert "days_back" in response.json()["detail"]

    def test_rejected_token_is_401(self, client, components):
        components["executor"].execute.side_effect = AuthError(
            "Access token expired or invalid", 401,
        )
        response = client.get("/api/calendar/today", headers=AUTH)
        assert response.status_code == 401
        assert "expired or invalid" in response.json()["detail"]

    def test_provider_failure_is_502_without_leaking(self, client, components):
        components["executor"].execute.side_effect = UpstreamError("Backend Error 0xdeadbeef", 500)
        response = client.get("/api/calendar/today", headers=AUTH)
        assert response.status_code == 502
        assert "0xdeadbeef" not in response.json()["detail"]

    def test_unexpected_error_is_500_without_leaking(self, client, components):
        components["executor"].execute.side_effect = RuntimeError("kaboom")
        response = client.get("/api/calendar/today", headers=AUTH)
        assert response.status_code == 500
        detail = response.json()["detail"]
        assert "kaboom" not in detail
        assert "internal error" in detail.lower()

    def test_503_when_not_initialised(self, client):
        app.state.executor = None
        response = client.get("/api/calendar/today", headers=AUTH)
        assert response.status_code == 503


class TestCalendarQueryEndpoint:
    def test_runs_pipeline_with_header_token(self, client, components):
        response = client.post(
            "/api/calendar/query",
            json={"query": "What's on today?", "context": {"max_results": 5}},
            headers=AUTH,
        )
        assert response.status_code == 200
        assert response.json() == {"response": "You have a standup at 9."}
        state = components["agent"].invoke.call_args[0][0]
        assert state == {
            "query": "What's on today?",
            "access_token": TOKEN,
            "context": {"max_results": 5},
        }

    def test_token_from_body(self, client, components):
        response = client.post(
            "/api/calendar/query",
            json={"query": "Today?", "access_token": "ya29.body-token-value"},
        )
        assert response.status_code == 200
        state = components["agent"].invoke.call_args[0][0]
        assert state["access_token"] == "ya29.body-token-value"
        assert state["context"] == {}

    def test_header_wins_over_body(self, client, components):
        client.post(
            "/api/calendar/query",
            json={"query": "Today?", "access_token": "ya29.body-token-value"},
            headers=AUTH,
        )
        assert components["agent"].invoke.call_args[0][0]["access_token"] == TOKEN

    def test_missing_token_is_401(self, client, components):
        response = client.post("/api/calendar/query", json={"query": "Today?"})
        assert response.status_code == 401
        components["agent"].invoke.assert_not_called()

    def test_empty_query_is_422(self, client):
        response = client.post("/api/calendar/query", json={"query": ""}, headers=AUTH)
        assert response.status_code == 422

    def test_auth_error_is_401(self, client, components):
        components["agent"].invoke.side_effect = AuthError("Access token expired or invalid")
        response = client.post("/api/calendar/query", json={"query": "Today?"}, headers=AUTH)
        assert response.status_code == 401

    def test_synthesis_failure_is_502(self, client, components):
        components["agent"].invoke.side_effect = UpstreamError("Completion service failed")
        response = client.post("/api/calendar/query", json={"query": "Today?"}, headers=AUTH)
        assert response.status_code == 502


class TestChatEndpoint:
    def test_returns_model_reply(self, client, components):
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Hi"}]},
        )
        assert response.status_code == 200
        assert response.json() == {"response": "Hello! How can I help?"}

    def test_invalid_role_is_422(self, client):
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "robot", "content": "Hi"}]},
        )
        assert response.status_code == 422

    def test_empty_messages_is_422(self, client):
        response = client.post("/api/chat", json={"messages": []})
        assert response.status_code == 422

    def test_model_failure_is_502(self, client, components):
        components["chat_llm"].invoke.side_effect = RuntimeError("overloaded")
        response = client.post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "Hi"}]},
        )
        assert response.status_code == 502
        assert "overloaded" not in response.json()["detail"]


class TestAuthEndpoints:
    def test_exchange_code(self, client, components):
        components["oauth"].exchange_code.return_value = {
            "access_token": "ya29.new",
            "refresh_token": "1//refresh",
            "expires_in": 3599,
            "token_type": "Bearer",
            "scope": "https://www.googleapis.com/auth/calendar.readonly",
        }
        response = client.post(
            "/api/auth/google",
            json={"code": "4/abc", "redirect_uri": "http://localhost:5173/callback"},
        )
        assert response.status_code == 200
        assert response.json()["refresh_token"] == "1//refresh"
        components["oauth"].exchange_code.assert_called_once_with(
            "4/abc", "http://localhost:5173/callback",
        )

    def test_exchange_invalid_code_is_400(self, client, components):
        components["oauth"].exchange_code.side_effect = AuthError("Bad Request", 400)
        response = client.post("/api/auth/google", json={"code": "4/expired"})
        assert response.status_code == 400
        assert "invalid or has expired" in response.json()["detail"]

    def test_exchange_requires_code(self, client):
        response = client.post("/api/auth/google", json={})
        assert response.status_code == 422

    def test_refresh(self, client, components):
        components["oauth"].refresh.return_value = {
            "access_token": "ya29.fresh",
            "expires_in": 3599,
            "token_type": "Bearer",
        }
        response = client.post("/api/auth/refresh", json={"refresh_token": "1//refresh"})
        assert response.status_code == 200
        data = response.json()
        assert data["access_token"] == "ya29.fresh"
        assert "refresh_token" not in data

    def test_refresh_revoked_is_401(self, client, components):
        components["oauth"].refresh.side_effect = AuthError("Token has been expired or revoked.", 400)
        response = client.post("/api/auth/refresh", json={"refresh_token": "1//revoked"})
        assert response.status_code == 401
        assert "re-authenticate" in response.json()["detail"]

    def test_auth_url(self, client, components):
        components["oauth"].authorization_url.return_value = "https://accounts.google.com/o/oauth2/v2/auth?x=1"
        response = client.get("/api/auth/google/url?redirect_uri=http://localhost:5173/cb")
        assert response.status_code == 200
        assert response.json()["client_id"] == "client-123.apps.googleusercontent.com"
        components["oauth"].authorization_url.assert_called_once_with("http://localhost:5173/cb")

    def test_not_configured_is_500(self, client, components):
        components["oauth"].is_configured = False
        response = client.post("/api/auth/refresh", json={"refresh_token": "1//refresh"})
        assert response.status_code == 500
        assert "not configured" in response.json()["detail"]

    def test_token_response_without_access_token_is_502(self, client, mock_http_response):
        oauth = GoogleOAuthClient(client_id="client-123", client_secret="s3cret")
        app.state.oauth = oauth
        with patch.object(
            oauth._client, "post", return_value=mock_http_response({"token_type": "Bearer"}),
        ):
            response = client.post("/api/auth/refresh", json={"refresh_token": "1//refresh"})
        assert response.status_code == 502
        assert response.json()["detail"] == "Token refresh failed."

    def test_exchange_redirect_mismatch_is_400(self, client, mock_http_response):
        oauth = GoogleOAuthClient(client_id="client-123", client_secret="s3cret")
        app.state.oauth = oauth
        body = {"error": "redirect_uri_mismatch", "error_description": "Bad Request"}
        with patch.object(oauth._client, "post", return_value=mock_http_response(body, 400)):
            response = client.post(
                "/api/auth/google",
                json={"code": "4/abc", "redirect_uri": "http://elsewhere.test/cb"},
            )
        assert response.status_code == 400
        assert "invalid or has expired" in response.json()["detail"]


class TestRequestId:
    def test_response_includes_request_id_header(self, client):
        response = client.get("/api/health")
        assert "X-Request-ID" in response.headers

    def test_client_supplied_request_id_is_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "my-trace-id-123"})
        assert response.headers["X-Request-ID"] == "my-trace-id-123"


class TestLifespan:
    @pytest.fixture
    def patched_clients(self):
        with (
            patch("src.server.GoogleCalendarClient") as calendar_cls,
            patch("src.server.GoogleOAuthClient") as oauth_cls,
            patch("src.server.IntentClassifier"),
            patch("src.server.create_calendar_agent"),
            patch("src.server.build_chat_llm") as build_llm,
        ):
            yield calendar_cls.return_value, oauth_cls.return_value, build_llm
        for name in ("executor", "agent", "chat_llm", "oauth"):
            setattr(app.state, name, None)

    def test_shutdown_closes_clients(self, patched_clients):
        calendar_client, oauth, _ = patched_clients
        with TestClient(app) as client:
            assert client.get("/api/health").status_code == 200
            calendar_client.close.assert_not_called()
        calendar_client.close.assert_called_once()
        oauth.close.assert_called_once()

    def test_failed_startup_still_closes_clients(self, patched_clients):
        calendar_client, oauth, build_llm = patched_clients
        build_llm.side_effect = RuntimeError("model misconfigured")
        with pytest.raises(RuntimeError, match="model misconfigured"):
            with TestClient(app):
                pass
        calendar_client.close.assert_called_once()
        oauth.close.assert_called_once()
