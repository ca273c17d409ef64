"""
Tests for the HTTP API - chat, facility and health endpoints.

Coverage:
- POST /chat: 200 {reply}, 400/500 {error}, 401 without a valid bearer token
- Token claims mapped to the caller identity
- GET /facilities and GET /facilities/{id}/availability
- GET /health
"""

from datetime import date, time
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient
from jose import jwt

from agent.routing.errors import ChatServiceError
from agent.routing.intent_router import IntentRouter, get_intent_router
from agent.state.pending_context import InMemoryPendingContextStore
from agent.state.schemas import CallerIdentity, ChatReply, DialogueBranch
from api.auth import identity_from_claims
from api.main import app
from database.connection import get_async_session
from database.models import Reservation, ReservationStatus


def make_token(claims=None, secret="test-secret"):
    payload = {"id": "42", "username": "student", "email": "student@aui.ma"}
    if claims is not None:
        payload = claims
    return jwt.encode(payload, secret, algorithm="HS256")


def auth_headers(**kwargs):
    return {"Authorization": f"Bearer {make_token(**kwargs)}"}


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def real_router():
    """Router with a private memory store and no language model."""
    router = IntentRouter(context_store=InMemoryPendingContextStore(), llm=None, weather_client=MagicMock())
    app.dependency_overrides[get_intent_router] = lambda: router
    return router


@pytest.fixture
def fake_router():
    router = MagicMock()
    router.route = AsyncMock(return_value=ChatReply("ok", DialogueBranch.CANNED))
    app.dependency_overrides[get_intent_router] = lambda: router
    return router


# ============================================================================
# POST /chat
# ============================================================================


class TestChatEndpoint:
    """Test POST /chat."""

    def test_reply(self, client, real_router):
        response = client.post("/chat", json={"message": "hello"}, headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["reply"].startswith("Hi!")

    def test_caller_identity_from_token(self, client, fake_router):
        client.post("/chat", json={"message": "hi"}, headers=auth_headers())

        message, caller = fake_router.route.await_args.args
        assert message == "hi"
        assert caller == CallerIdentity(id="42", username="student", email="student@aui.ma")

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"message": ""},
            {"message": "   "},
            {"message": None},
            {"message": 123},
            {"message": ["book padel"]},
            {"message": {"text": "hi"}},
        ],
    )
    def test_missing_message(self, client, real_router, body):
        response = client.post("/chat", json=body, headers=auth_headers())

        assert response.status_code == 400
        assert response.json() == {"error": "Message is required"}

    def test_blocked_message(self, client, real_router):
        response = client.post("/chat", json={"message": "terror plans"}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json() == {"error": "I can't assist with that."}

    def test_chat_service_failure(self, client, fake_router):
        fake_router.route.side_effect = ChatServiceError("Chat service unavailable")

        response = client.post("/chat", json={"message": "tell me a joke"}, headers=auth_headers())

        assert response.status_code == 500
        assert response.json() == {"error": "Chat service unavailable"}

    def test_malformed_body(self, client, fake_router):
        response = client.post(
            "/chat",
            content="not json",
            headers={**auth_headers(), "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"


class TestChatAuth:
    """Test bearer token handling on POST /chat."""

    def test_no_token(self, client, fake_router):
        response = client.post("/chat", json={"message": "hello"})

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}
        fake_router.route.assert_not_awaited()

    def test_wrong_secret(self, client, fake_router):
        response = client.post("/chat", json={"message": "hello"}, headers=auth_headers(secret="other"))

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token"}

    def test_token_without_user_id(self, client, fake_router):
        response = client.post(
            "/chat", json={"message": "hello"}, headers=auth_headers(claims={"username": "ghost"})
        )

        assert response.status_code == 401

    def test_sub_claim_is_accepted(self):
        assert identity_from_claims({"sub": 7}).id == "7"


# ============================================================================
# Facilities
# ============================================================================


class TestFacilities:
    """Test the public facility endpoints."""

    def test_catalog_in_order(self, client):
        response = client.get("/facilities")

        assert response.status_code == 200
        ids = [f["id"] for f in response.json()]
        assert ids == [
            "futsal",
            "newfield-half-a",
            "newfield-half-b",
            "tennis-1",
            "tennis-2",
            "basketball",
            "padel",
            "bicycles",
        ]

    def test_unknown_facility(self, client):
        response = client.get("/facilities/squash/availability", params={"date": "2025-12-12"})

        assert response.status_code == 404
        assert response.json() == {"error": "Facility not found"}

    def test_malformed_date(self, client):
        response = client.get("/facilities/padel/availability", params={"date": "12/12/2025"})

        assert response.status_code == 400

    async def test_day_view(self, db):
        async with get_async_session() as session:
            session.add(
                Reservation(
                    facility_id="padel",
                    user_id="7",
                    date=date(2025, 12, 12),
                    start_time=time(16, 0),
                    end_time=time(17, 0),
                    status=ReservationStatus.CONFIRMED,
                )
            )
            await session.commit()

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/facilities/Padel/availability", params={"date": "2025-12-12"})

        assert response.status_code == 200
        body = response.json()
        assert body["facility_id"] == "padel"
        assert body["booked"] == [{"start_time": "16:00", "end_time": "17:00", "status": "CONFIRMED"}]
        assert body["admin_windows"] == []
        assert body["summary"].startswith("Booked: 16:00-17:00.")


class TestHealth:
    async def test_healthy_database(self, db):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "connected"}
