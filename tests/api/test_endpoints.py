"""Tests for API endpoints."""

from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from api.main import app
from api.routes.game import _games
from api.session import get_session_store


@pytest_asyncio.fixture
async def client():
    """Create test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def session_id(client):
    """A fresh table session."""
    response = await client.post("/api/game/new")
    return response.json()["session_id"]


def headers(session_id: str) -> dict[str, str]:
    return {"X-Session-ID": session_id}


async def play_out(client, session_id) -> dict:
    """Deal a round and stand until it is finished."""
    data = (await client.post("/api/game/deal", headers=headers(session_id))).json()
    if data["state"] == "PLAYER_TURN":
        response = await client.post(
            "/api/game/action", json={"action": "stand"}, headers=headers(session_id)
        )
        data = response.json()
    return data


@pytest.mark.asyncio
async def test_health_check(client):
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_new_game(client):
    response = await client.post("/api/game/new")
    assert response.status_code == 200
    assert "session_id" in response.json()


@pytest.mark.asyncio
async def test_new_game_reuses_session(client, session_id):
    response = await client.post("/api/game/new", headers=headers(session_id))
    assert response.json()["session_id"] == session_id


@pytest.mark.asyncio
async def test_game_state(client, session_id):
    response = await client.get("/api/game/state", headers=headers(session_id))
    assert response.status_code == 200
    data = response.json()

    assert data["state"] == "BETTING"
    assert data["chips"] == 1000
    assert data["current_bet"] == 10
    assert data["player_hand"]["cards"] == []
    assert data["result"] is None
    assert data["cards_remaining"] == 416


@pytest.mark.asyncio
async def test_unknown_session(client):
    response = await client.get("/api/game/state", headers=headers("not-a-real-token"))
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_missing_session_header(client):
    response = await client.get("/api/game/state")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_place_bet(client, session_id):
    response = await client.post("/api/game/bet", json={"amount": 100}, headers=headers(session_id))
    assert response.status_code == 200
    assert response.json()["current_bet"] == 100


@pytest.mark.asyncio
async def test_bet_over_chips(client, session_id):
    response = await client.post("/api/game/bet", json={"amount": 5000}, headers=headers(session_id))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_invalid_bet_amount(client, session_id):
    response = await client.post("/api/game/bet", json={"amount": 0}, headers=headers(session_id))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deal(client, session_id):
    response = await client.post("/api/game/deal", headers=headers(session_id))
    assert response.status_code == 200
    data = response.json()

    assert data["state"] in ("PLAYER_TURN", "FINISHED")
    assert len(data["player_hand"]["cards"]) == 2
    if data["state"] == "PLAYER_TURN":
        assert len(data["dealer_hand"]["cards"]) == 1
        assert data["can_stand"] is True
    else:
        assert data["result"] is not None


@pytest.mark.asyncio
async def test_action_before_deal(client, session_id):
    response = await client.post(
        "/api/game/action", json={"action": "hit"}, headers=headers(session_id)
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unknown_action(client, session_id):
    response = await client.post(
        "/api/game/action", json={"action": "split"}, headers=headers(session_id)
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_full_round(client, session_id):
    data = await play_out(client, session_id)

    assert data["state"] == "FINISHED"
    assert len(data["dealer_hand"]["cards"]) >= 2
    assert data["games_played"] == 1
    assert data["chips"] == 1000 + data["result"]["win_amount"]
    assert data["result"]["display"]

    response = await client.post("/api/game/next", headers=headers(session_id))
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "BETTING"
    assert data["player_hand"]["cards"] == []


@pytest.mark.asyncio
async def test_next_before_finished(client, session_id):
    response = await client.post("/api/game/next", headers=headers(session_id))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_deal_twice(client, session_id):
    data = await play_out(client, session_id)
    assert data["state"] == "FINISHED"

    response = await client.post("/api/game/deal", headers=headers(session_id))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_expired_tables_are_dropped(client, session_id):
    store = get_session_store()
    data, _ = store._sessions[session_id]
    store._sessions[session_id] = (data, datetime.now() - timedelta(seconds=1))
    assert session_id in _games

    response = await client.post("/api/game/new")
    assert response.status_code == 200
    assert session_id not in _games
    assert response.json()["session_id"] in _games
