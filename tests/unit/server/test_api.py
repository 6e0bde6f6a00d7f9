"""Tests for the REST endpoints."""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from tests.mocks import ScriptedOracle, analysis
from waypoint.config.models import WaypointConfig
from waypoint.persistence.memory import InMemoryConversationStore
from waypoint.server.api import create_app

WELCOME = "Hello! I'm your sales assistant. May I know your name?"


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle(analysis("collect_email", "Nice to meet you, Ana!", name="Ana"))


@pytest.fixture
def api_store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def client(memory_config, oracle, api_store):
    app = create_app(config=memory_config, oracle=oracle, store=api_store)
    with TestClient(app) as test_client:
        yield test_client


def open_session(client: TestClient) -> str:
    response = client.post("/sessions")
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health_reports_components(client):
    # Act
    response = client.get("/health")

    # Assert
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    engine = body["components"]["engine"]
    assert engine["details"]["turns"] == 0
    assert engine["details"]["active_sessions"] == 0
    assert body["components"]["persistence"]["details"]["failures"] == 0


def test_health_counts_turns(client):
    # Arrange
    session_id = open_session(client)
    client.post(f"/sessions/{session_id}/messages", json={"content": "I'm Ana"})

    # Act
    body = client.get("/health").json()

    # Assert
    assert body["components"]["engine"]["details"]["turns"] == 1
    assert body["components"]["engine"]["details"]["active_sessions"] == 1


def test_probes_when_ready(client):
    # Act & Assert
    assert client.get("/ready").json()["ready"] is True
    assert client.get("/startup").json() == {"status": "started"}
    version = client.get("/version").json()
    assert "version" in version
    assert isinstance(version["major"], int)


def test_create_session_returns_welcome(client, oracle):
    # Act
    response = client.post("/sessions")

    # Assert
    body = response.json()
    assert response.status_code == 201
    assert body["message"] == WELCOME
    assert body["current_node_id"] == "welcome"
    assert oracle.calls == []


def test_send_message_advances_session(client):
    # Arrange
    session_id = open_session(client)

    # Act
    response = client.post(f"/sessions/{session_id}/messages", json={"content": "I'm Ana"})

    # Assert
    assert response.status_code == 200
    body = response.json()
    assert body["content"] == "Nice to meet you, Ana!"
    assert body["current_node_id"] == "collect_email"
    assert body["degraded"] is False

    state = client.get(f"/sessions/{session_id}").json()
    assert state["context"] == {"name": "Ana"}
    assert state["turn_count"] == 1
    assert state["conversation_history"] == ["User: I'm Ana", "AI: Nice to meet you, Ana!"]


def test_degraded_turn_is_flagged(memory_config):
    # Arrange
    app = create_app(
        config=memory_config,
        oracle=ScriptedOracle(TimeoutError()),
        store=InMemoryConversationStore(),
    )

    with TestClient(app) as client:
        session_id = open_session(client)

        # Act
        body = client.post(f"/sessions/{session_id}/messages", json={"content": "hi"}).json()

    # Assert
    assert body["degraded"] is True
    assert body["current_node_id"] == "collect_name"


def test_empty_message_rejected(client):
    # Arrange
    session_id = open_session(client)

    # Act
    response = client.post(f"/sessions/{session_id}/messages", json={"content": ""})

    # Assert
    assert response.status_code == 422


def test_unknown_session_is_404(client):
    # Act
    message = client.post("/sessions/nope/messages", json={"content": "hi"})
    state = client.get("/sessions/nope")
    delete = client.delete("/sessions/nope")

    # Assert
    assert message.status_code == 404
    assert state.status_code == 404
    assert delete.status_code == 404
    assert message.json()["reference"].startswith("ERR-")


def test_delete_session(client):
    # Arrange
    session_id = open_session(client)

    # Act
    response = client.delete(f"/sessions/{session_id}")

    # Assert
    assert response.json()["success"] is True
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_corrupted_session_is_409(client):
    # Arrange
    session_id = open_session(client)
    coordinator = client.app.state.runtime.coordinator
    coordinator._sessions[session_id] = coordinator.get_session(session_id).model_copy(
        update={"current_node_id": "ghost"}
    )

    # Act
    response = client.post(f"/sessions/{session_id}/messages", json={"content": "hi"})

    # Assert
    assert response.status_code == 409
    assert "ghost" not in response.text


def test_unexpected_error_is_sanitized(memory_config):
    # Arrange
    app = create_app(
        config=memory_config, oracle=ScriptedOracle(), store=InMemoryConversationStore()
    )

    with TestClient(app, raise_server_exceptions=False) as client:
        session_id = open_session(client)
        client.app.state.runtime.coordinator.handle_message = AsyncMock(
            side_effect=RuntimeError("secret database password")
        )

        # Act
        response = client.post(f"/sessions/{session_id}/messages", json={"content": "hi"})

    # Assert
    assert response.status_code == 500
    assert "secret" not in response.text
    assert response.json()["reference"].startswith("ERR-")


def test_startup_failure_leaves_app_unhealthy():
    # Arrange
    config = WaypointConfig.model_validate(
        {
            "settings": {"logging": {"file": None}},
            "nodes": [
                {"id": "welcome", "description": "hi", "prompt_template": "Hi", "handler": "nope"}
            ],
        }
    )
    app = create_app(config=config, oracle=ScriptedOracle(), store=InMemoryConversationStore())

    with TestClient(app) as client:
        # Act
        health = client.get("/health").json()
        create = client.post("/sessions")

        # Assert
        assert health["status"] == "unhealthy"
        assert client.get("/ready").json()["ready"] is False
        assert client.get("/startup").status_code == 503
        assert create.status_code == 503


def test_persistence_records_turns(memory_config, oracle, api_store):
    # Arrange
    app = create_app(config=memory_config, oracle=oracle, store=api_store)

    # Act
    with TestClient(app) as client:
        session_id = open_session(client)
        client.post(f"/sessions/{session_id}/messages", json={"content": "I'm Ana"})

    # Assert
    texts = [turn.text for turn in api_store.turns_for(session_id)]
    assert texts[0] == WELCOME
    assert "I'm Ana" in texts
