"""Tests for TurnCoordinator."""

import pytest

from tests.mocks import analysis
from waypoint.core.constants import Role
from waypoint.core.errors import InvalidStateError, PersistenceError, SessionNotFoundError
from waypoint.persistence.memory import InMemoryConversationStore
from waypoint.runtime.coordinator import TurnCoordinator

WELCOME = "Hello! I'm your sales assistant. May I know your name?"


class FailingStore:
    """Store whose every write fails."""

    required_fields = ("name", "email", "product_choice")

    async def record_turn(self, session_id, role, text):
        raise PersistenceError("db down")

    async def upsert_customer_if_complete(self, session_id, context):
        raise PersistenceError("db down")


@pytest.fixture
def coordinator(engine, store, background) -> TurnCoordinator:
    return TurnCoordinator(engine, store=store, background=background)


@pytest.mark.asyncio
async def test_connect_creates_session_and_welcome(coordinator, oracle, store, background):
    # Act
    welcome = await coordinator.connect("conn-1")
    await background.drain()

    # Assert
    assert welcome.connection_id == "conn-1"
    assert welcome.text == WELCOME
    assert welcome.session.current_node_id == "welcome"
    assert welcome.session.conversation_history == []
    assert oracle.calls == []
    assert "conn-1" in coordinator
    turns = store.turns_for(welcome.session.session_id)
    assert [(t.role, t.text) for t in turns] == [(Role.AI, WELCOME)]


@pytest.mark.asyncio
async def test_connect_without_id_uses_session_id(coordinator):
    # Act
    welcome = await coordinator.connect()

    # Assert
    assert welcome.connection_id == welcome.session.session_id


@pytest.mark.asyncio
async def test_handle_message_replaces_stored_session(coordinator, oracle):
    # Arrange
    oracle.push(analysis("collect_email", "Hi Alex! Email?", name="Alex"))
    welcome = await coordinator.connect("c1")

    # Act
    result = await coordinator.handle_message("c1", "I'm Alex")

    # Assert
    assert result.reply_text == "Hi Alex! Email?"
    stored = coordinator.get_session("c1")
    assert stored is result.session
    assert stored.session_id == welcome.session.session_id
    assert stored.current_node_id == "collect_email"


@pytest.mark.asyncio
async def test_turns_are_recorded_user_then_ai(coordinator, oracle, store, background):
    # Arrange
    oracle.push(analysis("collect_email", "Hi Alex!", name="Alex"))
    welcome = await coordinator.connect("c1")

    # Act
    await coordinator.handle_message("c1", "I'm Alex")
    await background.drain()

    # Assert
    turns = store.turns_for(welcome.session.session_id)
    assert [(t.role, t.text) for t in turns] == [
        (Role.AI, WELCOME),
        (Role.USER, "I'm Alex"),
        (Role.AI, "Hi Alex!"),
    ]


@pytest.mark.asyncio
async def test_customer_upserted_once_when_profile_completes(
    coordinator, oracle, store, background
):
    # Arrange
    oracle.push(
        analysis("collect_email", "Hi", name="Alex"),
        analysis("get_products", "Thanks", email="alex@example.com"),
        analysis("question_and_answer_node_for_product_details", "Great pick", product_choice="A"),
        analysis("get_products", "Anything else?"),
    )
    await coordinator.connect("c1")

    # Act
    for utterance in ("Alex", "alex@example.com", "Product A", "no"):
        await coordinator.handle_message("c1", utterance)
    await background.drain()

    # Assert
    customer = store.customers["alex@example.com"]
    assert customer.name == "Alex"
    assert customer.product_choice == "A"
    assert len(customer.conversation_history) == 1


@pytest.mark.asyncio
async def test_customer_upserted_when_configured_field_completes_profile(
    engine, oracle, background
):
    # Arrange
    store = InMemoryConversationStore(required_fields=["name", "email", "phone"])
    coordinator = TurnCoordinator(engine, store=store, background=background)
    oracle.push(
        analysis("collect_email", "Hi Al", name="Al", email="a@b.co"),
        analysis("get_products", "Thanks", phone="555"),
        analysis("get_products", "Anything else?"),
    )
    await coordinator.connect("c1")

    # Act
    await coordinator.handle_message("c1", "Al, a@b.co")
    await background.drain()
    before_phone = dict(store.customers)
    for utterance in ("555", "no"):
        await coordinator.handle_message("c1", utterance)
    await background.drain()

    # Assert
    assert before_phone == {}
    customer = store.customers["a@b.co"]
    assert customer.profile["phone"] == "555"
    assert customer.name == "Al"
    assert len(customer.conversation_history) == 1


@pytest.mark.asyncio
async def test_persistence_failure_does_not_affect_reply(engine, oracle, background):
    # Arrange
    coordinator = TurnCoordinator(engine, store=FailingStore(), background=background)
    oracle.push(analysis("collect_email", "Hi Alex", name="Alex"))
    await coordinator.connect("c1")

    # Act
    result = await coordinator.handle_message("c1", "Alex")
    await background.drain()

    # Assert
    assert result.reply_text == "Hi Alex"
    assert coordinator.get_session("c1").current_node_id == "collect_email"
    assert background.failures == 2


@pytest.mark.asyncio
async def test_coordinator_without_store(engine, oracle):
    # Arrange
    coordinator = TurnCoordinator(engine)
    oracle.push(analysis("collect_email", "Hi", name="Alex"))
    await coordinator.connect("c1")

    # Act
    result = await coordinator.handle_message("c1", "Alex")

    # Assert
    assert result.session.context == {"name": "Alex"}
    assert coordinator.background.pending == 0


@pytest.mark.asyncio
async def test_unknown_connection_raises(coordinator):
    # Act & Assert
    with pytest.raises(SessionNotFoundError):
        await coordinator.handle_message("missing", "hello")
    with pytest.raises(SessionNotFoundError):
        coordinator.get_session("missing")


@pytest.mark.asyncio
async def test_disconnect_discards_session(coordinator):
    # Arrange
    welcome = await coordinator.connect("c1")

    # Act
    removed = coordinator.disconnect("c1")

    # Assert
    assert removed is welcome.session
    assert "c1" not in coordinator
    assert coordinator.active_sessions == 0
    assert coordinator.disconnect("c1") is None


@pytest.mark.asyncio
async def test_corrupted_session_propagates_invalid_state(coordinator):
    # Arrange
    welcome = await coordinator.connect("c1")
    coordinator._sessions["c1"] = welcome.session.model_copy(
        update={"current_node_id": "removed_node"}
    )

    # Act & Assert
    with pytest.raises(InvalidStateError):
        await coordinator.handle_message("c1", "hello")


@pytest.mark.asyncio
async def test_connections_are_isolated(coordinator, oracle):
    # Arrange
    oracle.push(lambda call: analysis("collect_email", "Hi", name=call.utterance))
    await coordinator.connect("a")
    await coordinator.connect("b")

    # Act
    await coordinator.handle_message("a", "Ann")
    await coordinator.handle_message("b", "Bob")

    # Assert
    assert coordinator.get_session("a").context == {"name": "Ann"}
    assert coordinator.get_session("b").context == {"name": "Bob"}
    assert coordinator.active_sessions == 2
