"""Tests for SqlConversationStore against a temporary SQLite database."""

import pytest
import pytest_asyncio
from sqlalchemy.exc import OperationalError

from waypoint.core.constants import Role
from waypoint.core.errors import PersistenceError
from waypoint.persistence.sql import SqlConversationStore

COMPLETE = {"name": "Alex", "email": "alex@example.com", "product_choice": "Product A"}


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    store = SqlConversationStore(f"sqlite+aiosqlite:///{tmp_path / 'waypoint.db'}")
    await store.initialize()
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_messages_keep_insertion_order(sql_store):
    # Act
    await sql_store.record_turn("s1", Role.AI, "Hello!")
    await sql_store.record_turn("s1", Role.USER, "Hi")
    await sql_store.record_turn("s2", Role.USER, "elsewhere")

    # Assert
    messages = await sql_store.list_messages("s1")
    assert [(m.role, m.text) for m in messages] == [("AI", "Hello!"), ("User", "Hi")]


@pytest.mark.asyncio
async def test_event_is_stored_with_metadata(sql_store):
    # Act
    await sql_store.record_event(
        "s1", "demo_requested", {"email": "a@b.co"}, metadata={"source": "schedule_demo"}
    )

    # Assert
    events = await sql_store.list_events("s1")
    assert len(events) == 1
    assert events[0].name == "demo_requested"
    assert events[0].data == {"email": "a@b.co"}
    assert events[0].metadata_ == {"source": "schedule_demo"}


@pytest.mark.asyncio
async def test_customer_upsert_updates_in_place(sql_store):
    # Act
    first = await sql_store.upsert_customer_if_complete("s1", COMPLETE)
    second = await sql_store.upsert_customer_if_complete(
        "s2", {**COMPLETE, "product_choice": "Product B"}
    )

    # Assert
    assert first and second
    customer = await sql_store.get_customer("alex@example.com")
    assert customer.name == "Alex"
    assert customer.product_choice == "Product B"
    assert customer.last_session_id == "s2"
    snapshots = await sql_store.list_snapshots("alex@example.com")
    assert [s.session_id for s in snapshots] == ["s1", "s2"]
    assert snapshots[0].context["product_choice"] == "Product A"


@pytest.mark.asyncio
async def test_incomplete_profile_is_skipped(sql_store):
    # Act
    saved = await sql_store.upsert_customer_if_complete("s1", {"email": "a@b.co"})

    # Assert
    assert saved is False
    assert await sql_store.get_customer("a@b.co") is None


@pytest.mark.asyncio
async def test_failures_raise_persistence_error(tmp_path):
    # Arrange: tables never created
    store = SqlConversationStore(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")

    # Act & Assert
    with pytest.raises(PersistenceError) as exc_info:
        await store.record_turn("s1", Role.USER, "hi")
    assert isinstance(exc_info.value.__cause__, OperationalError)
    await store.close()

