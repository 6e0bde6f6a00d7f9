"""SQLAlchemy-backed conversation store (async engine)."""

import json
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from waypoint.core.constants import ContextKey, Role
from waypoint.core.errors import PersistenceError
from waypoint.persistence.base import ConversationStore
from waypoint.persistence.models import (
    Base,
    ConversationEvent,
    ConversationMessage,
    Customer,
    CustomerSnapshot,
)

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///waypoint.db"


def _json_safe(value: Mapping[str, Any]) -> dict[str, Any]:
    """Round-trip through JSON so datetimes and other scalars are stored as text."""
    return json.loads(json.dumps(dict(value), default=str))


class SqlConversationStore(ConversationStore):
    """Stores turns, customers and events through SQLAlchemy.

    Usage:
        store = SqlConversationStore("sqlite+aiosqlite:///waypoint.db")
        await store.initialize()
        ...
        await store.close()
    """

    def __init__(
        self,
        url: str = DEFAULT_DATABASE_URL,
        engine: AsyncEngine | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        # Plain postgres URLs get the asyncpg driver
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        self.url = url
        self._engine = engine or create_async_engine(url, echo=False)
        self._session_maker = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )

    async def initialize(self) -> None:
        """Create tables if they do not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to initialize database: {e}") from e
        logger.info(f"SqlConversationStore initialized ({self._engine.url.render_as_string()})")

    async def close(self) -> None:
        await self._engine.dispose()

    async def record_turn(self, session_id: str, role: Role, text: str) -> None:
        try:
            async with self._session_maker() as session, session.begin():
                session.add(ConversationMessage(session_id=session_id, role=role.value, text=text))
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record turn for {session_id}: {e}") from e

    async def record_event(
        self,
        session_id: str,
        event_name: str,
        data: Mapping[str, Any],
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        try:
            async with self._session_maker() as session, session.begin():
                session.add(
                    ConversationEvent(
                        session_id=session_id,
                        name=event_name,
                        data=_json_safe(data),
                        metadata_=_json_safe(metadata or {}),
                    )
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to record event {event_name}: {e}") from e

    async def _upsert_customer(
        self,
        session_id: str,
        profile: dict[str, Any],
        context: Mapping[str, Any],
    ) -> None:
        email = str(profile[ContextKey.EMAIL.value])
        try:
            async with self._session_maker() as session, session.begin():
                result = await session.execute(select(Customer).where(Customer.email == email))
                customer = result.scalar_one_or_none()
                if customer is None:
                    customer = Customer(email=email)
                    session.add(customer)

                customer.name = profile.get(ContextKey.NAME.value)
                customer.product_choice = profile.get(ContextKey.PRODUCT_CHOICE.value)
                customer.last_session_id = session_id
                await session.flush()

                session.add(
                    CustomerSnapshot(
                        customer_id=customer.id,
                        session_id=session_id,
                        context=_json_safe(context),
                    )
                )
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to upsert customer {email}: {e}") from e

    async def get_customer(self, email: str) -> Customer | None:
        async with self._session_maker() as session:
            result = await session.execute(select(Customer).where(Customer.email == email))
            return result.scalar_one_or_none()

    async def list_messages(self, session_id: str) -> list[ConversationMessage]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(ConversationMessage)
                .where(ConversationMessage.session_id == session_id)
                .order_by(ConversationMessage.id)
            )
            return list(result.scalars())

    async def list_events(self, session_id: str) -> list[ConversationEvent]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(ConversationEvent)
                .where(ConversationEvent.session_id == session_id)
                .order_by(ConversationEvent.created_at)
            )
            return list(result.scalars())

    async def list_snapshots(self, email: str) -> list[CustomerSnapshot]:
        async with self._session_maker() as session:
            result = await session.execute(
                select(CustomerSnapshot)
                .join(Customer)
                .where(Customer.email == email)
                .order_by(CustomerSnapshot.timestamp)
            )
            return list(result.scalars())
