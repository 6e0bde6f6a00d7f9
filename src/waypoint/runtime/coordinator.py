"""Turn coordinator: owns one Session per connection.

Sits at the transport boundary. It feeds utterances to the transition
engine one at a time per connection, keeps the returned session, and
dispatches persistence as background work after the reply is computed.
"""

from dataclasses import dataclass

from waypoint.core.constants import Role
from waypoint.core.errors import SessionNotFoundError
from waypoint.core.session import Session, create_session, customer_profile
from waypoint.core.types import TurnResult
from waypoint.dm.engine import TransitionEngine
from waypoint.observability.logging import ContextLogger
from waypoint.persistence.base import ConversationStore, is_profile_complete
from waypoint.runtime.background import BackgroundTasks

context_logger = ContextLogger(__name__)


@dataclass(frozen=True)
class Welcome:
    """Result of opening a conversation."""

    connection_id: str
    session: Session
    text: str


class TurnCoordinator:
    """Maps connection ids to sessions and runs turns against the engine.

    Does not lock sessions: the transport delivers one message at a time
    per connection, so turns for one session never overlap.
    """

    def __init__(
        self,
        engine: TransitionEngine,
        store: ConversationStore | None = None,
        background: BackgroundTasks | None = None,
    ) -> None:
        self.engine = engine
        self.store = store
        self.background = background or BackgroundTasks()
        self._sessions: dict[str, Session] = {}

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._sessions

    def get_session(self, connection_id: str) -> Session:
        """Current session for a connection.

        Raises:
            SessionNotFoundError: If the connection is unknown
        """
        session = self._sessions.get(connection_id)
        if session is None:
            raise SessionNotFoundError(f"No session for connection '{connection_id}'")
        return session

    async def connect(self, connection_id: str | None = None) -> Welcome:
        """Open a conversation at the start node and render its welcome text.

        The welcome turn is synthesized here; the engine is not invoked and
        the session history stays empty.
        """
        session = create_session(self.engine.graph.start_node_id)
        connection_id = connection_id or session.session_id
        self._sessions[connection_id] = session

        text = self.engine.render_welcome()
        context_logger.with_context(session_id=session.session_id).info(
            f"Conversation opened (connection={connection_id})"
        )
        if self.store is not None:
            self.background.spawn(
                self.store.record_turn(session.session_id, Role.AI, text),
                name=f"record_welcome:{session.session_id}",
            )
        return Welcome(connection_id=connection_id, session=session, text=text)

    async def handle_message(self, connection_id: str, utterance: str) -> TurnResult:
        """Run one turn for ``connection_id`` and keep the updated session.

        Raises:
            SessionNotFoundError: If the connection is unknown
            InvalidStateError: If the stored session is corrupted
        """
        session = self.get_session(connection_id)
        result = await self.engine.handle_turn(session, utterance)
        self._sessions[connection_id] = result.session

        if self.store is not None:
            self._dispatch_persistence(self.store, session, result, utterance)
        return result

    def disconnect(self, connection_id: str) -> Session | None:
        """Discard the session for ``connection_id``. No archival happens here."""
        session = self._sessions.pop(connection_id, None)
        if session is not None:
            context_logger.with_context(session_id=session.session_id).info(
                f"Conversation closed (connection={connection_id}, "
                f"turns={len(session.conversation_history) // 2})"
            )
        return session

    def _dispatch_persistence(
        self,
        store: ConversationStore,
        before: Session,
        result: TurnResult,
        utterance: str,
    ) -> None:
        after = result.session
        self.background.spawn(
            self._record_turn_pair(store, after.session_id, utterance, result.reply_text),
            name=f"record_turn:{after.session_id}",
        )

        # One upsert per turn that completes or changes the customer profile
        fields = store.required_fields
        before_profile = customer_profile(before.context, fields)
        after_profile = customer_profile(after.context, fields)
        profile_changed = before_profile != after_profile
        if profile_changed and is_profile_complete(after.context, fields):
            self.background.spawn(
                store.upsert_customer_if_complete(after.session_id, dict(after.context)),
                name=f"upsert_customer:{after.session_id}",
            )

    @staticmethod
    async def _record_turn_pair(
        store: ConversationStore, session_id: str, utterance: str, reply_text: str
    ) -> None:
        await store.record_turn(session_id, Role.USER, utterance)
        await store.record_turn(session_id, Role.AI, reply_text)
