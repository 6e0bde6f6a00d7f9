"""Transition engine: one conversational turn.

Given a session and a user utterance, asks the oracle for a transition,
validates and applies it, runs the landed node's handler and picks the
reply. The engine keeps no session state between calls and never mutates
the session it is given, so distinct sessions can be processed
concurrently.
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from waypoint.core.constants import HANDLER_APOLOGY, ORACLE_APOLOGY, ReplyPolicy
from waypoint.core.errors import HandlerFailureError, InvalidStateError, OracleTimeoutError
from waypoint.core.session import Session, advance, append_turn, merge_context
from waypoint.core.types import HandlerResult, TurnResult
from waypoint.dm.graph import NodeGraph
from waypoint.dm.nodes import Node
from waypoint.dm.telemetry import TransitionEvent, TransitionTelemetry
from waypoint.du.base import validate_dspy_result
from waypoint.du.fallback import fallback_analysis
from waypoint.du.models import InputAnalysis
from waypoint.du.oracle import Oracle

logger = logging.getLogger(__name__)


def select_reply(node: Node, suggested_response: str, handler_text: str) -> str:
    """Combine oracle and handler text according to the node's reply policy.

    REPLACE: the handler's text wins.
    SUPPLEMENT: the oracle's suggestion wins unless it is empty.
    """
    if node.reply_policy is ReplyPolicy.REPLACE:
        return handler_text
    return suggested_response or handler_text


class TransitionEngine:
    """Applies oracle-proposed transitions over an immutable node graph."""

    def __init__(
        self,
        graph: NodeGraph,
        oracle: Oracle,
        *,
        oracle_timeout: float | None = 20.0,
        handler_timeout: float | None = 30.0,
        oracle_apology: str = ORACLE_APOLOGY,
        handler_apology: str = HANDLER_APOLOGY,
        telemetry: TransitionTelemetry | None = None,
    ) -> None:
        self.graph = graph
        self.oracle = oracle
        self.oracle_timeout = oracle_timeout
        self.handler_timeout = handler_timeout
        self.oracle_apology = oracle_apology
        self.handler_apology = handler_apology
        self.telemetry = telemetry or TransitionTelemetry()

    async def handle_turn(self, session: Session, utterance: str) -> TurnResult:
        """Process one user utterance.

        Raises:
            InvalidStateError: If the session points at a node the graph does not have
        """
        current = self.graph.get(session.current_node_id)
        if current is None:
            raise InvalidStateError(
                f"Session {session.session_id} references unknown node "
                f"'{session.current_node_id}'",
                session_id=session.session_id,
                node_id=session.current_node_id,
            )

        self.telemetry.increment(TransitionEvent.TURN)
        # Terminal nodes have no successors: degrade in place
        fallback_node_id = current.fallback_node_id or current.id

        analysis, degraded = await self._analyze(session, current, utterance, fallback_node_id)

        if analysis.next_node_id not in self.graph:
            logger.warning(
                f"Oracle proposed unknown node '{analysis.next_node_id}' "
                f"(session={session.session_id}, from={current.id}); using fallback "
                f"'{fallback_node_id}'"
            )
            self.telemetry.increment(TransitionEvent.INVALID_NODE_PROPOSAL)
            analysis = fallback_analysis(utterance, fallback_node_id, self.oracle_apology)
            degraded = True
        elif analysis.next_node_id not in current.next_node_ids:
            # Accepted: the oracle may branch outside the declared edges
            logger.warning(
                f"Out-of-candidate transition {current.id} -> {analysis.next_node_id} "
                f"(session={session.session_id}, candidates={list(current.next_node_ids)})"
            )
            self.telemetry.increment(TransitionEvent.OUT_OF_CANDIDATES)

        landed = self.graph.get(analysis.next_node_id)
        assert landed is not None  # validated above

        context = merge_context(session.context, analysis.user_inputs)
        reply_text = analysis.suggested_response
        handler_failed = False

        if landed.handler is not None:
            # Handlers observe post-merge context and a history that already
            # carries this turn, with the oracle's suggestion as the reply
            provisional = advance(
                session,
                node_id=landed.id,
                context=context,
                history=append_turn(
                    session.conversation_history, utterance, analysis.suggested_response
                ),
            )
            handler_text, handler_failed = await self._run_handler(landed, utterance, provisional)
            reply_text = select_reply(landed, analysis.suggested_response, handler_text)

        updated = advance(
            session,
            node_id=landed.id,
            context=context,
            history=append_turn(session.conversation_history, utterance, reply_text),
        )

        logger.info(
            f"Turn processed session={session.session_id} {current.id} -> {landed.id} "
            f"confidence={analysis.confidence:.2f} degraded={degraded} "
            f"handler_failed={handler_failed}"
        )
        return TurnResult(
            reply_text=reply_text,
            session=updated,
            oracle_degraded=degraded,
            handler_failed=handler_failed,
        )

    async def _analyze(
        self,
        session: Session,
        current: Node,
        utterance: str,
        fallback_node_id: str,
    ) -> tuple[InputAnalysis, bool]:
        """Call the oracle under a timeout; any failure yields the fallback analysis."""
        try:
            raw = await asyncio.wait_for(
                self.oracle.analyze(
                    utterance,
                    list(session.conversation_history),
                    dict(session.context),
                    list(current.next_node_ids),
                ),
                timeout=self.oracle_timeout,
            )
            return validate_dspy_result(raw, InputAnalysis), False
        except asyncio.TimeoutError:
            error: Exception = OracleTimeoutError(
                f"Oracle did not answer within {self.oracle_timeout}s"
            )
            self.telemetry.increment(TransitionEvent.ORACLE_TIMEOUT)
        except Exception as e:
            error = e

        logger.warning(
            f"Oracle unavailable for session={session.session_id} at node={current.id}: "
            f"{type(error).__name__}: {error}. Falling back to '{fallback_node_id}'"
        )
        self.telemetry.increment(TransitionEvent.ORACLE_FALLBACK)
        return fallback_analysis(utterance, fallback_node_id, self.oracle_apology), True

    async def _run_handler(
        self,
        node: Node,
        utterance: str,
        session: Session,
    ) -> tuple[str, bool]:
        """Run the node handler in isolation.

        Returns:
            Tuple of (handler text, failed). On failure or timeout the text is
            the generic handler apology.
        """
        assert node.handler is not None
        # Handlers get their own copies; nothing they do leaks into the turn
        snapshot = session.model_copy(deep=True)
        history = list(snapshot.conversation_history)
        context: Mapping[str, Any] = dict(snapshot.context)

        logger.info(f"Executing node handler {node.handler_name or node.id} at node={node.id}")
        if not node.is_satisfied(context):
            logger.debug(f"Node {node.id} still missing fields: {node.missing_fields(context)}")
        try:
            result = await self._invoke_handler(node, utterance, history, context, snapshot)
        except HandlerFailureError as e:
            logger.error(str(e), exc_info=True)
            self.telemetry.increment(TransitionEvent.HANDLER_FAILURE)
            return self.handler_apology, True

        text = result.reply_text if isinstance(result, HandlerResult) else str(result)
        logger.debug(f"Node handler {node.handler_name or node.id} returned: {text!r}")
        return text, False

    async def _invoke_handler(
        self,
        node: Node,
        utterance: str,
        history: list[str],
        context: Mapping[str, Any],
        session: Session,
    ) -> Any:
        """Await the handler under the handler timeout.

        Raises:
            HandlerFailureError: If the handler raises or times out
        """
        assert node.handler is not None
        name = node.handler_name or node.id
        try:
            return await asyncio.wait_for(
                node.handler(utterance, history, context, session),
                timeout=self.handler_timeout,
            )
        except asyncio.TimeoutError as e:
            raise HandlerFailureError(
                f"Node handler {name} timed out after {self.handler_timeout}s "
                f"(session={session.session_id})",
                node_id=node.id,
            ) from e
        except Exception as e:
            raise HandlerFailureError(
                f"Node handler {name} failed (session={session.session_id}): "
                f"{type(e).__name__}: {e}",
                node_id=node.id,
            ) from e

    def render_welcome(self) -> str:
        return self.graph.render_welcome()
