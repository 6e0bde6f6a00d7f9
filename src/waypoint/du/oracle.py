"""Oracle collaborator: interface and DSPy-backed implementation."""

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol

from waypoint.du.models import CandidateNode, InputAnalysis
from waypoint.du.modules import TurnAnalyzer

if TYPE_CHECKING:
    from waypoint.dm.graph import NodeGraph

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    """Interface for the reasoning oracle.

    Implementations may raise any exception; the transition engine treats
    every failure (including timeouts it imposes itself) as OracleUnavailable.
    The return value may be an InputAnalysis or any raw payload (dict, JSON
    text) the engine can validate into one.
    """

    async def analyze(
        self,
        utterance: str,
        history: Sequence[str],
        context: Mapping[str, Any],
        candidate_node_ids: Sequence[str],
    ) -> InputAnalysis | Mapping[str, Any] | str:
        """Propose the next node and extract fields from ``utterance``."""
        ...


class DSPyOracle:
    """Oracle backed by the TurnAnalyzer DSPy module.

    Candidate ids are expanded into full node descriptors from the graph so
    the LLM sees descriptions and required fields, not bare ids.
    """

    def __init__(self, graph: "NodeGraph", analyzer: TurnAnalyzer | None = None) -> None:
        self.graph = graph
        self.analyzer = analyzer or TurnAnalyzer()

    def _describe_candidates(self, candidate_node_ids: Sequence[str]) -> list[CandidateNode]:
        candidates = []
        for node_id in candidate_node_ids:
            node = self.graph.get(node_id)
            if node is None:
                candidates.append(CandidateNode(id=node_id, description=node_id))
                continue
            candidates.append(
                CandidateNode(
                    id=node.id,
                    description=node.description,
                    required_fields=sorted(node.required_fields),
                    prompt_template=node.prompt_template,
                )
            )
        return candidates

    async def analyze(
        self,
        utterance: str,
        history: Sequence[str],
        context: Mapping[str, Any],
        candidate_node_ids: Sequence[str],
    ) -> InputAnalysis:
        logger.debug(
            f"Analyzing input with candidates={list(candidate_node_ids)} "
            f"history_len={len(history)}"
        )
        analysis = await self.analyzer.aforward(
            user_message=utterance,
            context=context,
            candidates=self._describe_candidates(candidate_node_ids),
            history=history,
        )
        logger.debug(
            f"Oracle proposed next_node_id={analysis.next_node_id} "
            f"confidence={analysis.confidence:.2f}"
        )
        return analysis
