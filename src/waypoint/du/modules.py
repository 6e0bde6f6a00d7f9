"""DSPy modules backing the oracle and the node handlers.

Async-first, using native .acall(). Failures raise; the transition engine
decides how a turn degrades.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import dspy

from waypoint.core.constants import Role
from waypoint.core.errors import OracleProviderError, OracleUnavailableError
from waypoint.core.session import parse_turn
from waypoint.du.base import DSPyModule, validate_dspy_result
from waypoint.du.models import CandidateNode, DemoRequest, InputAnalysis
from waypoint.du.signatures import AnalyzeTurn, AnswerProductQuestion, ScheduleDemo


def to_dspy_history(history: Sequence[str]) -> dspy.History:
    """Convert role-tagged history entries into a dspy.History."""
    messages = []
    for entry in history:
        role, text = parse_turn(entry)
        messages.append(
            {
                "role": "user" if role is Role.USER else "assistant",
                "content": text,
            }
        )
    return dspy.History(messages=messages)


class TurnAnalyzer(DSPyModule):
    """Proposes the next node and extracts fields from a user message.

    Features:
    - Native async with .acall()
    - Optional ChainOfThought reasoning (configurable)
    - Pydantic InputAnalysis output, validated strictly
    """

    default_use_cot = False

    def _create_predictor(self, use_cot: bool) -> dspy.Module:
        """Create the turn analysis predictor."""
        if use_cot:
            return dspy.ChainOfThought(AnalyzeTurn)
        return dspy.Predict(AnalyzeTurn)

    async def aforward(
        self,
        user_message: str,
        context: Mapping[str, Any],
        candidates: list[CandidateNode],
        history: Sequence[str] = (),
    ) -> InputAnalysis:
        """Analyze one user message (async).

        Raises:
            OracleProviderError: If the LM call fails
            OracleParsingError: If the output does not validate as InputAnalysis
        """
        try:
            result = await self.predictor.acall(
                user_message=user_message,
                user_details=dict(context),
                candidate_nodes=candidates,
                history=to_dspy_history(history),
            )
        except OracleUnavailableError:
            raise
        except Exception as e:
            raise OracleProviderError(f"Turn analysis failed: {e}") from e

        return validate_dspy_result(getattr(result, "result", None), InputAnalysis)

    def forward(
        self,
        user_message: str,
        context: Mapping[str, Any],
        candidates: list[CandidateNode],
        history: Sequence[str] = (),
    ) -> InputAnalysis:
        """Sync version (for testing/evaluation)."""
        result = self.predictor(
            user_message=user_message,
            user_details=dict(context),
            candidate_nodes=candidates,
            history=to_dspy_history(history),
        )
        return validate_dspy_result(getattr(result, "result", None), InputAnalysis)


class ProductExpert(DSPyModule):
    """Answers product questions from context and history."""

    def _create_predictor(self, use_cot: bool) -> dspy.Module:
        if use_cot:
            return dspy.ChainOfThought(AnswerProductQuestion)
        return dspy.Predict(AnswerProductQuestion)

    async def aforward(
        self,
        question: str,
        context: Mapping[str, Any],
        history: Sequence[str] = (),
    ) -> str:
        result = await self.predictor.acall(
            question=question,
            user_details=dict(context),
            history=to_dspy_history(history),
        )
        return str(getattr(result, "answer", "") or "")


class DemoScheduler(DSPyModule):
    """Fills in a demo request from the customer context."""

    def _create_predictor(self, use_cot: bool) -> dspy.Module:
        if use_cot:
            return dspy.ChainOfThought(ScheduleDemo)
        return dspy.Predict(ScheduleDemo)

    async def aforward(self, context: Mapping[str, Any], today: str) -> DemoRequest:
        result = await self.predictor.acall(user_details=dict(context), today=today)
        return validate_dspy_result(getattr(result, "request", None), DemoRequest)
