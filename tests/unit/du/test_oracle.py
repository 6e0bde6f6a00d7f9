"""Tests for the DSPy-backed oracle and modules, with predictors mocked."""

from unittest.mock import AsyncMock, MagicMock

import dspy
import pytest

from waypoint.core.errors import OracleParsingError, OracleProviderError
from waypoint.du.models import DemoRequest, InputAnalysis
from waypoint.du.modules import DemoScheduler, ProductExpert, TurnAnalyzer, to_dspy_history
from waypoint.du.oracle import DSPyOracle


def _analyzer_returning(prediction) -> TurnAnalyzer:
    analyzer = TurnAnalyzer()
    analyzer.predictor = MagicMock()
    analyzer.predictor.acall = AsyncMock(return_value=prediction)
    return analyzer


def test_to_dspy_history_maps_roles():
    # Act
    history = to_dspy_history(["User: hi", "AI: hello", "untagged"])

    # Assert
    assert history.messages == [
        {"role": "user", "content": "hi"},
        {"role": "assistant", "content": "hello"},
        {"role": "assistant", "content": "untagged"},
    ]


def test_use_cot_selects_chain_of_thought():
    # Act & Assert
    assert isinstance(TurnAnalyzer(use_cot=True).predictor, dspy.ChainOfThought)
    assert isinstance(TurnAnalyzer(use_cot=False).predictor, dspy.Predict)


@pytest.mark.asyncio
async def test_oracle_expands_candidates_from_graph(sales_graph):
    # Arrange
    expected = InputAnalysis(
        next_node_id="collect_email",
        user_inputs={"name": "Alex"},
        confidence=0.9,
        suggested_response="Hi Alex",
    )
    analyzer = _analyzer_returning(dspy.Prediction(result=expected))
    oracle = DSPyOracle(sales_graph, analyzer)

    # Act
    result = await oracle.analyze(
        "I'm Alex", ["User: hi", "AI: hello"], {}, ["collect_email", "schedule_demo"]
    )

    # Assert
    assert result == expected
    kwargs = analyzer.predictor.acall.await_args.kwargs
    assert kwargs["user_message"] == "I'm Alex"
    candidates = kwargs["candidate_nodes"]
    assert [c.id for c in candidates] == ["collect_email", "schedule_demo"]
    assert candidates[1].required_fields == ["email", "name"]
    assert candidates[1].description == "Schedule a product demo for the user"


@pytest.mark.asyncio
async def test_analyzer_wraps_provider_errors():
    # Arrange
    analyzer = TurnAnalyzer()
    analyzer.predictor = MagicMock()
    analyzer.predictor.acall = AsyncMock(side_effect=ConnectionError("refused"))

    # Act & Assert
    with pytest.raises(OracleProviderError, match="refused"):
        await analyzer.aforward("hi", {}, [])


@pytest.mark.asyncio
async def test_analyzer_rejects_missing_result():
    # Arrange
    analyzer = _analyzer_returning(dspy.Prediction())

    # Act & Assert
    with pytest.raises(OracleParsingError):
        await analyzer.aforward("hi", {}, [])


@pytest.mark.asyncio
async def test_product_expert_returns_answer():
    # Arrange
    expert = ProductExpert()
    expert.predictor = MagicMock()
    expert.predictor.acall = AsyncMock(return_value=dspy.Prediction(answer="It has SSO."))

    # Act
    answer = await expert.aforward("SSO?", {"product_choice": "B"}, ["User: hi"])

    # Assert
    assert answer == "It has SSO."


@pytest.mark.asyncio
async def test_demo_scheduler_validates_request():
    # Arrange
    scheduler = DemoScheduler()
    scheduler.predictor = MagicMock()
    scheduler.predictor.acall = AsyncMock(
        return_value=dspy.Prediction(
            request={"name": "Alex", "email": "a@b.co", "date": "2024-11-23T10:00:00"}
        )
    )

    # Act
    request = await scheduler.aforward({"name": "Alex", "email": "a@b.co"}, "2024-11-22")

    # Assert
    assert request == DemoRequest(name="Alex", email="a@b.co", date="2024-11-23T10:00:00")
