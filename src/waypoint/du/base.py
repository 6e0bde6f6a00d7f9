"""Base class and result validation for DSPy modules.

Provides shared functionality for:
- Configurable ChainOfThought vs Predict
- Strict conversion of raw LLM output into Pydantic models
"""

import json
from abc import abstractmethod
from typing import Any, ClassVar, TypeVar, cast

import dspy
from pydantic import BaseModel, ValidationError

from waypoint.core.errors import OracleParsingError

T = TypeVar("T", bound=BaseModel)


def validate_dspy_result(result: Any, model_class: type[T]) -> T:
    """Validate and convert a DSPy result to a strict Pydantic model.

    Handles various return formats:
    - Already correct model instance
    - Dict
    - JSON text (providers in JSON mode)
    - DSPy Prediction object (extracts from _store or model_dump)

    Raises:
        OracleParsingError: If the payload is missing, malformed or fails validation
    """
    if result is None:
        raise OracleParsingError(f"Cannot validate None result against {model_class.__name__}")

    try:
        # Case 1: Already correct type
        if isinstance(result, model_class):
            return result

        # Case 2: JSON text
        if isinstance(result, (str, bytes)):
            try:
                result = json.loads(result)
            except json.JSONDecodeError as e:
                raise OracleParsingError(f"Non-JSON payload for {model_class.__name__}: {e}") from e

        # Case 3: Dict
        if isinstance(result, dict):
            return cast(T, model_class.model_validate(result))

        # Case 4: DSPy Prediction object (or similar)
        if hasattr(result, "_store") and isinstance(result._store, dict):
            return cast(T, model_class.model_validate(result._store))

        if hasattr(result, "model_dump") and callable(result.model_dump):
            return cast(T, model_class.model_validate(result.model_dump()))
    except ValidationError as e:
        raise OracleParsingError(f"Invalid {model_class.__name__} payload: {e}") from e

    raise OracleParsingError(
        f"Cannot convert result of type {type(result).__name__} to {model_class.__name__}"
    )


class DSPyModule(dspy.Module):
    """Base class for the DSPy modules used by the oracle and handlers.

    Subclasses override `_create_predictor()` to bind their signature and
    implement `aforward()` with their own I/O types.
    """

    default_use_cot: ClassVar[bool] = False

    def __init__(self, use_cot: bool | None = None):
        """
        Args:
            use_cot: ChainOfThought when True, plain Predict when False,
                the class default when None.
        """
        super().__init__()
        self.predictor = self._create_predictor(
            self.default_use_cot if use_cot is None else use_cot
        )

    @abstractmethod
    def _create_predictor(self, use_cot: bool) -> dspy.Module:
        """Return the dspy.Predict or dspy.ChainOfThought bound to the signature."""
        ...
