"""Product Q&A node handler."""

import logging
from collections.abc import Mapping
from typing import Any

from waypoint.core.types import HandlerResult, History
from waypoint.du.modules import ProductExpert

logger = logging.getLogger(__name__)

PRODUCT_DETAILS_HANDLER = "product_details"


def make_product_details_handler(expert: ProductExpert | None = None):
    """Build the handler that answers product questions with the LLM.

    Errors from the expert propagate; the engine turns them into the
    handler apology.
    """
    expert = expert or ProductExpert()

    async def product_details(
        utterance: str,
        history: History,
        context: Mapping[str, Any],
        session: Any,
    ) -> HandlerResult:
        answer = await expert.aforward(question=utterance, context=context, history=history)
        logger.debug(f"Product expert answered {len(answer)} chars")
        return HandlerResult(reply_text=answer.strip())

    return product_details
