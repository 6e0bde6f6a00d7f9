"""DSPy Configuration Service.

Handles bootstrapping DSPy with the oracle model settings from WaypointConfig.
"""

import logging

import dspy

from waypoint.config import WaypointConfig

logger = logging.getLogger(__name__)


class DSPyBootstrapper:
    """Bootstrapper for DSPy configuration."""

    def __init__(self, config: WaypointConfig):
        self.config = config

    @staticmethod
    def bootstrap(config: WaypointConfig) -> dspy.LM:
        """Static helper to bootstrap DSPy from config."""
        bootstrapper = DSPyBootstrapper(config)
        return bootstrapper.configure()

    def configure(self) -> dspy.LM:
        """Configure DSPy with the settings from config.

        The model id is ``provider/model`` as understood by LiteLLM; provider
        credentials (e.g. TOGETHER_API_KEY) are read from the environment by
        the client library.
        """
        oracle = self.config.settings.oracle
        lm = dspy.LM(oracle.model_id, temperature=oracle.temperature)
        dspy.configure(lm=lm)
        logger.info(f"DSPy configured with {oracle.model_id} (temperature={oracle.temperature})")
        return lm
