"""Shared fixtures for Waypoint tests.

Uses scripted oracles and stub DSPy modules so no test calls an LLM.
"""

import logging

import pytest

from tests.mocks import ScriptedOracle, StubDemoScheduler, StubProductExpert
from waypoint.actions.demo import schedule_demo_handler_factory
from waypoint.actions.products import make_product_details_handler
from waypoint.actions.registry import HandlerRegistry
from waypoint.config.models import WaypointConfig
from waypoint.core.session import create_session
from waypoint.dm.builder import build_graph
from waypoint.dm.engine import TransitionEngine
from waypoint.persistence.memory import InMemoryConversationStore
from waypoint.runtime.background import BackgroundTasks


@pytest.fixture
def product_expert() -> StubProductExpert:
    return StubProductExpert()


@pytest.fixture
def demo_scheduler() -> StubDemoScheduler:
    return StubDemoScheduler()


@pytest.fixture
def store() -> InMemoryConversationStore:
    return InMemoryConversationStore()


@pytest.fixture
def background() -> BackgroundTasks:
    return BackgroundTasks()


@pytest.fixture
def registry(product_expert, demo_scheduler, store, background) -> HandlerRegistry:
    """Registry with the built-in handlers backed by stubs."""
    registry = HandlerRegistry()
    registry.register_handler("product_details", make_product_details_handler(product_expert))
    registry.register_factory(
        "schedule_demo", schedule_demo_handler_factory(demo_scheduler, store, background)
    )
    return registry


@pytest.fixture
def sales_graph(registry):
    """The default sales graph with stubbed handlers."""
    return build_graph(registry=registry)


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def engine(sales_graph, oracle) -> TransitionEngine:
    return TransitionEngine(sales_graph, oracle, oracle_timeout=1.0, handler_timeout=1.0)


@pytest.fixture
def session():
    return create_session("welcome", session_id="session-1")


@pytest.fixture
def memory_config() -> WaypointConfig:
    """Defaults with the in-memory store and no log file."""
    return WaypointConfig.model_validate(
        {"settings": {"persistence": {"backend": "memory"}, "logging": {"file": None}}}
    )


@pytest.fixture(autouse=True)
def _restore_logging():
    """Remove what setup_logging() installed so tests do not leak handlers."""
    root = logging.getLogger()
    waypoint = logging.getLogger("waypoint")
    root_level, waypoint_level = root.level, waypoint.level
    yield
    for logger in (root, waypoint):
        for handler in list(logger.handlers):
            if handler.get_name() in ("console", "file"):
                logger.removeHandler(handler)
                handler.close()
    root.setLevel(root_level)
    waypoint.setLevel(waypoint_level)
    waypoint.propagate = True
