"""Runtime Initializer - component creation and wiring.

Turns a WaypointConfig into a ready TurnCoordinator: handlers, node
graph, oracle, transition engine, persistence store and background
task runner.
"""

import logging

from waypoint.actions.demo import SCHEDULE_DEMO_HANDLER, schedule_demo_handler_factory
from waypoint.actions.products import PRODUCT_DETAILS_HANDLER, make_product_details_handler
from waypoint.actions.registry import HandlerRegistry
from waypoint.config.models import WaypointConfig
from waypoint.dm.builder import build_graph
from waypoint.dm.engine import TransitionEngine
from waypoint.dm.graph import NodeGraph
from waypoint.dm.telemetry import TransitionTelemetry
from waypoint.du.modules import DemoScheduler, ProductExpert, TurnAnalyzer
from waypoint.du.oracle import DSPyOracle, Oracle
from waypoint.persistence.base import ConversationStore
from waypoint.persistence.memory import InMemoryConversationStore
from waypoint.runtime.background import BackgroundTasks
from waypoint.runtime.coordinator import TurnCoordinator

logger = logging.getLogger(__name__)


def register_builtin_handlers(
    registry: HandlerRegistry,
    store: ConversationStore | None = None,
    background: BackgroundTasks | None = None,
    product_expert: ProductExpert | None = None,
    demo_scheduler: DemoScheduler | None = None,
) -> HandlerRegistry:
    """Add the product Q&A and demo handlers under names not already taken."""
    if PRODUCT_DETAILS_HANDLER not in registry:
        registry.register_handler(
            PRODUCT_DETAILS_HANDLER, make_product_details_handler(product_expert)
        )
    if SCHEDULE_DEMO_HANDLER not in registry:
        registry.register_factory(
            SCHEDULE_DEMO_HANDLER, schedule_demo_handler_factory(demo_scheduler, store, background)
        )
    return registry


class RuntimeComponents:
    """Container for initialized runtime components."""

    def __init__(
        self,
        config: WaypointConfig,
        registry: HandlerRegistry,
        graph: NodeGraph,
        engine: TransitionEngine,
        store: ConversationStore,
        background: BackgroundTasks,
        coordinator: TurnCoordinator,
    ):
        self.config = config
        self.registry = registry
        self.graph = graph
        self.engine = engine
        self.store = store
        self.background = background
        self.coordinator = coordinator

    @property
    def telemetry(self) -> TransitionTelemetry:
        return self.engine.telemetry

    async def shutdown(self, drain_timeout: float | None = 5.0) -> None:
        """Let in-flight side effects finish, then release the store."""
        await self.background.drain(timeout=drain_timeout)
        await self.store.close()
        logger.info("Runtime components shut down")


class RuntimeInitializer:
    """Initializes runtime components for conversation processing."""

    def __init__(
        self,
        config: WaypointConfig,
        oracle: Oracle | None = None,
        store: ConversationStore | None = None,
        registry: HandlerRegistry | None = None,
        product_expert: ProductExpert | None = None,
        demo_scheduler: DemoScheduler | None = None,
    ):
        """Initialize the initializer.

        Args:
            config: Waypoint configuration.
            oracle: Optional pre-built oracle (dependency injection). A
                DSPyOracle over the built graph is created otherwise.
            store: Optional persistence store. Built from settings otherwise.
            registry: Optional handler registry. Built-in handlers are added
                under names it does not already define.
            product_expert: DSPy module for the product Q&A handler.
            demo_scheduler: DSPy module for the demo scheduling handler.
        """
        self.config = config
        self._oracle = oracle
        self._store = store
        self._registry = registry
        self._product_expert = product_expert
        self._demo_scheduler = demo_scheduler

    def _create_store(self) -> ConversationStore:
        settings = self.config.settings
        required = settings.conversation.customer_required_fields
        if settings.persistence.backend == "sql":
            # Lazy import: the memory backend does not load SQLAlchemy
            from waypoint.persistence.sql import SqlConversationStore

            return SqlConversationStore(settings.persistence.url, required_fields=required)
        return InMemoryConversationStore(required_fields=required)

    async def initialize(self) -> RuntimeComponents:
        """Create and wire all runtime components.

        Raises:
            GraphBuildError: If the node definitions are inconsistent
            PersistenceError: If the store cannot be initialized
        """
        settings = self.config.settings
        background = BackgroundTasks()
        store = self._store or self._create_store()
        await store.initialize()

        registry = register_builtin_handlers(
            self._registry or HandlerRegistry(),
            store,
            background,
            product_expert=self._product_expert,
            demo_scheduler=self._demo_scheduler,
        )
        graph = build_graph(self.config.nodes, registry, settings.conversation.start_node)

        oracle = self._oracle or DSPyOracle(
            graph, TurnAnalyzer(use_cot=settings.oracle.use_reasoning)
        )
        engine = TransitionEngine(
            graph,
            oracle,
            oracle_timeout=settings.oracle.timeout_seconds,
            handler_timeout=settings.handlers.timeout_seconds,
            oracle_apology=settings.conversation.apology_message,
        )
        coordinator = TurnCoordinator(engine, store=store, background=background)

        logger.info(
            f"Runtime components initialized (nodes={len(graph)}, "
            f"store={type(store).__name__}, handlers={registry.names})"
        )
        return RuntimeComponents(
            config=self.config,
            registry=registry,
            graph=graph,
            engine=engine,
            store=store,
            background=background,
            coordinator=coordinator,
        )
