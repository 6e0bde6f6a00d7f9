"""In-process counters for transition anomalies."""

import threading
from collections import Counter
from enum import Enum


class TransitionEvent(str, Enum):
    """Things worth counting about a turn."""

    TURN = "turns"
    ORACLE_FALLBACK = "oracle_fallbacks"
    ORACLE_TIMEOUT = "oracle_timeouts"
    INVALID_NODE_PROPOSAL = "invalid_node_proposals"
    OUT_OF_CANDIDATES = "out_of_candidate_transitions"
    HANDLER_FAILURE = "handler_failures"


class TransitionTelemetry:
    """Thread-safe counters shared by every turn of an engine."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._lock = threading.Lock()

    def increment(self, event: TransitionEvent, amount: int = 1) -> None:
        with self._lock:
            self._counts[event.value] += amount

    def get(self, event: TransitionEvent) -> int:
        with self._lock:
            return self._counts[event.value]

    def snapshot(self) -> dict[str, int]:
        """All counters, including zeros, keyed by event value."""
        with self._lock:
            return {event.value: self._counts[event.value] for event in TransitionEvent}

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()
