"""Runtime: turn coordination and background side effects."""

from waypoint.runtime.background import BackgroundTasks
from waypoint.runtime.coordinator import TurnCoordinator, Welcome

__all__ = ["BackgroundTasks", "TurnCoordinator", "Welcome"]
