"""Observability: logging setup."""

from waypoint.observability.logging import ContextAdapter, ContextLogger, setup_logging

__all__ = ["ContextAdapter", "ContextLogger", "setup_logging"]
