"""Configuration module for Waypoint."""

from waypoint.config.loader import ConfigLoader
from waypoint.config.models import NodeConfig, WaypointConfig
from waypoint.config.settings import Settings

__all__ = ["ConfigLoader", "NodeConfig", "Settings", "WaypointConfig"]
