"""Package version, taken from the installed distribution metadata."""

import re
from importlib.metadata import PackageNotFoundError, version
from typing import NamedTuple

try:
    __version__ = version("waypoint")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0-dev"

_VERSION_PATTERN = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(.+))?$")


class VersionInfo(NamedTuple):
    major: int
    minor: int
    patch: str
    full: str


def get_version_info(raw: str = __version__) -> VersionInfo:
    """Split ``raw`` into major, minor and patch. Patch keeps any suffix (``0-dev``)."""
    match = _VERSION_PATTERN.match(raw)
    if match is None:
        return VersionInfo(0, 0, "0", raw)
    major, minor, patch = match.groups()
    return VersionInfo(int(major), int(minor or 0), patch or "0", raw)
