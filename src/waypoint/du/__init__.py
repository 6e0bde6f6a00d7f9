"""Dialogue understanding: the oracle collaborator and its fallback."""

from waypoint.du.fallback import extract_basic_inputs, fallback_analysis
from waypoint.du.models import CandidateNode, DemoRequest, InputAnalysis
from waypoint.du.oracle import DSPyOracle, Oracle

__all__ = [
    "CandidateNode",
    "DemoRequest",
    "InputAnalysis",
    "Oracle",
    "DSPyOracle",
    "extract_basic_inputs",
    "fallback_analysis",
]
