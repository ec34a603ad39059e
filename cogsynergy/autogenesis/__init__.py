"""Autogenesis: evolutionary growth of synergy networks.

Analyze -> Generate Nodes -> Generate Links -> Evaluate Fitness -> Accept/Reject,
plus an independent mutation pass for periodic maintenance.
"""

from cogsynergy.autogenesis.engine import AutogenesisEngine
from cogsynergy.autogenesis.results import AutogenesisResult, FitnessEvaluation

__all__ = [
    "AutogenesisEngine",
    "AutogenesisResult",
    "FitnessEvaluation",
]
