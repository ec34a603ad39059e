"""Per-interaction synergy dynamics and network maintenance."""

from cogsynergy.synergy.manager import (
    ACTIVATION_THRESHOLD,
    CognitiveLoadAnalysis,
    CognitiveSynergyManager,
    NetworkPattern,
)

__all__ = [
    "ACTIVATION_THRESHOLD",
    "CognitiveLoadAnalysis",
    "CognitiveSynergyManager",
    "NetworkPattern",
]
