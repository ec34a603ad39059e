"""Cognitive synergy network entities.

This module provides the passive data holders of the engine:
1. CognitiveNode: weighted vertex for one capability
2. SynergyLink: weighted edge with activation statistics
3. SynergyNetwork: owned node/link tables with the synergy score
4. Activity: inbound interaction record
"""

from cogsynergy.network.models import (
    LINK_DEACTIVATION_STRENGTH,
    CognitiveNode,
    MetadataValue,
    SynergyLink,
    SynergyNetwork,
    clamp_unit,
    utc_now,
)
from cogsynergy.network.activity import MESSAGE_ACTIVITY, Activity

__all__ = [
    "LINK_DEACTIVATION_STRENGTH",
    "MESSAGE_ACTIVITY",
    "Activity",
    "CognitiveNode",
    "MetadataValue",
    "SynergyLink",
    "SynergyNetwork",
    "clamp_unit",
    "utc_now",
]
