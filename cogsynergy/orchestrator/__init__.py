"""Network registry, evaluation loop and notifications."""

from cogsynergy.orchestrator.events import (
    AutogenesisEvent,
    EmergenceEvent,
    Notification,
    NotificationHub,
)
from cogsynergy.orchestrator.orchestrator import (
    BASIC_COGNITIVE_NODES,
    DEFAULT_NETWORK_NAME,
    SynergyOrchestrator,
)

__all__ = [
    "BASIC_COGNITIVE_NODES",
    "DEFAULT_NETWORK_NAME",
    "AutogenesisEvent",
    "EmergenceEvent",
    "Notification",
    "NotificationHub",
    "SynergyOrchestrator",
]
