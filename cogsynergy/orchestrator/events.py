"""Notifications raised by the orchestrator and their fan-out hub.

Subscribers are plain callables invoked synchronously, in subscription
order, on the task that raised the notification. A failing subscriber is
logged and skipped; it never affects the caller or other subscribers.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Union

from cogsynergy.network.models import CognitiveNode, SynergyLink, SynergyNetwork, utc_now

logger = logging.getLogger(__name__)


@dataclass
class EmergenceEvent:
    """A network's synergy score reached its emergence threshold."""
    network: SynergyNetwork
    synergy_score: float
    new_capabilities: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utc_now)


@dataclass
class AutogenesisEvent:
    """An autogenesis cycle generated components (accepted or not)."""
    network: SynergyNetwork
    generated_nodes: list[CognitiveNode] = field(default_factory=list)
    generated_links: list[SynergyLink] = field(default_factory=list)
    trigger_conditions: dict[str, Any] = field(default_factory=dict)
    success: bool = False
    fitness_score: float = 0.0
    timestamp: datetime = field(default_factory=utc_now)


Notification = Union[EmergenceEvent, AutogenesisEvent]
Subscriber = Callable[[Notification], Any]


class NotificationHub:
    """Synchronous publish/subscribe for orchestrator notifications."""

    def __init__(self):
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Subscriber) -> None:
        if callback is None:
            raise ValueError("callback is required")
        with self._lock:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> bool:
        """Remove a subscriber. Returns False if it was not subscribed."""
        with self._lock:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                return False
            return True

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, notification: Notification) -> None:
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(notification)
            except Exception:
                logger.error(
                    "Subscriber %r failed handling %s",
                    callback,
                    type(notification).__name__,
                    exc_info=True,
                )
