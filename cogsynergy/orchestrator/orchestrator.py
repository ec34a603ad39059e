"""Synergy Orchestrator: registry of networks and the evaluation loop.

Two paths drive the networks:
1. Caller-driven: process_activity() runs once per external interaction
2. Timer-driven: a background task calls evaluate_synergy() every
   evaluation interval (and run_maintenance() every N cycles when
   configured)

Both paths end the same way: per-network emergence checks, then one
autogenesis pass gated on the mean score across all networks.

Cancellation is cooperative. Each network's step is preceded by a yield
point, so a cancelled task stops between networks and never part-way
through mutating one.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from types import MappingProxyType
from typing import Mapping, Optional

from cogsynergy.autogenesis.engine import AutogenesisEngine
from cogsynergy.config import AutogenesisConfig
from cogsynergy.network.activity import Activity
from cogsynergy.network.models import CognitiveNode, SynergyLink, SynergyNetwork
from cogsynergy.orchestrator.events import (
    AutogenesisEvent,
    EmergenceEvent,
    Notification,
    NotificationHub,
)
from cogsynergy.settings import get_settings
from cogsynergy.synergy.manager import CognitiveSynergyManager

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_NAME = "DefaultNetwork"
DEFAULT_EMERGENCE_THRESHOLD = 0.7
DEFAULT_LEARNING_RATE = 0.1

# Seed capabilities of the default network: (name, node_type)
BASIC_COGNITIVE_NODES = [
    ("MessageProcessor", "SchemaNode"),
    ("IntentRecognition", "PredicateNode"),
    ("ResponseGeneration", "SchemaNode"),
    ("ContextManager", "ConceptNode"),
    ("DialogManager", "SchemaNode"),
]


class SynergyOrchestrator:
    """Owns the synergy networks and coordinates manager, engine and timer.

    Usage:
        orchestrator = SynergyOrchestrator()
        orchestrator.notifications.subscribe(on_event)
        await orchestrator.initialize(config)
        await orchestrator.process_activity(Activity(text="hello"))
        await orchestrator.stop()
    """

    def __init__(
        self,
        synergy_manager: Optional[CognitiveSynergyManager] = None,
        autogenesis_engine: Optional[AutogenesisEngine] = None,
        notifications: Optional[NotificationHub] = None,
    ):
        self.synergy_manager = synergy_manager or CognitiveSynergyManager()
        self.autogenesis_engine = autogenesis_engine or AutogenesisEngine()
        self.notifications = notifications or NotificationHub()

        self._config: Optional[AutogenesisConfig] = None
        self._networks: dict[str, SynergyNetwork] = {}
        self._registry_lock = threading.Lock()

        self._running = False
        self._evaluation_task: Optional[asyncio.Task] = None
        self._cycles = 0

    @property
    def config(self) -> Optional[AutogenesisConfig]:
        return self._config

    @property
    def networks(self) -> Mapping[str, SynergyNetwork]:
        """Read-only snapshot of the network registry."""
        with self._registry_lock:
            return MappingProxyType(dict(self._networks))

    @property
    def is_running(self) -> bool:
        return self._running

    def get_network(self, network_id: str) -> Optional[SynergyNetwork]:
        if not network_id:
            return None
        with self._registry_lock:
            return self._networks.get(network_id)

    def _snapshot(self) -> list[SynergyNetwork]:
        with self._registry_lock:
            return list(self._networks.values())

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def initialize(self, config: Optional[AutogenesisConfig] = None) -> SynergyNetwork:
        """Initialize components, seed the default network and arm the timer.

        Args:
            config: Shared configuration; built from COGSYNERGY_* settings if None

        Returns:
            The default network
        """
        if config is None:
            config = get_settings().to_autogenesis_config()
        self._config = config

        logger.info("Initializing synergy orchestrator with configuration: %s", config.name)

        await self.synergy_manager.initialize(config)
        await self.autogenesis_engine.initialize(config)

        network = self.create_network(DEFAULT_NETWORK_NAME, config)
        self._add_basic_cognitive_nodes(network)

        if config.enabled and config.evaluation_interval_ms > 0:
            await self.start()

        logger.info("Synergy orchestrator initialized successfully")
        return network

    def _add_basic_cognitive_nodes(self, network: SynergyNetwork) -> None:
        for name, node_type in BASIC_COGNITIVE_NODES:
            network.add_node(CognitiveNode(name=name, node_type=node_type))
        logger.debug("Added %d basic cognitive nodes to network %s", len(BASIC_COGNITIVE_NODES), network.name)

    async def start(self) -> None:
        """Start the periodic evaluation task."""
        if self._running:
            logger.warning("Evaluation loop already running")
            return
        if self._config is None or self._config.evaluation_interval_ms <= 0:
            logger.warning("Evaluation loop not started: no positive evaluation interval configured")
            return

        self._running = True
        self._cycles = 0
        self._evaluation_task = asyncio.create_task(self._evaluation_loop())
        logger.info("Periodic synergy evaluation started (every %d ms)", self._config.evaluation_interval_ms)

    async def stop(self) -> None:
        """Stop the periodic evaluation task. No callbacks fire afterwards."""
        self._running = False

        if self._evaluation_task:
            self._evaluation_task.cancel()
            try:
                await self._evaluation_task
            except asyncio.CancelledError:
                pass
            self._evaluation_task = None

        logger.info("Periodic synergy evaluation stopped")

    async def __aenter__(self) -> "SynergyOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def _evaluation_loop(self) -> None:
        """Background task that runs periodic evaluation and maintenance."""
        while self._running:
            try:
                await asyncio.sleep(self._config.evaluation_interval_seconds)
                if not self._running:
                    break
                await self.evaluate_synergy()

                self._cycles += 1
                every = self._config.maintenance_every
                if every > 0 and self._cycles % every == 0:
                    await self.run_maintenance()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.error("Error during periodic synergy evaluation", exc_info=True)

    # =========================================================================
    # Registry operations
    # =========================================================================

    def create_network(self, name: str, config: Optional[AutogenesisConfig] = None) -> SynergyNetwork:
        """Create and register an empty network.

        Raises:
            ValueError: If name is empty
        """
        if not name:
            raise ValueError("Network name cannot be empty")

        network = SynergyNetwork(
            name=name,
            emergence_threshold=config.synergy_threshold if config is not None else DEFAULT_EMERGENCE_THRESHOLD,
            learning_rate=config.learning_rate if config is not None else DEFAULT_LEARNING_RATE,
        )
        with self._registry_lock:
            self._networks[network.id] = network

        logger.info("Created synergy network: %s (ID: %s)", name, network.id)
        return network

    def add_node(self, network_id: str, node: Optional[CognitiveNode]) -> bool:
        """Add a node to a registered network.

        Returns:
            False if the network id is empty or unknown, or node is None

        Raises:
            ValueError: If the node has an empty id
        """
        if not network_id or node is None:
            return False
        if not node.id:
            raise ValueError("Node id cannot be empty")

        network = self.get_network(network_id)
        if network is None:
            return False

        network.add_node(node)
        logger.debug("Added cognitive node %s to network %s", node.id, network_id)
        return True

    def create_link(self, network_id: str, link: Optional[SynergyLink]) -> bool:
        """Add a link to a registered network.

        Returns:
            False if the network id is empty or unknown, or link is None

        Raises:
            ValueError: If the link has an empty id
        """
        if not network_id or link is None:
            return False
        if not link.id:
            raise ValueError("Link id cannot be empty")

        network = self.get_network(network_id)
        if network is None:
            return False

        network.add_link(link)
        logger.debug("Created synergy link %s in network %s", link.id, network_id)
        return True

    def get_overall_synergy_score(self) -> float:
        """Mean synergy score across networks (0 with no networks)."""
        networks = self._snapshot()
        if not networks:
            return 0.0
        return sum(network.calculate_synergy_score() for network in networks) / len(networks)

    # =========================================================================
    # Processing paths
    # =========================================================================

    async def process_activity(self, activity: Optional[Activity]) -> list[Notification]:
        """Feed one activity through every network.

        Returns:
            Notifications raised while processing

        Raises:
            Exception: Any internal failure, after logging
        """
        if activity is None:
            return []

        logger.debug("Processing activity %s through cognitive synergy networks", activity.id)
        raised: list[Notification] = []

        try:
            for network in self._snapshot():
                await asyncio.sleep(0)
                await self.synergy_manager.process_activity(network, activity)

                score = network.calculate_synergy_score()
                if score >= network.emergence_threshold:
                    raised.append(await self._handle_emergence(network, score))

            if self._config is not None and self.get_overall_synergy_score() >= self._config.synergy_threshold:
                raised.extend(await self._run_autogenesis())
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.error("Error processing activity through synergy orchestrator", exc_info=True)
            raise

        return raised

    async def evaluate_synergy(self) -> list[Notification]:
        """Emergence check per network plus one gated autogenesis pass."""
        logger.debug("Evaluating cognitive synergy across all networks")
        raised: list[Notification] = []

        for network in self._snapshot():
            await asyncio.sleep(0)
            score = network.calculate_synergy_score()
            if score >= network.emergence_threshold:
                raised.append(await self._handle_emergence(network, score))

        config = self._config
        if config is not None and config.enabled and self.get_overall_synergy_score() >= config.synergy_threshold:
            raised.extend(await self._run_autogenesis())

        return raised

    async def trigger_autogenesis(self, force: bool = False) -> list[AutogenesisEvent]:
        """Run autogenesis on demand.

        Args:
            force: Skip the aggregate synergy threshold (enabled is still required)
        """
        config = self._config
        if config is None or not config.enabled:
            return []
        if not force and self.get_overall_synergy_score() < config.synergy_threshold:
            logger.debug("Autogenesis not triggered: overall synergy below threshold")
            return []
        return await self._run_autogenesis()

    async def run_maintenance(self) -> int:
        """Optimize and mutate every network.

        Returns:
            Total number of links pruned
        """
        mutation_rate = self._config.mutation_rate if self._config is not None else 0.0
        pruned = 0
        for network in self._snapshot():
            await asyncio.sleep(0)
            pruned += await self.synergy_manager.optimize_network(network)
            await self.autogenesis_engine.apply_mutations(network, mutation_rate, self._config)

        logger.info("Maintenance pass complete: %d links pruned", pruned)
        return pruned

    async def _handle_emergence(self, network: SynergyNetwork, score: float) -> EmergenceEvent:
        logger.info(
            "Cognitive emergence detected in network %s with synergy score %.3f",
            network.name,
            score,
        )
        event = EmergenceEvent(
            network=network,
            synergy_score=score,
            new_capabilities=await self.synergy_manager.identify_emergent_capabilities(network),
        )
        self.notifications.publish(event)
        return event

    async def _run_autogenesis(self) -> list[AutogenesisEvent]:
        config = self._config
        if config is None or not config.enabled:
            return []

        logger.info("Triggering autogenesis process")
        events: list[AutogenesisEvent] = []

        for network in self._snapshot():
            await asyncio.sleep(0)
            result = await self.autogenesis_engine.generate_components(network, config)

            if result.generated_anything:
                event = AutogenesisEvent(
                    network=network,
                    generated_nodes=result.generated_nodes,
                    generated_links=result.generated_links,
                    trigger_conditions=result.trigger_conditions,
                    success=result.success,
                    fitness_score=result.fitness_score,
                )
                self.notifications.publish(event)
                events.append(event)

        return events
