"""Cognitive Synergy Manager: per-interaction dynamics over a network.

Each inbound activity runs one round of:
    ACTIVATE -> PROPAGATE -> DECAY -> REINFORCE

1. ACTIVATE: nodes whose relevance to the activity reaches 0.5 gain
   attention proportional to relevance * learning rate
2. PROPAGATE: every active outgoing link of an activated node fires and
   passes strength * source attention * 0.1 to its target
3. DECAY: nodes not activated this round lose 5% attention (floor 0.1)
4. REINFORCE: links touching an activated node that have fired at least
   once are strengthened by learning rate * 0.01

Maintenance (optimize_network) prunes weak unused links, rebalances
attention away from bottlenecks and nudges link strengths by usage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from cogsynergy.network.activity import MESSAGE_ACTIVITY, Activity
from cogsynergy.network.models import CognitiveNode, SynergyNetwork, utc_now

if TYPE_CHECKING:
    from cogsynergy.config import AutogenesisConfig

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

ACTIVATION_THRESHOLD = 0.5
BASE_RELEVANCE = 0.5
SCHEMA_MESSAGE_BONUS = 0.3  # SchemaNode on a "message" activity
PREDICATE_TEXT_BONUS = 0.2  # PredicateNode when the activity has text
CONCEPT_BONUS = 0.1
ATTENTION_RELEVANCE_WEIGHT = 0.2

PROPAGATION_FACTOR = 0.1
ATTENTION_DECAY = 0.95
ATTENTION_FLOOR = 0.1
REINFORCEMENT_FACTOR = 0.01

NOVELTY_ATTENTION_THRESHOLD = 0.7

# Load analysis
CONNECTION_LOAD_WEIGHT = 0.4
ATTENTION_LOAD_WEIGHT = 0.6
BOTTLENECK_LOAD = 0.8
UNDERUTILIZED_LOAD = 0.3
OVERLOAD_THRESHOLD = 0.8

# Optimization
PRUNE_STRENGTH = 0.2
PRUNE_MAX_ACTIVATIONS = 10
BOTTLENECK_ATTENTION_SCALE = 0.9
UNDERUTILIZED_ATTENTION_SCALE = 1.1
HEAVY_USE_ACTIVATIONS = 100
LIGHT_USE_ACTIVATIONS = 10
STALE_LINK_AGE = timedelta(hours=24)
STRENGTH_ADJUSTMENT = 0.01

DEFAULT_LEARNING_RATE = 0.1


@dataclass
class CognitiveLoadAnalysis:
    """Distribution of attention and connection load across a network.

    Attributes:
        overall_load: Mean attention of the active nodes
        node_load_distribution: Per-node load keyed by node id
        bottleneck_nodes: Ids of nodes with load above 0.8
        underutilized_nodes: Ids of nodes with load below 0.3
        optimization_recommendations: Human-readable suggestions
    """
    overall_load: float = 0.0
    node_load_distribution: dict[str, float] = field(default_factory=dict)
    bottleneck_nodes: list[str] = field(default_factory=list)
    underutilized_nodes: list[str] = field(default_factory=list)
    optimization_recommendations: list[str] = field(default_factory=list)


@dataclass
class NetworkPattern:
    """A group of nodes joined by active links."""
    description: str
    strength: float
    node_ids: list[str] = field(default_factory=list)


class CognitiveSynergyManager:
    """Drives activation, propagation and maintenance for synergy networks.

    The manager is stateless apart from the shared config; every network
    it touches is mutated in place while holding that network's lock.
    """

    def __init__(self):
        self._config: Optional["AutogenesisConfig"] = None

    @property
    def config(self) -> Optional["AutogenesisConfig"]:
        return self._config

    async def initialize(self, config: "AutogenesisConfig") -> None:
        """Attach the shared configuration.

        Raises:
            ValueError: If config is None
        """
        if config is None:
            raise ValueError("config is required")
        self._config = config
        logger.info("Cognitive synergy manager initialized with configuration: %s", config.name)

    def _learning_rate(self, network: SynergyNetwork) -> float:
        if self._config is not None:
            return self._config.learning_rate
        return network.learning_rate if network.learning_rate is not None else DEFAULT_LEARNING_RATE

    # =========================================================================
    # Activity processing
    # =========================================================================

    async def process_activity(self, network: Optional[SynergyNetwork], activity: Optional[Activity]) -> None:
        """Run one activation round for an activity.

        Mutates node and link state in place. Errors are logged and re-raised;
        updates applied before the failure are kept.
        """
        if network is None or activity is None:
            return

        logger.debug("Processing activity %s through synergy network: %s", activity.id, network.name)

        try:
            with network.lock:
                activated = self._activate_relevant_nodes(network, activity)
                self._propagate_information(network, activated)
                self._decay_attention(network, activated)
                self._reinforce_active_links(network, activated)
        except Exception:
            logger.error("Error processing activity through synergy network %s", network.name, exc_info=True)
            raise

    def calculate_node_relevance(self, node: CognitiveNode, activity_type: str, activity_text: str) -> float:
        """Relevance of a node to an activity, capped at 1.0."""
        relevance = BASE_RELEVANCE

        if node.node_type == "SchemaNode":
            if activity_type == MESSAGE_ACTIVITY:
                relevance += SCHEMA_MESSAGE_BONUS
        elif node.node_type == "PredicateNode":
            if activity_text:
                relevance += PREDICATE_TEXT_BONUS
        elif node.node_type == "ConceptNode":
            relevance += CONCEPT_BONUS

        relevance += node.attention_value * ATTENTION_RELEVANCE_WEIGHT
        return max(0.0, min(1.0, relevance))

    def _activate_relevant_nodes(self, network: SynergyNetwork, activity: Activity) -> list[CognitiveNode]:
        activated = []
        learning_rate = self._learning_rate(network)
        text = activity.normalized_text
        now = utc_now()

        for node in network.active_nodes():
            relevance = self.calculate_node_relevance(node, activity.type, text)
            if relevance >= ACTIVATION_THRESHOLD:
                node.attention_value = min(1.0, node.attention_value + relevance * learning_rate)
                node.touch(now)
                activated.append(node)

        return activated

    def _propagate_information(self, network: SynergyNetwork, activated: list[CognitiveNode]) -> None:
        for node in activated:
            for link_id in list(node.outgoing_links):
                link = network.links.get(link_id)
                if link is None or not link.is_active:
                    continue

                link.activate()

                target = network.nodes.get(link.target_node_id)
                if target is not None:
                    transfer = link.strength * node.attention_value
                    target.attention_value = min(1.0, target.attention_value + transfer * PROPAGATION_FACTOR)

    def _decay_attention(self, network: SynergyNetwork, activated: list[CognitiveNode]) -> None:
        activated_ids = {node.id for node in activated}
        for node in network.nodes.values():
            if node.id not in activated_ids:
                node.attention_value = max(ATTENTION_FLOOR, node.attention_value * ATTENTION_DECAY)

    def _reinforce_active_links(self, network: SynergyNetwork, activated: list[CognitiveNode]) -> None:
        reinforcement = self._learning_rate(network) * REINFORCEMENT_FACTOR
        for node in activated:
            for link_id in node.outgoing_links + node.incoming_links:
                link = network.links.get(link_id)
                if link is not None and link.is_active and link.activation_count > 0:
                    link.strengthen(reinforcement)

    # =========================================================================
    # Emergence detection
    # =========================================================================

    async def identify_emergent_capabilities(self, network: Optional[SynergyNetwork]) -> list[str]:
        """Describe capabilities that emerge from the current network state.

        Returns an empty list on error; the cause is logged.
        """
        if network is None:
            return []

        capabilities: list[str] = []
        try:
            with network.lock:
                threshold = network.emergence_threshold

                for pattern in self.analyze_network_patterns(network):
                    if pattern.strength >= threshold:
                        capabilities.append(f"Pattern-based capability: {pattern.description}")

                for combination in self._identify_novel_combinations(network):
                    capabilities.append(f"Novel cognitive combination: {combination}")

                cluster_score = network.calculate_synergy_score()
                if cluster_score >= threshold:
                    capabilities.append("Synergy cluster capability: Primary cognitive processing cluster")

            logger.info(
                "Identified %d emergent capabilities in network %s",
                len(capabilities),
                network.name,
            )
        except Exception:
            logger.error("Error identifying emergent capabilities in network %s", network.name, exc_info=True)
            return []

        return capabilities

    def analyze_network_patterns(self, network: SynergyNetwork) -> list[NetworkPattern]:
        """Find connected groups of nodes over active links.

        Each component with two or more nodes is a pattern whose strength
        is the mean strength of the active links inside it.
        """
        parent = {node_id: node_id for node_id in network.nodes}

        def find(node_id: str) -> str:
            while parent[node_id] != node_id:
                parent[node_id] = parent[parent[node_id]]
                node_id = parent[node_id]
            return node_id

        component_links = []
        for link in network.active_links():
            if link.source_node_id in parent and link.target_node_id in parent:
                root_a, root_b = find(link.source_node_id), find(link.target_node_id)
                if root_a != root_b:
                    parent[root_a] = root_b
                component_links.append(link)

        members: dict[str, list[str]] = {}
        for node_id in network.nodes:
            members.setdefault(find(node_id), []).append(node_id)

        strengths: dict[str, list[float]] = {}
        for link in component_links:
            strengths.setdefault(find(link.source_node_id), []).append(link.strength)

        patterns = []
        for root, node_ids in members.items():
            if len(node_ids) < 2 or root not in strengths:
                continue
            values = strengths[root]
            patterns.append(NetworkPattern(
                description=f"Highly connected cluster with {len(node_ids)} nodes",
                strength=sum(values) / len(values),
                node_ids=node_ids,
            ))
        return patterns

    def _identify_novel_combinations(self, network: SynergyNetwork) -> list[str]:
        combinations = []
        nodes = [
            n for n in network.active_nodes()
            if n.attention_value > NOVELTY_ATTENTION_THRESHOLD
        ]
        for i, first in enumerate(nodes):
            for second in nodes[i + 1:]:
                if not network.has_direct_link(first.id, second.id):
                    combinations.append(f"{first.name} <-> {second.name}")
        return combinations

    # =========================================================================
    # Load analysis and optimization
    # =========================================================================

    def analyze_cognitive_load(self, network: Optional[SynergyNetwork]) -> CognitiveLoadAnalysis:
        """Compute per-node load and flag bottlenecks and idle nodes."""
        analysis = CognitiveLoadAnalysis()
        if network is None:
            return analysis

        with network.lock:
            active_nodes = network.active_nodes()
            if not active_nodes:
                return analysis

            analysis.overall_load = sum(n.attention_value for n in active_nodes) / len(active_nodes)
            max_connections = len(network.nodes) - 1

            for node in active_nodes:
                connection_ratio = node.connection_count / max_connections if max_connections > 0 else 0.0
                load = connection_ratio * CONNECTION_LOAD_WEIGHT + node.attention_value * ATTENTION_LOAD_WEIGHT
                analysis.node_load_distribution[node.id] = load

                if load > BOTTLENECK_LOAD:
                    analysis.bottleneck_nodes.append(node.id)
                elif load < UNDERUTILIZED_LOAD:
                    analysis.underutilized_nodes.append(node.id)

        if analysis.bottleneck_nodes:
            analysis.optimization_recommendations.append("Consider distributing load from bottleneck nodes")
        if analysis.underutilized_nodes:
            analysis.optimization_recommendations.append("Increase utilization of underused cognitive nodes")
        if analysis.overall_load > OVERLOAD_THRESHOLD:
            analysis.optimization_recommendations.append("Consider adding more cognitive nodes to handle load")

        return analysis

    async def optimize_network(self, network: Optional[SynergyNetwork], now: Optional[datetime] = None) -> int:
        """Prune, rebalance and tune a network.

        Args:
            network: Network to optimize
            now: Optional datetime override for testing

        Returns:
            Number of links pruned
        """
        if network is None:
            return 0

        logger.debug("Optimizing synergy network: %s", network.name)
        now = now or utc_now()

        try:
            with network.lock:
                load = self.analyze_cognitive_load(network)
                pruned = self._prune_weak_links(network)
                self._rebalance_attention(network, load)
                self._optimize_link_strengths(network, now)
        except Exception:
            logger.error("Error optimizing network %s", network.name, exc_info=True)
            raise

        logger.info("Network optimization completed for: %s (%d links pruned)", network.name, pruned)
        return pruned

    def _prune_weak_links(self, network: SynergyNetwork) -> int:
        weak = [
            link.id for link in network.links.values()
            if link.strength < PRUNE_STRENGTH and link.activation_count < PRUNE_MAX_ACTIVATIONS
        ]
        for link_id in weak:
            network.remove_link(link_id)
            logger.debug("Pruned weak link: %s", link_id)
        return len(weak)

    def _rebalance_attention(self, network: SynergyNetwork, load: CognitiveLoadAnalysis) -> None:
        for node_id in load.bottleneck_nodes:
            node = network.nodes.get(node_id)
            if node is not None:
                node.attention_value = max(ATTENTION_FLOOR, node.attention_value * BOTTLENECK_ATTENTION_SCALE)

        for node_id in load.underutilized_nodes:
            node = network.nodes.get(node_id)
            if node is not None:
                node.attention_value = min(1.0, node.attention_value * UNDERUTILIZED_ATTENTION_SCALE)

    def _optimize_link_strengths(self, network: SynergyNetwork, now: datetime) -> None:
        for link in network.links.values():
            if link.activation_count > HEAVY_USE_ACTIVATIONS:
                link.strengthen(STRENGTH_ADJUSTMENT)
            elif link.activation_count < LIGHT_USE_ACTIVATIONS and link.age(now) > STALE_LINK_AGE:
                link.weaken(STRENGTH_ADJUSTMENT)
