"""Autogenesis Engine: evolutionary generation of nodes and links.

One generation cycle runs:
    ANALYZE -> GENERATE NODES -> GENERATE LINKS -> EVALUATE -> ACCEPT/REJECT

1. ANALYZE: connectivity, isolated nodes, attention variance, low
   connectivity gaps and the number of nodes the network may still grow by
2. GENERATE NODES: sample new nodes from templates (concept templates are
   preferred while isolated nodes exist)
3. GENERATE LINKS: connect each new node to its best-affinity partners,
   then close the strongest unconnected pairs across the network
4. EVALUATE: blend node fitness, link fitness, connectivity gain and
   synergy enhancement into one score
5. ACCEPT/REJECT: merge the batch through the network's add operations only
   when the score reaches the fitness threshold

The mutation pass (apply_mutations) is independent of the cycle and is
meant to run periodically as maintenance.

All randomness comes from a single numpy Generator so a seeded engine is
reproducible.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from cogsynergy.autogenesis.results import AutogenesisResult, FitnessEvaluation
from cogsynergy.config import (
    DEFAULT_LINK_TEMPLATES,
    DEFAULT_NODE_TEMPLATES,
    AutogenesisConfig,
    CognitiveNodeTemplate,
    SynergyLinkTemplate,
    install_default_templates,
)
from cogsynergy.network.models import (
    CognitiveNode,
    SynergyLink,
    SynergyNetwork,
    clamp_unit,
    utc_now,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

GROWTH_FACTOR_NUMERATOR = 6  # growth ceiling is ceil(n * 6 / 5)
GROWTH_FACTOR_DENOMINATOR = 5
LOW_CONNECTIVITY_LINKS = 2

# Sampling ranges for generated components
NODE_ATTENTION_RANGE = (0.5, 1.0)
NODE_CONFIDENCE_RANGE = (0.7, 1.0)
NODE_STRENGTH_RANGE = (0.6, 1.0)
LINK_STRENGTH_RANGE = (0.5, 0.9)
LINK_CONFIDENCE_RANGE = (0.6, 1.0)
LINK_ATTENTION_RANGE = (0.4, 0.8)
BIDIRECTIONAL_CUTOFF = 0.7  # draw above this -> bidirectional (30%)

# Link proposal
PARTNERS_PER_NODE = 3
PARTNER_AFFINITY = 0.5
MAX_GAP_LINKS = 5
GAP_AFFINITY = 0.6

# Affinity weights
SAME_TYPE_AFFINITY = 0.3
DIFFERENT_TYPE_AFFINITY = 0.1
ATTENTION_AFFINITY_WEIGHT = 0.4
STRENGTH_AFFINITY_WEIGHT = 0.3

# Mutation
NODE_ATTENTION_MUTATION = (0.5, 0.1)  # (probability, jitter amplitude)
NODE_CONFIDENCE_MUTATION = (0.3, 0.05)
NODE_STRENGTH_MUTATION = (0.3, 0.05)
LINK_STRENGTH_MUTATION = (0.4, 0.1)
LINK_CONFIDENCE_MUTATION = (0.2, 0.05)
STRUCTURAL_ADD_PROBABILITY = 0.5
STRUCTURAL_REMOVE_STRENGTH = 0.3

MUTATION_LINK_TEMPLATE = SynergyLinkTemplate(name="MutationLink", link_type="SimilarityLink")


def _pair_key(node_a: str, node_b: str) -> tuple[str, str]:
    return (node_a, node_b) if node_a <= node_b else (node_b, node_a)


class AutogenesisEngine:
    """Generates, evaluates and mutates synergy network components.

    Args:
        random_seed: Seed for the internal numpy Generator (None = entropy)
    """

    def __init__(self, random_seed: Optional[int] = None):
        self._rng = np.random.default_rng(random_seed)
        self._config: Optional[AutogenesisConfig] = None

    @property
    def config(self) -> Optional[AutogenesisConfig]:
        return self._config

    async def initialize(self, config: AutogenesisConfig) -> None:
        """Attach the config, installing default templates where it has none.

        Raises:
            ValueError: If config is None
        """
        if config is None:
            raise ValueError("config is required")
        self._config = install_default_templates(config)
        logger.info(
            "Autogenesis engine initialized with %d node templates and %d link templates",
            len(config.node_templates),
            len(config.link_templates),
        )

    def _resolve_config(self, config: Optional[AutogenesisConfig]) -> AutogenesisConfig:
        resolved = config or self._config
        if resolved is None:
            raise ValueError("AutogenesisEngine has no configuration; call initialize() first")
        return resolved

    def _uniform(self, bounds: tuple[float, float]) -> float:
        low, high = bounds
        return float(self._rng.uniform(low, high))

    # =========================================================================
    # Analysis
    # =========================================================================

    def analyze_generation_opportunities(
        self,
        network: SynergyNetwork,
        config: Optional[AutogenesisConfig] = None,
    ) -> dict[str, Any]:
        """Summarize where the network could grow.

        Returns:
            Dict with NetworkConnectivity, IsolatedNodeCount,
            AttentionVariance, SynergyGaps and GrowthPotential
        """
        config = self._resolve_config(config)
        node_count = len(network.nodes)

        connectivity = len(network.links) / (node_count * (node_count - 1)) if node_count > 1 else 0.0
        isolated = sum(1 for node in network.nodes.values() if node.is_isolated)

        attention = np.array([node.attention_value for node in network.nodes.values()], dtype=float)
        variance = float(np.var(attention)) if attention.size else 0.0

        gaps = [
            f"LowConnectivity_{node.id}"
            for node in network.nodes.values()
            if node.connection_count < LOW_CONNECTIVITY_LINKS
        ]

        growth_ceiling = -(-node_count * GROWTH_FACTOR_NUMERATOR // GROWTH_FACTOR_DENOMINATOR)
        growth = max(0, min(config.max_auto_nodes, growth_ceiling) - node_count)

        return {
            "NetworkConnectivity": connectivity,
            "IsolatedNodeCount": isolated,
            "AttentionVariance": variance,
            "SynergyGaps": gaps,
            "GrowthPotential": growth,
        }

    # =========================================================================
    # Component factories
    # =========================================================================

    def generate_cognitive_node(
        self,
        template: CognitiveNodeTemplate,
        trigger_conditions: Optional[dict[str, Any]] = None,
    ) -> CognitiveNode:
        """Sample a new node from a template.

        Raises:
            ValueError: If template is None
        """
        if template is None:
            raise ValueError("template is required")

        now = utc_now()
        suffix = int(self._rng.integers(1000, 10000))
        node = CognitiveNode(
            name=f"{template.name}_{now:%Y%m%d%H%M%S}_{suffix}",
            node_type=template.node_type,
            attention_value=self._uniform(NODE_ATTENTION_RANGE),
            confidence=self._uniform(NODE_CONFIDENCE_RANGE),
            strength=self._uniform(NODE_STRENGTH_RANGE),
        )
        node.metadata.update(template.base_properties)
        node.metadata["GenerationTriggers"] = dict(trigger_conditions or {})
        node.metadata["GenerationTimestamp"] = now.isoformat()
        node.metadata["TemplateUsed"] = template.name
        return node

    def generate_synergy_link(
        self,
        template: SynergyLinkTemplate,
        source_node_id: str,
        target_node_id: str,
        trigger_conditions: Optional[dict[str, Any]] = None,
    ) -> SynergyLink:
        """Sample a new link from a template.

        Raises:
            ValueError: If template is None or either node id is empty
        """
        if template is None or not source_node_id or not target_node_id:
            raise ValueError("Invalid template or node IDs")

        link = SynergyLink(
            source_node_id=source_node_id,
            target_node_id=target_node_id,
            link_type=template.link_type,
            strength=self._uniform(LINK_STRENGTH_RANGE),
            confidence=self._uniform(LINK_CONFIDENCE_RANGE),
            attention_value=self._uniform(LINK_ATTENTION_RANGE),
            is_bidirectional=bool(self._rng.random() > BIDIRECTIONAL_CUTOFF),
        )
        link.metadata.update(template.base_properties)
        link.metadata["GenerationTriggers"] = dict(trigger_conditions or {})
        link.metadata["GenerationTimestamp"] = utc_now().isoformat()
        link.metadata["TemplateUsed"] = template.name
        return link

    def calculate_node_affinity(self, node_a: CognitiveNode, node_b: CognitiveNode) -> float:
        """Pairwise affinity in [0, 1] from type match, attention and strength."""
        affinity = SAME_TYPE_AFFINITY if node_a.node_type == node_b.node_type else DIFFERENT_TYPE_AFFINITY
        affinity += ATTENTION_AFFINITY_WEIGHT * (1.0 - abs(node_a.attention_value - node_b.attention_value))
        affinity += STRENGTH_AFFINITY_WEIGHT * (1.0 - abs(node_a.strength - node_b.strength))
        return affinity

    # =========================================================================
    # Generation cycle
    # =========================================================================

    async def generate_components(
        self,
        network: Optional[SynergyNetwork],
        config: Optional[AutogenesisConfig] = None,
    ) -> AutogenesisResult:
        """Run one full generate/evaluate/accept cycle against a network.

        Failures never raise: they are logged and reported through
        error_messages on an unsuccessful result.
        """
        if network is None:
            return AutogenesisResult(success=False, error_messages=["Invalid network or configuration"])
        try:
            config = self._resolve_config(config)
        except ValueError as e:
            return AutogenesisResult(success=False, error_messages=[str(e)])

        result = AutogenesisResult()
        logger.debug("Starting autogenesis for network: %s", network.name)

        try:
            with network.lock:
                opportunities = self.analyze_generation_opportunities(network, config)
                result.trigger_conditions = opportunities

                result.generated_nodes = self._generate_nodes(network, opportunities, config)
                result.generated_links = self._generate_links(
                    network, result.generated_nodes, opportunities, config
                )

                evaluation = self.evaluate_fitness(
                    network,
                    result.generated_nodes,
                    result.generated_links,
                    fitness_threshold=config.fitness_threshold,
                )
                result.fitness = evaluation
                result.fitness_score = evaluation.overall_fitness

                if evaluation.meets_fitness_threshold:
                    for node in result.generated_nodes:
                        network.add_node(node)
                    for link in result.generated_links:
                        network.add_link(link)
                    result.success = True
                    logger.info(
                        "Autogenesis successful: generated %d nodes and %d links for network %s",
                        len(result.generated_nodes),
                        len(result.generated_links),
                        network.name,
                    )
                else:
                    result.success = False
                    result.error_messages.append(
                        f"Generated components did not meet fitness threshold: "
                        f"{evaluation.overall_fitness:.3f} < {config.fitness_threshold:.3f}"
                    )
                    logger.debug(
                        "Autogenesis rejected for network %s (fitness %.3f)",
                        network.name,
                        evaluation.overall_fitness,
                    )
        except Exception as e:
            logger.error("Error during autogenesis for network %s", network.name, exc_info=True)
            result.success = False
            result.error_messages.append(str(e))

        return result

    def _node_templates(self, config: AutogenesisConfig) -> list[CognitiveNodeTemplate]:
        return config.node_templates or DEFAULT_NODE_TEMPLATES

    def _link_templates(self, config: AutogenesisConfig) -> list[SynergyLinkTemplate]:
        return config.link_templates or DEFAULT_LINK_TEMPLATES

    def _select_node_template(
        self,
        opportunities: dict[str, Any],
        config: AutogenesisConfig,
    ) -> Optional[CognitiveNodeTemplate]:
        templates = self._node_templates(config)
        if not templates:
            return None

        if opportunities.get("IsolatedNodeCount", 0) > 0:
            for template in templates:
                if template.node_type == "ConceptNode":
                    return template
            return templates[0]

        return templates[int(self._rng.integers(len(templates)))]

    def _select_link_template(self, config: AutogenesisConfig) -> Optional[SynergyLinkTemplate]:
        templates = self._link_templates(config)
        if not templates:
            return None
        return templates[int(self._rng.integers(len(templates)))]

    def _generate_nodes(
        self,
        network: SynergyNetwork,
        opportunities: dict[str, Any],
        config: AutogenesisConfig,
    ) -> list[CognitiveNode]:
        budget = min(
            opportunities.get("GrowthPotential", 0),
            config.max_auto_nodes - len(network.nodes),
        )
        nodes = []
        for _ in range(max(0, budget)):
            template = self._select_node_template(opportunities, config)
            if template is None:
                break
            nodes.append(self.generate_cognitive_node(template, opportunities))
        return nodes

    def _generate_links(
        self,
        network: SynergyNetwork,
        new_nodes: list[CognitiveNode],
        opportunities: dict[str, Any],
        config: AutogenesisConfig,
    ) -> list[SynergyLink]:
        # Links only accompany new nodes; no growth means no links
        if not new_nodes:
            return []

        budget = max(0, config.max_auto_links - len(network.links))
        if budget == 0:
            return []

        candidates = list(network.nodes.values()) + new_nodes
        linked = {_pair_key(l.source_node_id, l.target_node_id) for l in network.links.values()}
        links: list[SynergyLink] = []

        def propose(source: CognitiveNode, target: CognitiveNode) -> bool:
            template = self._select_link_template(config)
            if template is None:
                return False
            links.append(self.generate_synergy_link(template, source.id, target.id, opportunities))
            linked.add(_pair_key(source.id, target.id))
            return True

        for node in new_nodes:
            scored = [
                (self.calculate_node_affinity(node, other), other)
                for other in candidates
                if other.id != node.id and _pair_key(node.id, other.id) not in linked
            ]
            scored.sort(key=lambda pair: pair[0], reverse=True)
            for affinity, other in scored[:PARTNERS_PER_NODE]:
                if affinity <= PARTNER_AFFINITY or len(links) >= budget:
                    break
                if not propose(node, other):
                    return links

        if len(links) < budget:
            for source, target in self._find_connectivity_gaps(candidates, linked, config):
                if len(links) >= budget:
                    break
                if not propose(source, target):
                    break

        return links

    def _find_connectivity_gaps(
        self,
        candidates: list[CognitiveNode],
        linked: set[tuple[str, str]],
        config: AutogenesisConfig,
    ) -> list[tuple[CognitiveNode, CognitiveNode]]:
        """Highest-affinity unlinked pairs, over a bounded node sample."""
        if len(candidates) > config.max_gap_scan_nodes:
            picks = self._rng.choice(len(candidates), size=config.max_gap_scan_nodes, replace=False)
            candidates = [candidates[int(i)] for i in sorted(picks)]

        gaps = []
        for i, first in enumerate(candidates):
            for second in candidates[i + 1:]:
                if _pair_key(first.id, second.id) in linked:
                    continue
                affinity = self.calculate_node_affinity(first, second)
                if affinity > GAP_AFFINITY:
                    gaps.append((affinity, first, second))

        gaps.sort(key=lambda gap: gap[0], reverse=True)
        return [(first, second) for _, first, second in gaps[:MAX_GAP_LINKS]]

    # =========================================================================
    # Fitness
    # =========================================================================

    def evaluate_fitness(
        self,
        network: SynergyNetwork,
        generated_nodes: list[CognitiveNode],
        generated_links: list[SynergyLink],
        fitness_threshold: Optional[float] = None,
    ) -> FitnessEvaluation:
        """Score a proposed batch without merging it.

        Args:
            network: Network the batch would be merged into
            generated_nodes: Proposed nodes
            generated_links: Proposed links
            fitness_threshold: Acceptance threshold (defaults to the config's)
        """
        if fitness_threshold is None:
            fitness_threshold = self._resolve_config(None).fitness_threshold

        evaluation = FitnessEvaluation()
        mean_attention = network.mean_attention(default=0.5)
        known_ids = set(network.nodes) | {node.id for node in generated_nodes}

        for node in generated_nodes:
            potential = (1.0 - abs(node.attention_value - mean_attention)) * node.confidence
            fitness = 0.3 * node.confidence + 0.3 * node.strength + 0.4 * potential
            evaluation.node_fitness_scores[node.id] = min(1.0, fitness)

        for link in generated_links:
            integrated = link.source_node_id in known_ids and link.target_node_id in known_ids
            integration = link.strength * link.confidence if integrated else 0.0
            fitness = 0.4 * link.confidence + 0.3 * link.strength + 0.3 * integration
            evaluation.link_fitness_scores[link.id] = min(1.0, fitness)

        evaluation.connectivity_improvement = self._connectivity_improvement(
            network, len(generated_nodes), len(generated_links)
        )
        evaluation.synergy_enhancement = min(
            1.0,
            sum(node.attention_value * 0.1 for node in generated_nodes)
            + sum(link.strength * 0.05 for link in generated_links),
        )

        node_scores = list(evaluation.node_fitness_scores.values())
        link_scores = list(evaluation.link_fitness_scores.values())
        avg_node = float(np.mean(node_scores)) if node_scores else 0.0
        avg_link = float(np.mean(link_scores)) if link_scores else 0.0

        evaluation.overall_fitness = (
            0.3 * avg_node
            + 0.3 * avg_link
            + 0.2 * evaluation.connectivity_improvement
            + 0.2 * evaluation.synergy_enhancement
        )
        evaluation.meets_fitness_threshold = evaluation.overall_fitness >= fitness_threshold
        evaluation.detailed_metrics = {
            "AvgNodeFitness": avg_node,
            "AvgLinkFitness": avg_link,
            "GeneratedNodeCount": len(generated_nodes),
            "GeneratedLinkCount": len(generated_links),
        }
        return evaluation

    @staticmethod
    def _connectivity_improvement(network: SynergyNetwork, new_nodes: int, new_links: int) -> float:
        def connectivity(nodes: int, links: int) -> float:
            return links / (nodes * (nodes - 1)) if nodes > 1 else 0.0

        current = connectivity(len(network.nodes), len(network.links))
        projected = connectivity(len(network.nodes) + new_nodes, len(network.links) + new_links)
        return max(0.0, projected - current)

    # =========================================================================
    # Mutation
    # =========================================================================

    async def apply_mutations(
        self,
        network: Optional[SynergyNetwork],
        mutation_rate: float,
        config: Optional[AutogenesisConfig] = None,
    ) -> None:
        """Randomly perturb node and link values, plus one structural change.

        A rate of zero or less leaves the network untouched. Errors are
        logged and re-raised.
        """
        if network is None or mutation_rate <= 0.0:
            return

        logger.debug("Applying mutations to network %s with rate %.3f", network.name, mutation_rate)

        try:
            with network.lock:
                for node in network.nodes.values():
                    if self._rng.random() < mutation_rate:
                        self._mutate_node(node)

                for link in network.links.values():
                    if self._rng.random() < mutation_rate:
                        self._mutate_link(link)

                if self._rng.random() < mutation_rate:
                    self._apply_structural_mutation(network, config or self._config)
        except Exception:
            logger.error("Error applying mutations to network %s", network.name, exc_info=True)
            raise

    def _jitter(self, value: float, mutation: tuple[float, float]) -> float:
        probability, amplitude = mutation
        if self._rng.random() < probability:
            return clamp_unit(value + self._uniform((-amplitude, amplitude)))
        return value

    def _mutate_node(self, node: CognitiveNode) -> None:
        node.attention_value = self._jitter(node.attention_value, NODE_ATTENTION_MUTATION)
        node.confidence = self._jitter(node.confidence, NODE_CONFIDENCE_MUTATION)
        node.strength = self._jitter(node.strength, NODE_STRENGTH_MUTATION)
        node.touch()

    def _mutate_link(self, link: SynergyLink) -> None:
        link.strength = self._jitter(link.strength, LINK_STRENGTH_MUTATION)
        link.confidence = self._jitter(link.confidence, LINK_CONFIDENCE_MUTATION)
        link.last_updated = utc_now()

    def _apply_structural_mutation(self, network: SynergyNetwork, config: Optional[AutogenesisConfig]) -> None:
        max_links = config.max_auto_links if config is not None else AutogenesisConfig().max_auto_links

        if self._rng.random() < STRUCTURAL_ADD_PROBABILITY and len(network.links) < max_links:
            nodes = network.active_nodes()
            if len(nodes) < 2:
                return
            first, second = self._rng.choice(len(nodes), size=2, replace=False)
            source, target = nodes[int(first)], nodes[int(second)]

            templates = config.link_templates if config is not None else []
            template = templates[0] if templates else MUTATION_LINK_TEMPLATE
            link = self.generate_synergy_link(
                template, source.id, target.id, {"MutationType": "StructuralAddition"}
            )
            network.add_link(link)
            logger.debug("Structural mutation added link %s to network %s", link.id, network.name)
        elif network.links:
            weak = [link for link in network.links.values() if link.strength < STRUCTURAL_REMOVE_STRENGTH]
            if weak:
                weakest = min(weak, key=lambda link: link.strength)
                network.remove_link(weakest.id)
                logger.debug("Structural mutation removed link %s from network %s", weakest.id, network.name)
