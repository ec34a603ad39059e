"""Result records produced by the autogenesis engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from cogsynergy.network.models import CognitiveNode, SynergyLink


@dataclass
class FitnessEvaluation:
    """Scores for a batch of proposed nodes and links.

    Attributes:
        overall_fitness: Weighted blend of the component scores
        node_fitness_scores: Fitness per proposed node id
        link_fitness_scores: Fitness per proposed link id
        connectivity_improvement: Connectivity gain if merged (>= 0)
        synergy_enhancement: Capped contribution of new attention and strength
        meets_fitness_threshold: Whether the batch may be merged
        detailed_metrics: Averages and counts for logging
    """
    overall_fitness: float = 0.0
    node_fitness_scores: dict[str, float] = field(default_factory=dict)
    link_fitness_scores: dict[str, float] = field(default_factory=dict)
    connectivity_improvement: float = 0.0
    synergy_enhancement: float = 0.0
    meets_fitness_threshold: bool = False
    detailed_metrics: dict[str, float] = field(default_factory=dict)


@dataclass
class AutogenesisResult:
    """Outcome of one generate/evaluate/accept cycle.

    Generated components are reported even when the batch was rejected;
    only a successful result means they were merged into the network.
    """
    generated_nodes: list[CognitiveNode] = field(default_factory=list)
    generated_links: list[SynergyLink] = field(default_factory=list)
    trigger_conditions: dict[str, Any] = field(default_factory=dict)
    fitness_score: float = 0.0
    fitness: Optional[FitnessEvaluation] = None
    success: bool = False
    error_messages: list[str] = field(default_factory=list)

    @property
    def generated_anything(self) -> bool:
        return bool(self.generated_nodes or self.generated_links)
