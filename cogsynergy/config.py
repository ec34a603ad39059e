"""Configuration for the autogenesis engine and the orchestrator.

The config record is supplied once at initialization and shared by the
synergy manager, the autogenesis engine and the orchestrator timer.
Template trigger conditions are provenance only: they are copied into
generated metadata but never evaluated.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from cogsynergy.network.models import utc_now


class CognitiveNodeTemplate(BaseModel):
    """Pattern for generating new cognitive nodes."""
    name: str = ""
    node_type: str = "ConceptNode"
    base_properties: dict[str, Any] = Field(default_factory=dict)
    trigger_conditions: dict[str, Any] = Field(default_factory=dict)


class SynergyLinkTemplate(BaseModel):
    """Pattern for generating new synergy links."""
    name: str = ""
    link_type: str = "SimilarityLink"
    base_properties: dict[str, Any] = Field(default_factory=dict)
    trigger_conditions: dict[str, Any] = Field(default_factory=dict)


class AutogenesisConfig(BaseModel):
    """Global tunables for synergy evaluation and autogenesis."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    enabled: bool = True

    # Mean network score at which autogenesis runs
    synergy_threshold: float = Field(default=0.8, ge=0.0, le=1.0)

    # Hard caps per network
    max_auto_nodes: int = Field(default=100, ge=0)
    max_auto_links: int = Field(default=500, ge=0)

    learning_rate: float = Field(default=0.1, ge=0.0, le=1.0)
    mutation_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    fitness_threshold: float = Field(default=0.6, ge=0.0, le=1.0)

    node_templates: list[CognitiveNodeTemplate] = Field(default_factory=list)
    link_templates: list[SynergyLinkTemplate] = Field(default_factory=list)

    # Periodic evaluation interval; 0 disables the timer
    evaluation_interval_ms: int = Field(default=5000, ge=0)

    # Node sample ceiling for the pairwise connectivity-gap scan
    max_gap_scan_nodes: int = Field(default=200, ge=2)

    # Run optimize + mutation every N timer cycles; 0 disables
    maintenance_every: int = Field(default=0, ge=0)

    custom_parameters: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    last_updated: datetime = Field(default_factory=utc_now)

    @property
    def evaluation_interval_seconds(self) -> float:
        return self.evaluation_interval_ms / 1000.0


DEFAULT_NODE_TEMPLATES = [
    CognitiveNodeTemplate(
        name="AdaptiveProcessor",
        node_type="SchemaNode",
        base_properties={"ProcessingType": "Adaptive", "Priority": "High"},
    ),
    CognitiveNodeTemplate(
        name="PatternMatcher",
        node_type="PredicateNode",
        base_properties={"MatchingAlgorithm": "Fuzzy", "Threshold": 0.8},
    ),
    CognitiveNodeTemplate(
        name="KnowledgeIntegrator",
        node_type="ConceptNode",
        base_properties={"IntegrationType": "Semantic", "Scope": "Global"},
    ),
    CognitiveNodeTemplate(
        name="EmergenceDetector",
        node_type="SchemaNode",
        base_properties={"DetectionMode": "Continuous", "Sensitivity": "High"},
    ),
]

DEFAULT_LINK_TEMPLATES = [
    SynergyLinkTemplate(
        name="InformationFlow",
        link_type="InheritanceLink",
        base_properties={"FlowDirection": "Bidirectional", "Bandwidth": "High"},
    ),
    SynergyLinkTemplate(
        name="ConceptualSimilarity",
        link_type="SimilarityLink",
        base_properties={"SimilarityType": "Semantic", "Threshold": 0.7},
    ),
    SynergyLinkTemplate(
        name="CausalImplication",
        link_type="ImplicationLink",
        base_properties={"CausalDirection": "Forward", "Certainty": "High"},
    ),
]


def install_default_templates(config: AutogenesisConfig) -> AutogenesisConfig:
    """Fill empty template lists with copies of the default templates."""
    if not config.node_templates:
        config.node_templates.extend(t.model_copy(deep=True) for t in DEFAULT_NODE_TEMPLATES)
    if not config.link_templates:
        config.link_templates.extend(t.model_copy(deep=True) for t in DEFAULT_LINK_TEMPLATES)
    return config
