"""Entity model for cognitive synergy networks.

A SynergyNetwork owns two id-keyed tables:
- nodes: CognitiveNode vertices, each one capability or knowledge unit
- links: SynergyLink edges carrying strength and usage statistics

Nodes keep the ids of their incoming/outgoing links as a denormalized
adjacency index. The network is the only writer of that index, so every
link insertion and removal must go through add_link/remove_link.

Numeric fields are stored as given. Callers (the synergy manager and the
autogenesis engine) clamp to [0, 1] around their own updates; the link
strengthen/weaken helpers are the only mutators that clamp themselves.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

# Closed set of metadata value kinds (nested maps and lists of the same)
MetadataValue = Union[str, int, float, bool, None, list, dict]

# A link at or below this strength is switched off by weaken()
LINK_DEACTIVATION_STRENGTH = 0.1

# Synergy score blend weights
CONNECTIVITY_WEIGHT = 0.4
ATTENTION_WEIGHT = 0.3
LINK_STRENGTH_WEIGHT = 0.3


def utc_now() -> datetime:
    """Return current UTC time."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def clamp_unit(value: float) -> float:
    """Clamp a value into the closed unit interval."""
    return max(0.0, min(1.0, value))


@dataclass
class CognitiveNode:
    """A weighted vertex representing one cognitive capability.

    Attributes:
        id: Opaque unique identifier
        name: Human-readable label used in capability descriptions
        node_type: Open-ended tag ("ConceptNode", "PredicateNode", "SchemaNode", ...)
        attention_value: Current relevance weight
        confidence: Confidence in the capability
        strength: Intrinsic weight of the capability
        is_active: Whether the node takes part in processing
        metadata: Free-form provenance and properties
        incoming_links: Ids of links targeting this node (back-references only)
        outgoing_links: Ids of links leaving this node (back-references only)
    """
    name: str = ""
    node_type: str = "ConceptNode"
    attention_value: float = 1.0
    confidence: float = 1.0
    strength: float = 1.0
    is_active: bool = True
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    incoming_links: list[str] = field(default_factory=list)
    outgoing_links: list[str] = field(default_factory=list)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=utc_now)
    last_updated: datetime = field(default_factory=utc_now)

    @property
    def connection_count(self) -> int:
        """Total number of links touching this node."""
        return len(self.incoming_links) + len(self.outgoing_links)

    @property
    def is_isolated(self) -> bool:
        return not self.incoming_links and not self.outgoing_links

    def touch(self, now: Optional[datetime] = None) -> None:
        """Refresh the update timestamp."""
        self.last_updated = now or utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot of the node."""
        return {
            "id": self.id,
            "name": self.name,
            "node_type": self.node_type,
            "attention_value": self.attention_value,
            "confidence": self.confidence,
            "strength": self.strength,
            "is_active": self.is_active,
            "metadata": dict(self.metadata),
            "incoming_links": list(self.incoming_links),
            "outgoing_links": list(self.outgoing_links),
            "created_at": self.created_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass
class SynergyLink:
    """A weighted, optionally bidirectional edge between two nodes.

    Invariant: once weaken() brings strength to LINK_DEACTIVATION_STRENGTH
    or below the link is inactive. Strengthening never reactivates it.
    """
    source_node_id: str = ""
    target_node_id: str = ""
    link_type: str = "SimilarityLink"
    strength: float = 1.0
    confidence: float = 1.0
    attention_value: float = 1.0
    is_bidirectional: bool = False
    is_active: bool = True
    activation_count: int = 0
    last_activated: Optional[datetime] = None
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=utc_now)
    last_updated: datetime = field(default_factory=utc_now)

    def activate(self, now: Optional[datetime] = None) -> None:
        """Record one use of this link."""
        now = now or utc_now()
        self.activation_count += 1
        self.last_activated = now
        self.last_updated = now

    def strengthen(self, reinforcement: float) -> None:
        """Add reinforcement to strength, clamped to [0, 1]."""
        self.strength = clamp_unit(self.strength + reinforcement)
        self.last_updated = utc_now()

    def weaken(self, decay: float) -> None:
        """Subtract decay from strength, clamped to [0, 1].

        Deactivates the link when strength drops to the deactivation floor.
        """
        self.strength = clamp_unit(self.strength - decay)
        if self.strength <= LINK_DEACTIVATION_STRENGTH:
            self.is_active = False
        self.last_updated = utc_now()

    def age(self, now: Optional[datetime] = None) -> timedelta:
        return (now or utc_now()) - self.created_at

    def connects(self, node_a: str, node_b: str) -> bool:
        """True if this link joins node_a and node_b in either direction."""
        return (self.source_node_id == node_a and self.target_node_id == node_b) or (
            self.source_node_id == node_b and self.target_node_id == node_a
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot of the link."""
        return {
            "id": self.id,
            "link_type": self.link_type,
            "source_node_id": self.source_node_id,
            "target_node_id": self.target_node_id,
            "strength": self.strength,
            "confidence": self.confidence,
            "attention_value": self.attention_value,
            "is_bidirectional": self.is_bidirectional,
            "is_active": self.is_active,
            "activation_count": self.activation_count,
            "last_activated": self.last_activated.isoformat() if self.last_activated else None,
            "metadata": dict(self.metadata),
            "created_at": self.created_at.isoformat(),
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass
class SynergyNetwork:
    """An owned graph of cognitive nodes and synergy links.

    Nodes and links never outlive their network and are never shared
    between networks. All mutation of the node/link tables and of the
    adjacency index must happen while holding `lock`.

    Attributes:
        name: Human-readable network name
        nodes: Node table keyed by node id
        links: Link table keyed by link id
        synergy_score: Last value computed by calculate_synergy_score()
        emergence_threshold: Score at which emergence is reported
        learning_rate: Rate used for activation and reinforcement
    """
    name: str = ""
    emergence_threshold: float = 0.7
    learning_rate: float = 0.1
    synergy_score: float = 0.0
    nodes: dict[str, CognitiveNode] = field(default_factory=dict)
    links: dict[str, SynergyLink] = field(default_factory=dict)
    metadata: dict[str, MetadataValue] = field(default_factory=dict)
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=utc_now)
    last_updated: datetime = field(default_factory=utc_now)
    _lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def lock(self):
        """Re-entrant lock guarding the node/link tables and adjacency index."""
        return self._lock

    def add_node(self, node: Optional[CognitiveNode]) -> None:
        """Insert a node, replacing any node with the same id.

        Null nodes and nodes without an id are ignored.
        """
        if node is None or not node.id:
            return
        with self._lock:
            self.nodes[node.id] = node
            self.last_updated = utc_now()

    def add_link(self, link: Optional[SynergyLink]) -> None:
        """Insert a link and index it on its endpoints.

        The link is stored even if an endpoint is not in the node table; the
        adjacency entry for a missing endpoint is simply skipped, leaving a
        dangling reference in the link itself.
        """
        if link is None or not link.id:
            return
        with self._lock:
            self.links[link.id] = link

            source = self.nodes.get(link.source_node_id)
            if source is not None:
                source.outgoing_links.append(link.id)
            else:
                logger.debug("Link %s source %s not in network %s", link.id, link.source_node_id, self.name)

            target = self.nodes.get(link.target_node_id)
            if target is not None:
                target.incoming_links.append(link.id)
            else:
                logger.debug("Link %s target %s not in network %s", link.id, link.target_node_id, self.name)

            self.last_updated = utc_now()

    def remove_link(self, link_id: str) -> bool:
        """Remove a link and drop its id from both endpoint adjacency lists.

        Returns:
            True if the link existed
        """
        with self._lock:
            link = self.links.pop(link_id, None)
            if link is None:
                return False

            source = self.nodes.get(link.source_node_id)
            if source is not None:
                source.outgoing_links = [lid for lid in source.outgoing_links if lid != link_id]
            target = self.nodes.get(link.target_node_id)
            if target is not None:
                target.incoming_links = [lid for lid in target.incoming_links if lid != link_id]

            self.last_updated = utc_now()
            return True

    def has_direct_link(self, node_a: str, node_b: str) -> bool:
        """True if any link joins the two nodes, in either direction."""
        node = self.nodes.get(node_a)
        if node is None:
            return any(link.connects(node_a, node_b) for link in self.links.values())
        for link_id in node.outgoing_links + node.incoming_links:
            link = self.links.get(link_id)
            if link is not None and link.connects(node_a, node_b):
                return True
        return False

    def active_nodes(self) -> list[CognitiveNode]:
        return [n for n in self.nodes.values() if n.is_active]

    def active_links(self) -> list[SynergyLink]:
        return [l for l in self.links.values() if l.is_active]

    def mean_attention(self, default: float = 0.5) -> float:
        """Mean attention across all nodes, or default for an empty network."""
        if not self.nodes:
            return default
        return sum(n.attention_value for n in self.nodes.values()) / len(self.nodes)

    def calculate_synergy_score(self) -> float:
        """Compute, cache and return the network synergy score.

        score = 0.4 * connectivity + 0.3 * mean node attention
                + 0.3 * mean link strength

        computed over active nodes and links. Connectivity is
        active_links / (n * (n - 1)) for n active nodes, and 0 when n <= 1.
        """
        with self._lock:
            if not self.nodes or not self.links:
                return 0.0

            active_nodes = self.active_nodes()
            active_links = self.active_links()
            if not active_nodes:
                return 0.0

            n = len(active_nodes)
            connectivity = len(active_links) / (n * (n - 1)) if n > 1 else 0.0
            avg_attention = sum(node.attention_value for node in active_nodes) / n
            avg_strength = (
                sum(link.strength for link in active_links) / len(active_links)
                if active_links
                else 0.0
            )

            self.synergy_score = (
                connectivity * CONNECTIVITY_WEIGHT
                + avg_attention * ATTENTION_WEIGHT
                + avg_strength * LINK_STRENGTH_WEIGHT
            )
            return self.synergy_score

    def to_dict(self) -> dict[str, Any]:
        """Plain-data snapshot of the network."""
        with self._lock:
            return {
                "id": self.id,
                "name": self.name,
                "synergy_score": self.synergy_score,
                "emergence_threshold": self.emergence_threshold,
                "learning_rate": self.learning_rate,
                "nodes": {nid: node.to_dict() for nid, node in self.nodes.items()},
                "links": {lid: link.to_dict() for lid, link in self.links.items()},
                "metadata": dict(self.metadata),
                "created_at": self.created_at.isoformat(),
                "last_updated": self.last_updated.isoformat(),
            }
