"""Pytest configuration and fixtures."""

import pytest

from cogsynergy.config import AutogenesisConfig
from cogsynergy.network.models import CognitiveNode, SynergyLink, SynergyNetwork


@pytest.fixture
def config():
    """Config with the periodic timer disabled."""
    return AutogenesisConfig(name="test", evaluation_interval_ms=0)


@pytest.fixture
def pair_network():
    """Two linked high-attention nodes (emergence threshold 0.7)."""
    network = SynergyNetwork(name="pair", emergence_threshold=0.7)
    first = CognitiveNode(name="First", node_type="SchemaNode", attention_value=0.8)
    second = CognitiveNode(name="Second", node_type="ConceptNode", attention_value=0.9)
    network.add_node(first)
    network.add_node(second)
    network.add_link(SynergyLink(
        source_node_id=first.id,
        target_node_id=second.id,
        strength=0.9,
        is_bidirectional=True,
    ))
    return network


@pytest.fixture
def make_network():
    """Factory for networks of unlinked ConceptNodes with uniform attention."""

    def _make(node_count: int, attention: float = 0.5, name: str = "net") -> SynergyNetwork:
        network = SynergyNetwork(name=name)
        for i in range(node_count):
            network.add_node(CognitiveNode(name=f"Node{i}", attention_value=attention))
        return network

    return _make
