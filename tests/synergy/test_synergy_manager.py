"""Tests for CognitiveSynergyManager."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
import pytest_asyncio

from cogsynergy.network.activity import Activity
from cogsynergy.network.models import CognitiveNode, SynergyLink, SynergyNetwork
from cogsynergy.synergy.manager import CognitiveLoadAnalysis, CognitiveSynergyManager


@pytest_asyncio.fixture
async def manager(config):
    m = CognitiveSynergyManager()
    await m.initialize(config)
    return m


# =============================================================================
# Relevance
# =============================================================================


class TestNodeRelevance:
    """Tests for calculate_node_relevance."""

    def test_schema_node_message_bonus(self):
        manager = CognitiveSynergyManager()
        node = CognitiveNode(node_type="SchemaNode", attention_value=0.0)

        assert manager.calculate_node_relevance(node, "message", "") == pytest.approx(0.8)
        assert manager.calculate_node_relevance(node, "event", "") == pytest.approx(0.5)

    def test_predicate_node_text_bonus(self):
        manager = CognitiveSynergyManager()
        node = CognitiveNode(node_type="PredicateNode", attention_value=0.0)

        assert manager.calculate_node_relevance(node, "message", "hi") == pytest.approx(0.7)
        assert manager.calculate_node_relevance(node, "message", "") == pytest.approx(0.5)

    def test_concept_node_bonus_and_attention(self):
        manager = CognitiveSynergyManager()
        node = CognitiveNode(node_type="ConceptNode", attention_value=0.5)

        assert manager.calculate_node_relevance(node, "message", "") == pytest.approx(0.7)

    @pytest.mark.parametrize("node_type", ["SchemaNode", "PredicateNode", "ConceptNode", "Other"])
    def test_relevance_capped_at_one(self, node_type):
        """Base plus every bonus never exceeds 1.0."""
        manager = CognitiveSynergyManager()
        node = CognitiveNode(node_type=node_type, attention_value=1.0)

        relevance = manager.calculate_node_relevance(node, "message", "text")

        assert 0.0 <= relevance <= 1.0


# =============================================================================
# Activity processing
# =============================================================================


class TestProcessActivity:
    """Tests for one ACTIVATE -> PROPAGATE -> DECAY -> REINFORCE round."""

    @pytest.mark.asyncio
    async def test_initialize_requires_config(self):
        with pytest.raises(ValueError):
            await CognitiveSynergyManager().initialize(None)

    @pytest.mark.asyncio
    async def test_none_inputs_are_noops(self, manager, pair_network):
        await manager.process_activity(None, Activity())
        await manager.process_activity(pair_network, None)

        assert [n.attention_value for n in pair_network.nodes.values()] == [0.8, 0.9]

    @pytest.mark.asyncio
    async def test_activation_propagation_and_reinforcement(self, manager):
        network = SynergyNetwork(name="flow")
        source = CognitiveNode(name="A", node_type="SchemaNode", attention_value=0.5)
        target = CognitiveNode(name="B", node_type="ConceptNode", attention_value=0.5)
        network.add_node(source)
        network.add_node(target)
        link = SynergyLink(source_node_id=source.id, target_node_id=target.id, strength=0.5)
        network.add_link(link)

        await manager.process_activity(network, Activity(type="message"))

        # A: relevance 0.9 -> 0.5 + 0.09
        assert source.attention_value == pytest.approx(0.59)
        # B: relevance 0.7 -> 0.57, then +0.5 * 0.59 * 0.1 from A
        assert target.attention_value == pytest.approx(0.5995)
        assert link.activation_count == 1
        # reinforced once from each endpoint
        assert link.strength == pytest.approx(0.502)

    @pytest.mark.asyncio
    async def test_inactive_nodes_decay(self, manager):
        network = SynergyNetwork()
        dormant = CognitiveNode(attention_value=0.5, is_active=False)
        floor = CognitiveNode(attention_value=0.1, is_active=False)
        network.add_node(dormant)
        network.add_node(floor)

        await manager.process_activity(network, Activity())

        assert dormant.attention_value == pytest.approx(0.475)
        assert floor.attention_value == pytest.approx(0.1)

    @pytest.mark.asyncio
    async def test_inactive_link_not_fired(self, manager, pair_network):
        for link in pair_network.links.values():
            link.is_active = False

        await manager.process_activity(pair_network, Activity())

        assert all(link.activation_count == 0 for link in pair_network.links.values())

    @pytest.mark.asyncio
    async def test_attention_capped(self, manager, pair_network):
        for _ in range(20):
            await manager.process_activity(pair_network, Activity(text="hello"))

        assert all(node.attention_value <= 1.0 for node in pair_network.nodes.values())
        assert all(link.strength <= 1.0 for link in pair_network.links.values())

    @pytest.mark.asyncio
    async def test_errors_are_reraised(self, manager, pair_network):
        with patch.object(manager, "_activate_relevant_nodes", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                await manager.process_activity(pair_network, Activity())

    @pytest.mark.asyncio
    async def test_uses_network_rate_without_config(self):
        manager = CognitiveSynergyManager()
        network = SynergyNetwork(learning_rate=0.5)
        node = CognitiveNode(node_type="ConceptNode", attention_value=0.0)
        network.add_node(node)

        await manager.process_activity(network, Activity())

        assert node.attention_value == pytest.approx(0.6 * 0.5)


# =============================================================================
# Emergence
# =============================================================================


class TestEmergentCapabilities:
    """Tests for identify_emergent_capabilities."""

    @pytest.mark.asyncio
    async def test_pattern_and_cluster(self, manager, pair_network):
        capabilities = await manager.identify_emergent_capabilities(pair_network)

        assert capabilities == [
            "Pattern-based capability: Highly connected cluster with 2 nodes",
            "Synergy cluster capability: Primary cognitive processing cluster",
        ]

    @pytest.mark.asyncio
    async def test_novel_combinations_for_unlinked_pairs(self, manager, pair_network):
        pair_network.add_node(CognitiveNode(name="Third", attention_value=0.95))

        capabilities = await manager.identify_emergent_capabilities(pair_network)

        assert "Novel cognitive combination: First <-> Third" in capabilities
        assert "Novel cognitive combination: Second <-> Third" in capabilities
        assert not any("First <-> Second" in c for c in capabilities)

    @pytest.mark.asyncio
    async def test_weak_network_has_none(self, manager, make_network):
        capabilities = await manager.identify_emergent_capabilities(make_network(3, attention=0.2))

        assert capabilities == []

    @pytest.mark.asyncio
    async def test_none_network(self, manager):
        assert await manager.identify_emergent_capabilities(None) == []

    @pytest.mark.asyncio
    async def test_errors_yield_empty_list(self, manager, pair_network):
        with patch.object(manager, "analyze_network_patterns", side_effect=RuntimeError("boom")):
            assert await manager.identify_emergent_capabilities(pair_network) == []

    def test_patterns_are_connected_components(self):
        manager = CognitiveSynergyManager()
        network = SynergyNetwork()
        nodes = [CognitiveNode(name=f"N{i}") for i in range(5)]
        for node in nodes:
            network.add_node(node)
        network.add_link(SynergyLink(source_node_id=nodes[0].id, target_node_id=nodes[1].id, strength=0.4))
        network.add_link(SynergyLink(source_node_id=nodes[1].id, target_node_id=nodes[2].id, strength=0.8))
        network.add_link(SynergyLink(source_node_id=nodes[3].id, target_node_id=nodes[4].id, strength=1.0))

        patterns = sorted(manager.analyze_network_patterns(network), key=lambda p: len(p.node_ids))

        assert [len(p.node_ids) for p in patterns] == [2, 3]
        assert patterns[0].strength == pytest.approx(1.0)
        assert patterns[1].strength == pytest.approx(0.6)
        assert patterns[1].description == "Highly connected cluster with 3 nodes"


# =============================================================================
# Load analysis and optimization
# =============================================================================


class TestCognitiveLoad:
    """Tests for analyze_cognitive_load."""

    def test_empty_network(self):
        analysis = CognitiveSynergyManager().analyze_cognitive_load(SynergyNetwork())

        assert analysis == CognitiveLoadAnalysis()

    def test_bottlenecks_and_overload(self, pair_network):
        analysis = CognitiveSynergyManager().analyze_cognitive_load(pair_network)

        assert analysis.overall_load == pytest.approx(0.85)
        assert len(analysis.bottleneck_nodes) == 2
        assert "Consider distributing load from bottleneck nodes" in analysis.optimization_recommendations
        assert "Consider adding more cognitive nodes to handle load" in analysis.optimization_recommendations

    def test_underutilized(self, make_network):
        network = make_network(3, attention=0.1)

        analysis = CognitiveSynergyManager().analyze_cognitive_load(network)

        assert len(analysis.underutilized_nodes) == 3
        assert analysis.optimization_recommendations == [
            "Increase utilization of underused cognitive nodes"
        ]

    def test_single_node_has_no_connection_load(self):
        network = SynergyNetwork()
        node = CognitiveNode(attention_value=0.5)
        network.add_node(node)

        analysis = CognitiveSynergyManager().analyze_cognitive_load(network)

        assert analysis.node_load_distribution[node.id] == pytest.approx(0.3)


class TestOptimizeNetwork:
    """Tests for optimize_network."""

    @pytest.mark.asyncio
    async def test_prunes_tunes_and_rebalances(self, manager, make_network):
        network = make_network(4, attention=0.5)
        a, b, c, d = network.nodes.values()
        created = datetime(2025, 1, 1, tzinfo=timezone.utc)

        weak = SynergyLink(source_node_id=a.id, target_node_id=b.id, strength=0.15, created_at=created)
        stale = SynergyLink(source_node_id=b.id, target_node_id=c.id, strength=0.5, created_at=created)
        busy = SynergyLink(
            source_node_id=c.id, target_node_id=d.id, strength=0.5, activation_count=101, created_at=created
        )
        for link in (weak, stale, busy):
            network.add_link(link)

        pruned = await manager.optimize_network(network, now=created + timedelta(hours=48))

        assert pruned == 1
        assert weak.id not in network.links
        assert weak.id not in a.outgoing_links
        assert weak.id not in b.incoming_links
        assert stale.strength == pytest.approx(0.49)
        assert busy.strength == pytest.approx(0.51)

    @pytest.mark.asyncio
    async def test_fresh_unused_link_untouched(self, manager, pair_network):
        link = next(iter(pair_network.links.values()))

        await manager.optimize_network(pair_network)

        assert link.strength == pytest.approx(0.9)

    @pytest.mark.asyncio
    async def test_bottleneck_attention_reduced(self, manager, pair_network):
        first, second = pair_network.nodes.values()

        await manager.optimize_network(pair_network)

        assert first.attention_value == pytest.approx(0.72)
        assert second.attention_value == pytest.approx(0.81)

    @pytest.mark.asyncio
    async def test_none_network(self, manager):
        assert await manager.optimize_network(None) == 0
