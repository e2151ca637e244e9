"""Tests for serializer.py — YAML document writing, reading and recovery from bad input."""

from __future__ import annotations

import yaml

from causal_diagram.errors import WarningCode
from causal_diagram.graph import Confidence, Effect, GraphEdge, GraphModel, GraphNode, NodeMetadata, Strength
from causal_diagram.serializer import deserialize, edge_to_dict, load_records, node_to_dict, serialize

# ─── Helpers ──────────────────────────────────────────────────────────────────


def full_graph() -> GraphModel:
    """A graph using every optional field at least once."""
    nodes = [
        GraphNode(
            "compute",
            "Compute: growth",
            category="cause",
            tier=0,
            manual_position=(30.0, 50.0),
            order=1,
            subgroup="inputs",
            metadata=NodeMetadata(
                description='Training "compute" budgets',
                confidence=0.7,
                confidence_label="likely",
                details="Line one\nLine two",
                related_concepts=("scaling", "hardware"),
                sources=("https://example.org/a",),
            ),
        ),
        GraphNode("risk", "Risk", category="effect"),
        GraphNode("plain", "no"),
    ]
    edges = [
        GraphEdge(
            "compute",
            "risk",
            strength=Strength.STRONG,
            confidence=Confidence.HIGH,
            effect=Effect.INCREASES,
            label="drives",
        ),
        GraphEdge("plain", "risk", effect=Effect.MIXED, flow=False),
    ]
    return GraphModel.build(nodes, edges)


def codes(graph: GraphModel) -> list[WarningCode]:
    return [w.code for w in graph.warnings]


# ─── Writing Tests ────────────────────────────────────────────────────────────


class TestWrite:
    def test_required_keys_only_for_bare_records(self):
        """A bare node has only id/label; a bare edge only source/target."""
        assert node_to_dict(GraphNode("a", "A")) == {"id": "a", "label": "A"}
        assert edge_to_dict(GraphEdge("a", "b")) == {"source": "a", "target": "b"}

    def test_position_written_as_mapping(self):
        """manual_position becomes position: {x, y}."""
        data = node_to_dict(GraphNode("a", "A", manual_position=(10.0, 90.0)))
        assert data["position"] == {"x": 10.0, "y": 90.0}

    def test_enums_written_as_strings(self):
        """strength/confidence/effect are written as their plain values."""
        data = edge_to_dict(GraphEdge("a", "b", strength=Strength.WEAK, confidence=Confidence.LOW, effect=Effect.DECREASES))
        assert data == {"source": "a", "target": "b", "strength": "weak", "confidence": "low", "effect": "decreases"}

    def test_flow_written_only_when_false(self):
        """flow: false appears for associative edges only."""
        assert "flow" not in edge_to_dict(GraphEdge("a", "b"))
        assert edge_to_dict(GraphEdge("a", "b", flow=False))["flow"] is False

    def test_metadata_uses_document_keys(self):
        """Metadata fields are written with their camelCase document keys."""
        data = node_to_dict(full_graph().nodes[0])
        assert list(data) == [
            "id",
            "label",
            "type",
            "tier",
            "position",
            "order",
            "subgroup",
            "confidence",
            "confidenceLabel",
            "description",
            "details",
            "relatedConcepts",
            "sources",
        ]

    def test_document_shape(self):
        """Output parses as a mapping with nodes then edges."""
        doc = yaml.safe_load(serialize(full_graph()))
        assert list(doc) == ["nodes", "edges"]
        assert len(doc["nodes"]) == 3 and len(doc["edges"]) == 2

    def test_empty_graph(self):
        """An empty graph writes empty sequences."""
        assert yaml.safe_load(serialize(GraphModel())) == {"nodes": [], "edges": []}


# ─── Round-trip Tests ─────────────────────────────────────────────────────────


class TestRoundTrip:
    def test_full_graph(self):
        """deserialize(serialize(g)) == g with every field populated."""
        g = full_graph()
        assert deserialize(serialize(g)) == g

    def test_no_warnings_on_clean_document(self):
        """A serialized graph reads back without warnings."""
        assert deserialize(serialize(full_graph())).warnings == ()

    def test_ambiguous_strings_survive(self):
        """Labels YAML would read as other types stay strings."""
        g = GraphModel.build([GraphNode("1", "yes"), GraphNode("2", "null"), GraphNode("3", "3.5")])
        assert deserialize(serialize(g)) == g

    def test_serialize_is_stable(self):
        """Serializing twice gives identical text."""
        g = full_graph()
        assert serialize(deserialize(serialize(g))) == serialize(g)


# ─── Reading Tests ────────────────────────────────────────────────────────────


class TestRead:
    def test_reads_handwritten_document(self):
        """Integers for positions and flow-style lists are accepted."""
        text = """
nodes:
  - id: a
    label: Alpha
    type: cause
    position: {x: 20, y: 40}
    relatedConcepts: [one, two]
  - id: b
    label: Beta
edges:
  - source: a
    target: b
    strength: medium
"""
        g = deserialize(text)
        assert g.warnings == ()
        assert g.node("a").manual_position == (20.0, 40.0)
        assert g.node("a").metadata.related_concepts == ("one", "two")
        assert g.edges[0].strength == Strength.MEDIUM

    def test_unknown_endpoint_dropped(self):
        """An edge to a missing node is dropped with a dangling_edge warning."""
        text = "nodes:\n  - {id: a, label: A}\nedges:\n  - {source: a, target: nope}\n"
        g = deserialize(text)
        assert g.edges == ()
        assert codes(g) == [WarningCode.DANGLING_EDGE]

    def test_node_missing_label_dropped(self):
        """A node without a label is skipped; the rest is returned."""
        text = "nodes:\n  - {id: a}\n  - {id: b, label: B}\n"
        g = deserialize(text)
        assert [n.id for n in g.nodes] == ["b"]
        assert codes(g) == [WarningCode.INVALID_NODE]
        assert "label" in g.warnings[0].message

    def test_bad_enum_drops_edge(self):
        """strength: huge is not a valid value — edge skipped."""
        text = "nodes:\n  - {id: a, label: A}\n  - {id: b, label: B}\nedges:\n  - {source: a, target: b, strength: huge}\n"
        g = deserialize(text)
        assert g.edges == ()
        assert codes(g) == [WarningCode.INVALID_EDGE]
        assert "huge" in g.warnings[0].message

    def test_negative_tier_rejected(self):
        """tier: -1 is invalid."""
        g = deserialize("nodes:\n  - {id: a, label: A, tier: -1}\n")
        assert g.nodes == ()
        assert codes(g) == [WarningCode.INVALID_NODE]

    def test_bad_position_rejected(self):
        """position without y is invalid."""
        g = deserialize("nodes:\n  - {id: a, label: A, position: {x: 1}}\n")
        assert codes(g) == [WarningCode.INVALID_NODE]

    def test_non_boolean_flow_rejected(self):
        """flow must be a boolean."""
        text = "nodes:\n  - {id: a, label: A}\n  - {id: b, label: B}\nedges:\n  - {source: a, target: b, flow: maybe}\n"
        assert codes(deserialize(text)) == [WarningCode.INVALID_EDGE]

    def test_non_mapping_entry_rejected(self):
        """A bare string in nodes is skipped."""
        g = deserialize("nodes:\n  - just-a-string\n  - {id: b, label: B}\n")
        assert [n.id for n in g.nodes] == ["b"]
        assert codes(g) == [WarningCode.INVALID_NODE]

    def test_duplicate_ids(self):
        """Duplicate node ids keep the first, with a duplicate_node warning."""
        g = deserialize("nodes:\n  - {id: a, label: first}\n  - {id: a, label: second}\n")
        assert g.node("a").label == "first"
        assert codes(g) == [WarningCode.DUPLICATE_NODE]

    def test_invalid_yaml(self):
        """Unparseable text — empty graph plus an invalid_document warning."""
        g = deserialize("nodes: [unclosed\n")
        assert g.nodes == () and g.edges == ()
        assert codes(g) == [WarningCode.INVALID_DOCUMENT]

    def test_non_mapping_document(self):
        """A top-level list is not a diagram document."""
        assert codes(deserialize("- a\n- b\n")) == [WarningCode.INVALID_DOCUMENT]

    def test_section_not_a_list(self):
        """nodes: as a mapping is ignored with a warning."""
        g = deserialize("nodes: {a: 1}\n")
        assert g.nodes == ()
        assert codes(g) == [WarningCode.INVALID_DOCUMENT]

    def test_empty_document(self):
        """Empty text — empty graph, no warnings."""
        g = deserialize("")
        assert g == GraphModel()
        assert g.warnings == ()

    def test_load_records_directly(self):
        """load_records accepts plain dicts with the same rules."""
        g = load_records([{"id": "a", "label": "A"}, {"label": "no id"}], [{"source": "a"}])
        assert [n.id for n in g.nodes] == ["a"]
        assert codes(g) == [WarningCode.INVALID_NODE, WarningCode.INVALID_EDGE]
