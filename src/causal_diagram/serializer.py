"""YAML document format for causal graphs.

Document shape::

    nodes:
      - id: a
        label: "Compute growth"
        type: cause
        tier: 0
        position: {x: 30, y: 50}
        confidence: 0.7
        relatedConcepts: [scaling]
    edges:
      - source: a
        target: b
        strength: strong
        confidence: high
        effect: increases
        label: "drives"

Optional keys are written only when populated; ``flow`` only when false.
Reading never raises: invalid entries are dropped with a ``GraphWarning``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import yaml

from causal_diagram.errors import GraphWarning, WarningCode
from causal_diagram.graph import Confidence, Effect, GraphEdge, GraphModel, GraphNode, NodeMetadata, Strength

logger = logging.getLogger(__name__)


class _InvalidEntry(ValueError):
    """A single node or edge record that cannot be read."""


# ─── Writing ──────────────────────────────────────────────────────────────────


def node_to_dict(node: GraphNode) -> dict[str, Any]:
    data: dict[str, Any] = {"id": node.id, "label": node.label}
    if node.category is not None:
        data["type"] = node.category
    if node.tier is not None:
        data["tier"] = node.tier
    if node.manual_position is not None:
        x, y = node.manual_position
        data["position"] = {"x": x, "y": y}
    if node.order is not None:
        data["order"] = node.order
    if node.subgroup is not None:
        data["subgroup"] = node.subgroup

    meta = node.metadata
    if meta.confidence is not None:
        data["confidence"] = meta.confidence
    if meta.confidence_label is not None:
        data["confidenceLabel"] = meta.confidence_label
    if meta.description is not None:
        data["description"] = meta.description
    if meta.details is not None:
        data["details"] = meta.details
    if meta.related_concepts:
        data["relatedConcepts"] = list(meta.related_concepts)
    if meta.sources:
        data["sources"] = list(meta.sources)
    return data


def edge_to_dict(edge: GraphEdge) -> dict[str, Any]:
    data: dict[str, Any] = {"source": edge.source_id, "target": edge.target_id}
    if edge.strength is not None:
        data["strength"] = edge.strength.value
    if edge.confidence is not None:
        data["confidence"] = edge.confidence.value
    if edge.effect is not None:
        data["effect"] = edge.effect.value
    if edge.label is not None:
        data["label"] = edge.label
    if not edge.flow:
        data["flow"] = False
    return data


def serialize(graph: GraphModel) -> str:
    """Render ``graph`` as a YAML document. Warnings are not written."""
    document = {
        "nodes": [node_to_dict(node) for node in graph.nodes],
        "edges": [edge_to_dict(edge) for edge in graph.edges],
    }
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True, default_flow_style=False)


# ─── Reading ──────────────────────────────────────────────────────────────────


def _text(data: Mapping[str, Any], key: str, required: bool = False) -> str | None:
    value = data.get(key)
    if value is None:
        if required:
            raise _InvalidEntry(f"missing required key {key!r}")
        return None
    if isinstance(value, (dict, list, bool)):
        raise _InvalidEntry(f"{key!r} must be a string, got {value!r}")
    return str(value)


def _int(data: Mapping[str, Any], key: str) -> int | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise _InvalidEntry(f"{key!r} must be an integer, got {value!r}")
    return value


def _float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _InvalidEntry(f"{key!r} must be a number, got {value!r}")
    return float(value)


def _strings(data: Mapping[str, Any], key: str) -> tuple[str, ...]:
    value = data.get(key)
    if value is None:
        return ()
    if not isinstance(value, list):
        raise _InvalidEntry(f"{key!r} must be a list")
    return tuple(str(item) for item in value)


def _enum(data: Mapping[str, Any], key: str, enum_type: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_type)
        raise _InvalidEntry(f"{key!r} must be one of {choices}, got {value!r}") from None


def _parse_position(value: Any) -> tuple[float, float] | None:
    if value is None:
        return None
    if not isinstance(value, Mapping) or "x" not in value or "y" not in value:
        raise _InvalidEntry("'position' must be a mapping with 'x' and 'y'")
    return (_float(value["x"], "position.x"), _float(value["y"], "position.y"))


def _parse_node(data: Any) -> GraphNode:
    if not isinstance(data, Mapping):
        raise _InvalidEntry(f"node entry must be a mapping, got {type(data).__name__}")
    node_id = _text(data, "id", required=True)
    label = _text(data, "label", required=True)

    tier = _int(data, "tier")
    if tier is not None and tier < 0:
        raise _InvalidEntry(f"'tier' must be non-negative, got {tier}")

    confidence = data.get("confidence")
    metadata = NodeMetadata(
        description=_text(data, "description"),
        confidence=_float(confidence, "confidence") if confidence is not None else None,
        confidence_label=_text(data, "confidenceLabel"),
        details=_text(data, "details"),
        related_concepts=_strings(data, "relatedConcepts"),
        sources=_strings(data, "sources"),
    )
    return GraphNode(
        id=node_id,
        label=label,
        category=_text(data, "type"),
        tier=tier,
        manual_position=_parse_position(data.get("position")),
        order=_int(data, "order"),
        subgroup=_text(data, "subgroup"),
        metadata=metadata,
    )


def _parse_edge(data: Any) -> GraphEdge:
    if not isinstance(data, Mapping):
        raise _InvalidEntry(f"edge entry must be a mapping, got {type(data).__name__}")
    flow = data.get("flow", True)
    if not isinstance(flow, bool):
        raise _InvalidEntry(f"'flow' must be a boolean, got {flow!r}")
    return GraphEdge(
        source_id=_text(data, "source", required=True),
        target_id=_text(data, "target", required=True),
        strength=_enum(data, "strength", Strength),
        confidence=_enum(data, "confidence", Confidence),
        effect=_enum(data, "effect", Effect),
        label=_text(data, "label"),
        flow=flow,
    )


def _invalid(code: WarningCode, message: str) -> GraphWarning:
    logger.warning(message)
    return GraphWarning(code=code, message=message)


def load_records(
    nodes: Iterable[Any],
    edges: Iterable[Any] = (),
    warnings: Iterable[GraphWarning] = (),
) -> GraphModel:
    """Build a graph from plain node/edge mappings in the document's key format.

    Records that cannot be read are skipped with an ``invalid_node`` or
    ``invalid_edge`` warning; the rest go through ``GraphModel.build``.
    """
    collected: list[GraphWarning] = list(warnings)

    parsed_nodes: list[GraphNode] = []
    for i, data in enumerate(nodes):
        try:
            parsed_nodes.append(_parse_node(data))
        except _InvalidEntry as exc:
            collected.append(_invalid(WarningCode.INVALID_NODE, f"node #{i} skipped: {exc}"))

    parsed_edges: list[GraphEdge] = []
    for i, data in enumerate(edges):
        try:
            parsed_edges.append(_parse_edge(data))
        except _InvalidEntry as exc:
            collected.append(_invalid(WarningCode.INVALID_EDGE, f"edge #{i} skipped: {exc}"))

    return GraphModel.build(parsed_nodes, parsed_edges, warnings=collected)


def _section(document: Mapping[str, Any], key: str, warnings: list[GraphWarning]) -> list[Any]:
    value = document.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        warnings.append(_invalid(WarningCode.INVALID_DOCUMENT, f"{key!r} must be a list; section ignored"))
        return []
    return value


def deserialize(text: str) -> GraphModel:
    """Parse a YAML document into a graph.

    Unparseable YAML, or a document that is not a mapping, yields an empty
    graph carrying an ``invalid_document`` warning.
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        return GraphModel(warnings=(_invalid(WarningCode.INVALID_DOCUMENT, f"document is not valid YAML: {exc}"),))

    if document is None:
        return GraphModel()
    if not isinstance(document, Mapping):
        message = f"document must be a mapping with 'nodes' and 'edges', got {type(document).__name__}"
        return GraphModel(warnings=(_invalid(WarningCode.INVALID_DOCUMENT, message),))

    warnings: list[GraphWarning] = []
    nodes = _section(document, "nodes", warnings)
    edges = _section(document, "edges", warnings)
    return load_records(nodes, edges, warnings)
