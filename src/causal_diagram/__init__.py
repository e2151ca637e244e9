"""causal_diagram — layout and rendering engine for causal-relationship diagrams."""

from causal_diagram.config import LayoutConfig, load_config
from causal_diagram.engine import DiagramEngine, RenderedScene, SceneEdge, SceneNode
from causal_diagram.errors import ConfigError, DiagramError, GraphWarning, WarningCode
from causal_diagram.graph import Confidence, Effect, GraphEdge, GraphModel, GraphNode, NodeMetadata, Strength
from causal_diagram.highlight import HighlightController, HighlightState
from causal_diagram.layout import LayoutResult, compute_layout
from causal_diagram.serializer import deserialize, serialize

__version__ = "0.1.0"

__all__ = [
    "Confidence",
    "ConfigError",
    "DiagramEngine",
    "DiagramError",
    "Effect",
    "GraphEdge",
    "GraphModel",
    "GraphNode",
    "GraphWarning",
    "HighlightController",
    "HighlightState",
    "LayoutConfig",
    "LayoutResult",
    "NodeMetadata",
    "RenderedScene",
    "SceneEdge",
    "SceneNode",
    "Strength",
    "WarningCode",
    "compute_layout",
    "deserialize",
    "load_config",
    "serialize",
]
