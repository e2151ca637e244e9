"""Output renderers for laid-out causal diagrams."""

from causal_diagram.renderers.base import Renderer
from causal_diagram.renderers.svg import SvgRenderer

__all__ = ["Renderer", "SvgRenderer"]
