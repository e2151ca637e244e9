"""Base renderer protocol."""

from __future__ import annotations

from typing import Protocol

from causal_diagram.engine import RenderedScene


class Renderer(Protocol):
    """Protocol that all renderers must implement."""

    def render(self, scene: RenderedScene) -> str:
        """Render a resolved scene to an output string."""
        ...
