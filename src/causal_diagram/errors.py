"""Error and warning types shared by the layout engine and the serializer.

Nothing in the layout path raises on bad input. Recoverable problems are
collected as ``GraphWarning`` values and surfaced next to the result, so a
host can show an inline notice instead of a crashed diagram.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WarningCode(str, Enum):
    """Category of a recoverable input or layout problem."""

    DANGLING_EDGE = "dangling_edge"
    DUPLICATE_NODE = "duplicate_node"
    CYCLE_EDGE = "cycle_edge"
    LAYOUT_FALLBACK = "layout_fallback"
    INVALID_NODE = "invalid_node"
    INVALID_EDGE = "invalid_edge"
    INVALID_DOCUMENT = "invalid_document"


@dataclass(frozen=True)
class GraphWarning:
    """A structured, non-fatal diagnostic.

    Attributes:
        code: What kind of problem this is.
        message: Human-readable description.
        subject: The node id or ``"source->target"`` pair concerned, if any.
    """

    code: WarningCode
    message: str
    subject: str | None = None

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"


class DiagramError(Exception):
    """Base class for errors raised by causal_diagram."""


class ConfigError(DiagramError):
    """Raised when a layout configuration mapping is invalid."""
