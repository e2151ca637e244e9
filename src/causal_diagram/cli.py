"""causal-diagram CLI — lay out, check and normalize diagram documents.

Commands:
    render      Lay out a YAML document and write SVG
    check       Report ingestion and layout warnings
    normalize   Re-serialize a document in canonical form
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer

from causal_diagram.config import LayoutConfig, load_config
from causal_diagram.engine import DiagramEngine
from causal_diagram.errors import ConfigError, GraphWarning
from causal_diagram.graph import GraphModel
from causal_diagram.layout import compute_layout
from causal_diagram.renderers import SvgRenderer
from causal_diagram.serializer import deserialize, serialize

app = typer.Typer(
    name="causal-diagram",
    help="Causal diagram layout and rendering.",
    no_args_is_help=True,
)

DocumentArg = Annotated[
    Path,
    typer.Argument(exists=True, dir_okay=False, readable=True, help="YAML diagram document"),
]


@app.callback()
def _root(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log layout details to stderr")] = False,
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _read_graph(path: Path) -> GraphModel:
    return deserialize(path.read_text(encoding="utf-8"))


def _read_config(path: Path | None) -> LayoutConfig:
    if path is None:
        return LayoutConfig()
    try:
        return load_config(path)
    except ConfigError as e:
        print(f"Error: {path}: {e}")
        raise typer.Exit(1) from e


def _report(warnings: list[GraphWarning]) -> None:
    for warning in warnings:
        typer.echo(f"warning: {warning}", err=True)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def render(
    document: DocumentArg,
    config: Annotated[Path | None, typer.Option("--config", "-c", help="YAML layout config")] = None,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write SVG to file")] = None,
    focus: Annotated[str | None, typer.Option("--focus", help="Render as if this node were hovered")] = None,
):
    """Lay out DOCUMENT and write it as SVG."""
    engine = DiagramEngine(_read_config(config))
    result = engine.set_graph(_read_graph(document))
    _report(result.warnings)

    if focus is not None:
        if engine.graph.node(focus) is None:
            print(f"Error: no node with id '{focus}'")
            raise typer.Exit(1)
        engine.pointer_enter(focus)

    svg = SvgRenderer().render(engine.render_scene())
    if output is None:
        print(svg)
    else:
        output.write_text(svg + "\n", encoding="utf-8")
        typer.echo(f"wrote {output}", err=True)


@app.command()
def check(
    document: DocumentArg,
    config: Annotated[Path | None, typer.Option("--config", "-c", help="YAML layout config")] = None,
):
    """Report warnings for DOCUMENT; exit status 1 when there are any."""
    graph = _read_graph(document)
    result = compute_layout(graph, _read_config(config))

    for warning in result.warnings:
        print(f"{warning.code.value}: {warning.message}")

    tiers = len(result.bands)
    summary = f"{len(graph.nodes)} nodes, {len(graph.edges)} edges, {tiers} tiers"
    if result.warnings:
        print(f"{len(result.warnings)} warning(s); {summary}")
        raise typer.Exit(1)
    print(f"ok: {summary}")


@app.command()
def normalize(
    document: DocumentArg,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Write YAML to file")] = None,
):
    """Re-serialize DOCUMENT in canonical form, dropping invalid entries."""
    graph = _read_graph(document)
    _report(list(graph.warnings))
    text = serialize(graph)
    if output is None:
        print(text, end="")
    else:
        output.write_text(text, encoding="utf-8")


def main():
    """CLI entry point."""
    app()
