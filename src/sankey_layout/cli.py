"""Command-line interface: lay out a flow graph read from JSON or CSV."""

from __future__ import annotations

import argparse
import csv
import json
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sankey_layout.config import (
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    CURVATURE,
    DEFAULT_ITERATIONS,
    MIN_GAP,
    NODE_THICKNESS,
    LayoutConfig,
)
from sankey_layout.curve import curve_path
from sankey_layout.errors import SankeyError
from sankey_layout.graph import SankeyGraph
from sankey_layout.layout import SankeyLayout
from sankey_layout.types import SankeyLink, SankeyNode

logger = logging.getLogger(__name__)

EXIT_USAGE = 2
EXIT_INPUT = 3
EXIT_GRAPH = 4


@dataclass
class CliError(Exception):
    code: str
    message: str
    exit_code: int = 1


class UsageError(Exception):
    pass


class FriendlyArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # pragma: no cover - argparse callback
        raise UsageError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = FriendlyArgumentParser(
        prog="sankey-layout",
        description="Compute Sankey diagram geometry for a flow graph and print it as JSON.",
    )
    parser.add_argument("input", help="Input .json graph or .csv rows (source,target,value)")
    parser.add_argument("-o", "--output", help="Output .json path (default: stdout)")
    parser.add_argument("--width", type=float, default=CANVAS_WIDTH, help="Canvas width")
    parser.add_argument("--height", type=float, default=CANVAS_HEIGHT, help="Canvas height")
    parser.add_argument("--node-thickness", type=float, default=NODE_THICKNESS, help="Horizontal node size")
    parser.add_argument("--min-gap", type=float, default=MIN_GAP, help="Vertical gap between nodes in a column")
    parser.add_argument("--iterations", type=int, default=DEFAULT_ITERATIONS, help="Relaxation rounds")
    parser.add_argument("--curvature", type=float, default=CURVATURE, help="Link curve control-point position")
    parser.add_argument("--verbose", action="store_true", help="Verbose logging")
    return parser


# ─── Input ────────────────────────────────────────────────────────────────────


def load_graph(path: Path) -> SankeyGraph:
    """Read a graph from ``path``; the format follows the file suffix."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CliError("E_INPUT", f"cannot read {path}: {exc.strerror or exc}", EXIT_INPUT) from exc

    if path.suffix.lower() == ".csv":
        return SankeyGraph.from_rows(csv.reader(text.splitlines()))
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CliError("E_INPUT", f"invalid JSON in {path}: {exc}", EXIT_INPUT) from exc
    return graph_from_json(payload)


def graph_from_json(payload: Any) -> SankeyGraph:
    """Build a graph from ``{"nodes": [...], "links": [...]}``.

    Nodes are names or objects with a ``name``. Link endpoints are node indices
    or node names. Without a ``nodes`` list the links are read like CSV rows,
    so nodes are created from the endpoint names.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("links"), list):
        raise CliError("E_INPUT", 'expected an object with a "links" list', EXIT_INPUT)

    try:
        if "nodes" not in payload:
            return SankeyGraph.from_rows((link["source"], link["target"], link["value"]) for link in payload["links"])

        graph = SankeyGraph(nodes=[SankeyNode(name=_node_name(entry)) for entry in payload["nodes"]])
        for link in payload["links"]:
            graph.links.append(
                SankeyLink(
                    source=_endpoint(graph, link["source"]),
                    target=_endpoint(graph, link["target"]),
                    value=link["value"],
                )
            )
        return graph
    except (KeyError, TypeError) as exc:
        raise CliError("E_INPUT", f"malformed graph entry: {exc!r}", EXIT_INPUT) from exc


def _node_name(entry: Any) -> str:
    if isinstance(entry, dict):
        return str(entry["name"])
    return str(entry)


def _endpoint(graph: SankeyGraph, ref: Any) -> int:
    if isinstance(ref, str):
        try:
            return graph.index_of(ref)
        except KeyError:
            raise CliError("E_INPUT", f"unknown node name {ref!r}", EXIT_INPUT) from None
    return ref


# ─── Output ───────────────────────────────────────────────────────────────────


def layout_to_json(graph: SankeyGraph, curvature: float) -> dict[str, Any]:
    return {
        "nodes": [
            {
                "name": node.name,
                "value": node.value,
                "breadth": node.breadth,
                "x": node.x,
                "width": node.width,
                "depth": node.depth,
                "height": node.height,
            }
            for node in graph.nodes
        ],
        "links": [
            {
                "source": link.source,
                "target": link.target,
                "value": link.value,
                "thickness": link.thickness,
                "source_offset": link.source_offset,
                "target_offset": link.target_offset,
                "row": link.row,
                "path": curve_path(graph.nodes, link, curvature).to_svg_path(),
            }
            for link in graph.links
        ],
    }


def _emit_error(err: CliError) -> None:
    sys.stderr.write(f"error[{err.code}]: {err.message}\n")


# ─── Entry Point ──────────────────────────────────────────────────────────────


def main(argv: Iterable[str] | None = None) -> int:
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    parser = _build_parser()

    try:
        args = parser.parse_args(raw_argv)
    except UsageError as exc:
        _emit_error(CliError("E_ARGS", str(exc), EXIT_USAGE))
        return EXIT_USAGE

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

    try:
        config = LayoutConfig(
            iterations=args.iterations,
            canvas_width=args.width,
            canvas_height=args.height,
            node_thickness=args.node_thickness,
            min_gap=args.min_gap,
            curvature=args.curvature,
        )
    except ValueError as exc:
        _emit_error(CliError("E_ARGS", str(exc), EXIT_USAGE))
        return EXIT_USAGE

    try:
        graph = load_graph(Path(args.input))
        SankeyLayout(config).layout(graph)
    except CliError as err:
        _emit_error(err)
        return err.exit_code
    except SankeyError as exc:
        _emit_error(CliError("E_GRAPH", str(exc), EXIT_GRAPH))
        return EXIT_GRAPH

    document = json.dumps(layout_to_json(graph, config.curvature), indent=2)
    if args.output:
        Path(args.output).write_text(document + "\n", encoding="utf-8")
        logger.info("wrote layout to %s", args.output)
    else:
        sys.stdout.write(document + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
