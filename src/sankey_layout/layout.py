"""Layout module: Sankey flow layout pipeline.

Phases:
  1. Linking         (graph.link_graph: endpoints to indices, adjacency)
  2. Node values     (max of outgoing / incoming totals)
  3. Breadth         (frontier layering into columns, sinks pushed right)
  4. Depth           (iterative relaxation + collision resolution)
  5. Link stacking   (per-node offsets of incident links)

``relayout`` re-runs phase 5 only, for callers that moved nodes vertically.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

import networkx as nx

from sankey_layout.config import (
    ALPHA_DECAY,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    DEFAULT_ITERATIONS,
    MIN_GAP,
    NODE_THICKNESS,
    LayoutConfig,
    check_iterations,
)
from sankey_layout.errors import CycleError, LinkResolutionError
from sankey_layout.graph import SankeyGraph, link_graph
from sankey_layout.types import SankeyLink, SankeyNode

logger = logging.getLogger(__name__)

# ─── Node Values ──────────────────────────────────────────────────────────────


def compute_node_values(graph: SankeyGraph) -> None:
    """Set each node's value to the larger of its outgoing and incoming totals.

    Nodes without links get 0.
    """
    links = graph.links
    for node in graph.nodes:
        node.value = max(
            sum(links[i].value for i in node.outgoing),
            sum(links[i].value for i in node.incoming),
        )


# ─── Breadth Assignment ───────────────────────────────────────────────────────


def check_acyclic(graph: SankeyGraph) -> None:
    """Raise ``CycleError`` if the linked graph has a directed cycle."""
    try:
        cycle_edges = nx.find_cycle(graph.to_networkx())
    except nx.NetworkXNoCycle:
        return
    raise CycleError([graph.nodes[edge[0]].name for edge in cycle_edges])


def assign_breadths(graph: SankeyGraph) -> int:
    """Assign every node a column and return the index of the last column.

    Algorithm: the frontier starts as every node. Each round writes the current
    layer into the breadth of every frontier node, then the frontier becomes
    the set of targets of the frontier's outgoing links. A node reached again
    in a later round is pushed further right, so it ends up at the length of
    the longest path leading into it. Finally every sink (no outgoing links)
    moves to the last column so all terminal nodes line up on the right.

    Raises:
        CycleError: the graph has a cycle, so the frontier would never empty.
    """
    check_acyclic(graph)

    nodes, links = graph.nodes, graph.links
    frontier: list[int] = list(range(len(nodes)))
    layer = 0
    while frontier:
        # dict keeps first-seen order while dropping repeats.
        next_frontier: dict[int, None] = {}
        for node_index in frontier:
            node = nodes[node_index]
            node.breadth = layer
            for link_index in node.outgoing:
                next_frontier[links[link_index].target] = None
        frontier = list(next_frontier)
        layer += 1

    max_layer = max(layer - 1, 0)
    for node in nodes:
        if not node.outgoing:
            node.breadth = max_layer
    return max_layer


def scale_breadths(graph: SankeyGraph, max_layer: int, canvas_width: float, node_thickness: float) -> None:
    """Map columns to horizontal positions so the last column ends at ``canvas_width``.

    A single-column graph (``max_layer == 0``) puts every node at x = 0.
    """
    kx = (canvas_width - node_thickness) / max_layer if max_layer else 0.0
    for node in graph.nodes:
        node.x = node.breadth * kx
        node.width = node_thickness


# ─── Depth Relaxation ─────────────────────────────────────────────────────────


class DepthSolver:
    """Vertical placement of nodes within their columns.

    Nodes get heights proportional to their value, links get matching
    thicknesses, and node positions are relaxed toward the value-weighted
    centers of their neighbours while keeping same-column nodes apart by at
    least ``min_gap`` and inside ``[0, canvas_height]``.

    One solver is created per layout call and dropped when it returns.
    """

    def __init__(self, graph: SankeyGraph, canvas_height: float, min_gap: float) -> None:
        self.graph = graph
        self.canvas_height = canvas_height
        self.min_gap = min_gap
        self.columns = graph.columns()
        # Position of each node in its column before any sorting; breaks depth ties.
        self._order: dict[SankeyNode, int] = {node: i for column in self.columns for i, node in enumerate(column)}
        self.ky = 0.0

    def solve(self, iterations: int) -> None:
        check_iterations(iterations)

        self.initialize()
        self.resolve_collisions()
        alpha = 1.0
        for _round in range(iterations):
            alpha *= ALPHA_DECAY
            self.relax_right_to_left(alpha)
            self.resolve_collisions()
            self.relax_left_to_right(alpha)
            self.resolve_collisions()

    def scale_factor(self) -> float:
        """Output units per unit of value, sized so the most crowded column fits exactly.

        Columns with zero total value impose no limit; with no positive column
        at all, or when the gaps alone overflow the canvas, the factor is 0.
        """
        candidates: list[float] = []
        for column in self.columns:
            total = sum(node.value for node in column)
            if total > 0:
                candidates.append((self.canvas_height - (len(column) - 1) * self.min_gap) / total)
        if not candidates:
            return 0.0
        return max(0.0, min(candidates))

    def initialize(self) -> None:
        """Stack nodes at unit depths in column order and size nodes and links."""
        self.ky = self.scale_factor()
        logger.debug("depth scale ky=%g over %d columns", self.ky, len(self.columns))
        for column in self.columns:
            for i, node in enumerate(column):
                node.depth = float(i)
                node.height = node.value * self.ky
        for link in self.graph.links:
            link.thickness = link.value * self.ky

    def relax_right_to_left(self, alpha: float) -> None:
        """Pull each node toward the weighted center of its outgoing targets."""
        graph = self.graph
        for column in reversed(self.columns):
            for node in column:
                target = _weighted_center(graph.links, node.outgoing, graph.target_of)
                if target is not None:
                    node.depth += (target - node.center) * alpha

    def relax_left_to_right(self, alpha: float) -> None:
        """Pull each node toward the weighted center of its incoming sources."""
        graph = self.graph
        for column in self.columns:
            for node in column:
                target = _weighted_center(graph.links, node.incoming, graph.source_of)
                if target is not None:
                    node.depth += (target - node.center) * alpha

    def resolve_collisions(self) -> None:
        """Separate overlapping nodes in every column and keep them on the canvas."""
        gap = self.min_gap
        for column in self.columns:
            if not column:
                continue
            column.sort(key=lambda n: (n.depth, self._order[n]))

            # Push any overlapping nodes down.
            y0 = 0.0
            for node in column:
                overlap = y0 - node.depth
                if overlap > 0:
                    node.depth += overlap
                y0 = node.depth + node.height + gap

            # If the bottom-most node goes past the canvas, push the stack back up.
            overflow = y0 - gap - self.canvas_height
            if overflow > 0:
                last = column[-1]
                last.depth = max(0.0, last.depth - overflow)
                y0 = last.depth
                for node in reversed(column[:-1]):
                    overlap = node.depth + node.height + gap - y0
                    if overlap > 0:
                        node.depth = max(0.0, node.depth - overlap)
                    y0 = node.depth


def _weighted_center(
    links: list[SankeyLink],
    link_indices: list[int],
    far_node: Callable[[SankeyLink], SankeyNode],
) -> float | None:
    """Value-weighted mean center of the far endpoints, or None if nothing to pull toward."""
    total = 0.0
    weighted = 0.0
    for i in link_indices:
        link = links[i]
        total += link.value
        weighted += far_node(link).center * link.value
    if total <= 0:
        return None
    return weighted / total


# ─── Link Stacking ────────────────────────────────────────────────────────────


def stack_link_depths(graph: SankeyGraph) -> None:
    """Order each node's links by the far node's center and stack their offsets.

    Outgoing links are sorted by target center and incoming links by source
    center (stable, so ties keep their current order), then each link is
    placed directly below the previous one on that side of the node.
    """
    nodes, links = graph.nodes, graph.links
    for node in nodes:
        node.outgoing.sort(key=lambda i: graph.target_of(links[i]).center)
        node.incoming.sort(key=lambda i: graph.source_of(links[i]).center)

    for node in nodes:
        offset = 0.0
        for i in node.outgoing:
            links[i].source_offset = offset
            offset += links[i].thickness
        offset = 0.0
        for i in node.incoming:
            links[i].target_offset = offset
            offset += links[i].thickness


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


class SankeyLayout:
    """Sankey layout engine configured by a ``LayoutConfig``."""

    def __init__(self, config: LayoutConfig | None = None) -> None:
        self.config = config if config is not None else LayoutConfig()

    def layout(self, graph: SankeyGraph) -> SankeyGraph:
        """Run the whole pipeline, writing derived fields onto ``graph`` in place."""
        config = self.config
        link_graph(graph)
        compute_node_values(graph)
        max_layer = assign_breadths(graph)
        scale_breadths(graph, max_layer, config.canvas_width, config.node_thickness)
        DepthSolver(graph, config.canvas_height, config.min_gap).solve(config.iterations)
        stack_link_depths(graph)
        logger.debug(
            "laid out %d nodes and %d links in %d columns",
            len(graph.nodes),
            len(graph.links),
            max_layer + 1 if graph.nodes else 0,
        )
        return graph

    def relayout(self, graph: SankeyGraph) -> SankeyGraph:
        """Re-stack link offsets after node depths were changed externally.

        The graph must have been through ``layout`` already: endpoints resolved
        and adjacency lists built.
        """
        if not graph.is_linked():
            raise LinkResolutionError(None, "relayout needs a graph that has been laid out")
        stack_link_depths(graph)
        return graph


def layout(
    nodes: Iterable[SankeyNode],
    links: Iterable[SankeyLink],
    iterations: int = DEFAULT_ITERATIONS,
    canvas_width: float = CANVAS_WIDTH,
    canvas_height: float = CANVAS_HEIGHT,
    node_thickness: float = NODE_THICKNESS,
    min_gap: float = MIN_GAP,
) -> tuple[list[SankeyNode], list[SankeyLink]]:
    """Lay out ``nodes`` and ``links`` and return them enriched with geometry.

    The returned lists hold the same objects that were passed in.
    """
    config = LayoutConfig(
        iterations=iterations,
        canvas_width=canvas_width,
        canvas_height=canvas_height,
        node_thickness=node_thickness,
        min_gap=min_gap,
    )
    graph = SankeyLayout(config).layout(SankeyGraph(nodes=list(nodes), links=list(links)))
    return graph.nodes, graph.links


def relayout(
    nodes: Iterable[SankeyNode],
    links: Iterable[SankeyLink],
) -> tuple[list[SankeyNode], list[SankeyLink]]:
    """Recompute link offsets only, using the nodes' current depths."""
    graph = SankeyLayout().relayout(SankeyGraph(nodes=list(nodes), links=list(links)))
    return graph.nodes, graph.links
