"""Graph arena: node/link storage, endpoint linking and the row adapter.

Nodes and links live in two indexed lists. Links refer to their endpoints by
node index and nodes refer to their adjacent links by link index, so the
record types carry no back-references to each other.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import networkx as nx

from sankey_layout.errors import InvalidGraphError, LinkResolutionError
from sankey_layout.types import SankeyLink, SankeyNode

logger = logging.getLogger(__name__)


@dataclass
class SankeyGraph:
    """Node and link arena that the layout pipeline reads and enriches."""

    nodes: list[SankeyNode] = field(default_factory=list)
    links: list[SankeyLink] = field(default_factory=list)

    # ─── Lookup ───────────────────────────────────────────────────────────────

    def index_of(self, name: str) -> int:
        """Arena index of the first node called ``name``; ``KeyError`` if absent."""
        for index, node in enumerate(self.nodes):
            if node.name == name:
                return index
        raise KeyError(name)

    def source_of(self, link: SankeyLink) -> SankeyNode:
        return self.nodes[resolved_index(link.source)]

    def target_of(self, link: SankeyLink) -> SankeyNode:
        return self.nodes[resolved_index(link.target)]

    def is_linked(self) -> bool:
        """True once ``link_graph`` has resolved every endpoint and built the adjacency lists.

        Each link must be listed exactly once, in its source's ``outgoing`` and
        its target's ``incoming``.
        """
        node_count = len(self.nodes)
        for index, link in enumerate(self.links):
            if not (_is_index(link.source) and _is_index(link.target)):
                return False
            if not (0 <= link.source < node_count and 0 <= link.target < node_count):
                return False
            if index not in self.nodes[link.source].outgoing or index not in self.nodes[link.target].incoming:
                return False
        link_count = len(self.links)
        return (
            sum(len(node.outgoing) for node in self.nodes) == link_count
            and sum(len(node.incoming) for node in self.nodes) == link_count
        )

    def columns(self) -> list[list[SankeyNode]]:
        """Nodes grouped by breadth, columns left to right, arena order inside each."""
        by_breadth: dict[int, list[SankeyNode]] = {}
        for node in self.nodes:
            by_breadth.setdefault(node.breadth, []).append(node)
        return [by_breadth[breadth] for breadth in sorted(by_breadth)]

    # ─── Conversion ───────────────────────────────────────────────────────────

    def to_networkx(self) -> nx.MultiDiGraph:
        """Export as a MultiDiGraph keyed by node index.

        Nodes carry ``name`` and ``value``; each edge is keyed by its link index
        and carries ``value``. The graph must already be linked.
        """
        g: nx.MultiDiGraph = nx.MultiDiGraph()
        for index, node in enumerate(self.nodes):
            g.add_node(index, name=node.name, value=node.value)
        for index, link in enumerate(self.links):
            g.add_edge(resolved_index(link.source), resolved_index(link.target), key=index, value=link.value)
        return g

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[object]]) -> SankeyGraph:
        """Build a graph from ``(source, target, value)`` rows.

        Node names are stringified and deduplicated in first-seen order. Rows
        that cannot become a valid link are skipped: missing endpoints, a value
        that is not a finite non-negative number, or a self-loop. Each kept link
        remembers its input row index in ``row``.
        """
        graph = cls()
        index_by_name: dict[str, int] = {}

        def add_name(name: str) -> int:
            if name not in index_by_name:
                index_by_name[name] = len(graph.nodes)
                graph.nodes.append(SankeyNode(name=name))
            return index_by_name[name]

        for row_index, row in enumerate(rows):
            if len(row) < 3:
                logger.debug("row %d skipped: expected source, target and value", row_index)
                continue
            source, target, raw_value = row[0], row[1], row[2]
            value = _parse_value(raw_value)
            if source is None or target is None or value is None:
                logger.debug("row %d skipped: missing endpoint or unusable value %r", row_index, raw_value)
                continue
            source_name, target_name = str(source), str(target)
            if source_name == target_name:
                logger.debug("row %d skipped: self-loop on %r", row_index, source_name)
                continue
            graph.links.append(
                SankeyLink(
                    source=add_name(source_name),
                    target=add_name(target_name),
                    value=value,
                    row=row_index,
                )
            )

        logger.debug("read %d nodes and %d links from rows", len(graph.nodes), len(graph.links))
        return graph


# ─── Linking ──────────────────────────────────────────────────────────────────


def link_graph(graph: SankeyGraph) -> None:
    """Resolve link endpoints to node indices and rebuild node adjacency.

    Endpoints given as ``SankeyNode`` instances are matched by identity. Any
    previous ``outgoing``/``incoming`` lists are discarded, so linking an
    already-linked graph is safe.

    Raises:
        LinkResolutionError: an endpoint index is out of range, or names a node
            object that is not in ``graph.nodes``.
        InvalidGraphError: a link is a self-loop, or its value is negative or
            not a finite number.
    """
    for node in graph.nodes:
        node.outgoing = []
        node.incoming = []

    position: dict[int, int] = {id(node): index for index, node in enumerate(graph.nodes)}
    node_count = len(graph.nodes)

    for link_index, link in enumerate(graph.links):
        source = _resolve_endpoint(link.source, link_index, "source", position, node_count)
        target = _resolve_endpoint(link.target, link_index, "target", position, node_count)
        if source == target:
            raise InvalidGraphError(f"link {link_index}: self-loop on node {graph.nodes[source].name!r}")
        if not _is_number(link.value) or not math.isfinite(link.value) or link.value < 0:
            raise InvalidGraphError(f"link {link_index}: value must be a finite non-negative number, got {link.value!r}")

        link.source = source
        link.target = target
        graph.nodes[source].outgoing.append(link_index)
        graph.nodes[target].incoming.append(link_index)


def _resolve_endpoint(
    endpoint: object,
    link_index: int,
    side: str,
    position: dict[int, int],
    node_count: int,
) -> int:
    if _is_index(endpoint):
        if not 0 <= endpoint < node_count:
            raise LinkResolutionError(link_index, f"{side} index {endpoint} out of range for {node_count} nodes")
        return endpoint
    if isinstance(endpoint, SankeyNode):
        if id(endpoint) not in position:
            raise LinkResolutionError(link_index, f"{side} node {endpoint.name!r} is not part of the graph")
        return position[id(endpoint)]
    raise LinkResolutionError(link_index, f"{side} must be a node index or SankeyNode, got {type(endpoint).__name__}")


def resolved_index(endpoint: object) -> int:
    """``endpoint`` as an arena index; ``LinkResolutionError`` if it is still unresolved."""
    if not _is_index(endpoint):
        raise LinkResolutionError(None, "link endpoints are not resolved; run link_graph first")
    return endpoint


def _is_index(endpoint: object) -> bool:
    return isinstance(endpoint, int) and not isinstance(endpoint, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _parse_value(raw: object) -> float | None:
    """Row value as a finite non-negative float, or None if unusable."""
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value
