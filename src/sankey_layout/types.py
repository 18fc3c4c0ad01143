"""Layout types shared by the engine, the curve helper and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(eq=False)
class SankeyNode:
    """A node of the flow graph plus the geometry the layout derives for it.

    Only ``name`` is caller input. Every other field is written by the layout
    pipeline and is recomputed from scratch on each ``layout`` call.

    Attributes:
        name: Stable identity and display label.
        value: Throughput, the larger of the outgoing and incoming link totals.
        breadth: Column index (0 = leftmost).
        x: Left edge in output units.
        width: Horizontal thickness.
        depth: Top edge in output units.
        height: Vertical size, proportional to ``value``.
        outgoing: Indices into the link arena of links leaving this node.
        incoming: Indices into the link arena of links entering this node.
    """

    name: str
    value: float = 0.0
    breadth: int = 0
    x: float = 0.0
    width: float = 0.0
    depth: float = 0.0
    height: float = 0.0
    outgoing: list[int] = field(default_factory=list)
    incoming: list[int] = field(default_factory=list)

    @property
    def center(self) -> float:
        """Vertical center of the node."""
        return self.depth + self.height / 2


@dataclass(eq=False)
class SankeyLink:
    """A weighted flow between two nodes.

    ``source`` and ``target`` may be given as node arena indices or as
    ``SankeyNode`` instances; the linker normalises both to indices.
    """

    source: int | SankeyNode
    target: int | SankeyNode
    value: float
    thickness: float = 0.0
    source_offset: float = 0.0
    target_offset: float = 0.0
    row: int | None = None  # input row the link was read from, if any


@dataclass(frozen=True)
class Point:
    """A 2D point in output units."""

    x: float
    y: float
