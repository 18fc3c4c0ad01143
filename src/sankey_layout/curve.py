"""Curve geometry: cubic Bézier description of a stacked link."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from sankey_layout.config import CURVATURE
from sankey_layout.graph import resolved_index
from sankey_layout.types import Point, SankeyLink, SankeyNode


@dataclass(frozen=True)
class CurvePath:
    """A cubic Bézier from a link's source edge to its target edge.

    Iterating yields the points in drawing order: start, the two control
    points, end.
    """

    start: Point
    control1: Point
    control2: Point
    end: Point

    def __iter__(self) -> Iterator[Point]:
        return iter((self.start, self.control1, self.control2, self.end))

    def to_svg_path(self) -> str:
        """SVG path data (``d`` attribute) for the curve."""
        s, c1, c2, e = self
        return f"M{_num(s.x)},{_num(s.y)}C{_num(c1.x)},{_num(c1.y)} {_num(c2.x)},{_num(c2.y)} {_num(e.x)},{_num(e.y)}"


def curve_path(nodes: Sequence[SankeyNode], link: SankeyLink, curvature: float = CURVATURE) -> CurvePath:
    """Build the curve for ``link`` after layout.

    The curve leaves the source node's right edge and enters the target node's
    left edge, each end at the vertical center of the link's stacked band.
    ``curvature`` places the control points along the horizontal span: 0.5
    puts both at the midpoint, 0 gives a straight line.
    """
    source = nodes[resolved_index(link.source)]
    target = nodes[resolved_index(link.target)]

    x0 = source.x + source.width
    x1 = target.x
    x2 = x0 + (x1 - x0) * curvature
    x3 = x0 + (x1 - x0) * (1 - curvature)
    y0 = source.depth + link.source_offset + link.thickness / 2
    y1 = target.depth + link.target_offset + link.thickness / 2
    return CurvePath(start=Point(x0, y0), control1=Point(x2, y0), control2=Point(x3, y1), end=Point(x1, y1))


def _num(value: float) -> str:
    return format(value, ".15g")
