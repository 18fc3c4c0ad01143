"""Sankey diagram layout engine and public API."""

from __future__ import annotations

from sankey_layout.config import (
    ALPHA_DECAY,
    CANVAS_HEIGHT,
    CANVAS_WIDTH,
    CURVATURE,
    DEFAULT_ITERATIONS,
    MIN_GAP,
    NODE_THICKNESS,
    LayoutConfig,
)
from sankey_layout.curve import CurvePath, curve_path
from sankey_layout.errors import CycleError, InvalidGraphError, LinkResolutionError, SankeyError
from sankey_layout.graph import SankeyGraph, link_graph
from sankey_layout.layout import (
    DepthSolver,
    SankeyLayout,
    assign_breadths,
    check_acyclic,
    compute_node_values,
    layout,
    relayout,
    scale_breadths,
    stack_link_depths,
)
from sankey_layout.types import Point, SankeyLink, SankeyNode

__all__ = [
    "ALPHA_DECAY",
    "CANVAS_HEIGHT",
    "CANVAS_WIDTH",
    "CURVATURE",
    "DEFAULT_ITERATIONS",
    "MIN_GAP",
    "NODE_THICKNESS",
    "CurvePath",
    "CycleError",
    "DepthSolver",
    "InvalidGraphError",
    "LayoutConfig",
    "LinkResolutionError",
    "Point",
    "SankeyError",
    "SankeyGraph",
    "SankeyLayout",
    "SankeyLink",
    "SankeyNode",
    "assign_breadths",
    "check_acyclic",
    "compute_node_values",
    "curve_path",
    "layout",
    "link_graph",
    "relayout",
    "scale_breadths",
    "stack_link_depths",
]
