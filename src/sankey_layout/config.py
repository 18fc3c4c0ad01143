"""Layout parameters and their defaults."""

from __future__ import annotations

import math
from dataclasses import dataclass

# ─── Defaults ─────────────────────────────────────────────────────────────────

DEFAULT_ITERATIONS: int = 32  # relaxation rounds
NODE_THICKNESS: float = 24.0  # horizontal size of every node
MIN_GAP: float = 8.0  # vertical gap between nodes in the same column
CANVAS_WIDTH: float = 960.0
CANVAS_HEIGHT: float = 500.0
CURVATURE: float = 0.5  # control-point position between the two link ends
ALPHA_DECAY: float = 0.99  # relaxation strength multiplier per round


def check_iterations(iterations: object) -> None:
    """Raise ``ValueError`` unless ``iterations`` is a non-negative integer."""
    if isinstance(iterations, bool) or not isinstance(iterations, int) or iterations < 0:
        raise ValueError(f"iterations must be a non-negative integer, got {iterations!r}")


@dataclass(frozen=True)
class LayoutConfig:
    """Parameters for one ``SankeyLayout`` engine.

    Raises ``ValueError`` on construction if a size is negative or not finite,
    if ``iterations`` is not a non-negative integer, or if the nodes are wider
    than the canvas.
    """

    iterations: int = DEFAULT_ITERATIONS
    canvas_width: float = CANVAS_WIDTH
    canvas_height: float = CANVAS_HEIGHT
    node_thickness: float = NODE_THICKNESS
    min_gap: float = MIN_GAP
    curvature: float = CURVATURE

    def __post_init__(self) -> None:
        check_iterations(self.iterations)
        for name in ("canvas_width", "canvas_height", "node_thickness", "min_gap"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite non-negative number, got {value!r}")
        if self.node_thickness > self.canvas_width:
            raise ValueError(
                f"node_thickness ({self.node_thickness}) must not exceed canvas_width ({self.canvas_width})"
            )
        if not math.isfinite(self.curvature):
            raise ValueError(f"curvature must be finite, got {self.curvature!r}")
