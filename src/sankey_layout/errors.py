"""Exceptions raised for graphs that break the layout preconditions."""

from __future__ import annotations


class SankeyError(ValueError):
    """Base class for every error raised by sankey_layout."""


class LinkResolutionError(SankeyError):
    """Raised when a link endpoint does not resolve to a node of the graph."""

    def __init__(self, link_index: int | None, message: str) -> None:
        prefix = f"link {link_index}: " if link_index is not None else ""
        super().__init__(prefix + message)
        self.link_index = link_index


class InvalidGraphError(SankeyError):
    """Raised for self-loops and negative or non-finite link values."""


class CycleError(SankeyError):
    """Raised when the graph has a directed cycle and cannot be layered."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__("graph contains a cycle: " + " -> ".join(cycle + cycle[:1]))
        self.cycle = cycle
