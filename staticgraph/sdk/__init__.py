"""SDK for publishing pipeline graphs."""

from staticgraph.sdk.graph_publisher import build_and_register, build_topology

__all__ = [
    "build_and_register",
    "build_topology",
]
