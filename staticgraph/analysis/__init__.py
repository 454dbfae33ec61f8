"""Analysis utilities for built graphs."""

from staticgraph.analysis.graph_summary import (
    GraphSummary,
    LoopInfo,
    graph_summary,
    validate_graph,
)
from staticgraph.analysis.analyze_graph import (
    format_summary,
    load_manifest,
    summary_to_dict,
)

__all__ = [
    # graph_summary exports
    "GraphSummary",
    "LoopInfo",
    "graph_summary",
    "validate_graph",
    # analyze_graph exports
    "format_summary",
    "load_manifest",
    "summary_to_dict",
]
