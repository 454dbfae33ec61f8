"""Manifest and graph data models."""

from staticgraph.models.graph_topology import (
    GraphEdge,
    GraphNode,
    GraphTopology,
    NodeInfo,
    NodeKind,
    display_rows,
)
from staticgraph.models.manifest import (
    PipelineRun,
    PipelineTask,
    TaskVariant,
    parse_manifest,
    parse_manifest_json,
)

__all__ = [
    # Graph topology
    "GraphEdge",
    "GraphNode",
    "GraphTopology",
    "NodeInfo",
    "NodeKind",
    "display_rows",
    # Manifest
    "PipelineRun",
    "PipelineTask",
    "TaskVariant",
    "parse_manifest",
    "parse_manifest_json",
]
