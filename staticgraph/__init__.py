"""Static graph builder for pipeline-run manifests."""

from staticgraph.config import Settings, load_settings
from staticgraph.errors import (
    LoopAnnotationError,
    LoopDepthExceededError,
    MalformedLoopAnnotationError,
    ManifestError,
    MissingLoopAnnotationError,
    StaticGraphError,
)
from staticgraph.graph import StaticGraph
from staticgraph.models.graph_topology import (
    GraphEdge,
    GraphNode,
    GraphTopology,
    NodeInfo,
    NodeKind,
    display_rows,
)
from staticgraph.models.manifest import PipelineRun, PipelineTask, parse_manifest
from staticgraph.parser.builder import build_graph

__all__ = [
    # Configuration
    "Settings",
    "load_settings",
    # Errors
    "LoopAnnotationError",
    "LoopDepthExceededError",
    "MalformedLoopAnnotationError",
    "ManifestError",
    "MissingLoopAnnotationError",
    "StaticGraphError",
    # Graph
    "GraphEdge",
    "GraphNode",
    "GraphTopology",
    "NodeInfo",
    "NodeKind",
    "StaticGraph",
    "display_rows",
    # Manifest
    "PipelineRun",
    "PipelineTask",
    "parse_manifest",
    # High-level APIs
    "build_graph",
]
