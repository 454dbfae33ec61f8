"""Turn pipeline-run manifests into static graphs."""

from staticgraph.parser.builder import build_graph, build_pipeline_dag
from staticgraph.parser.context import BuildContext, LoopBoundary
from staticgraph.parser.dependencies import add_dependency_edges, resolve_dependencies
from staticgraph.parser.loops import expand_loop
from staticgraph.parser.node_info import extract_node_info, populate_node_info
from staticgraph.parser.param_refs import parse_task_reference

__all__ = [
    "BuildContext",
    "LoopBoundary",
    "add_dependency_edges",
    "build_graph",
    "build_pipeline_dag",
    "expand_loop",
    "extract_node_info",
    "parse_task_reference",
    "populate_node_info",
    "resolve_dependencies",
]
