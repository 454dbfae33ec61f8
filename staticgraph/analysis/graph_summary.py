"""Basic statistics and consistency checks for a built graph."""

from collections import Counter
from dataclasses import dataclass, field

import networkx as nx

from staticgraph.graph import StaticGraph
from staticgraph.parser.dependencies import LOOP_END_SUFFIX


@dataclass
class LoopInfo:
    """A loop sentinel pair and the size of its body."""

    start: str
    end: str
    label: str
    body_size: int  # nodes strictly between start and end


@dataclass
class GraphSummary:
    """Summary of a built graph.

    Note: roots and leaves are computed over real nodes only; dangling edge
    endpoints are listed separately.
    """

    node_count: int
    edge_count: int
    node_types: dict[str, int] = field(default_factory=dict)
    roots: list[str] = field(default_factory=list)
    leaves: list[str] = field(default_factory=list)
    exit_handlers: list[str] = field(default_factory=list)
    loops: list[LoopInfo] = field(default_factory=list)
    dangling: list[str] = field(default_factory=list)
    is_acyclic: bool = True
    longest_path: int | None = None  # edges on the longest path, when acyclic
    diagnostics: list[str] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)


def _loop_body_size(nx_graph: nx.DiGraph, start: str, end: str) -> int:
    if end not in nx_graph:
        return 0
    between = nx.descendants(nx_graph, start) & nx.ancestors(nx_graph, end)
    return len(between)


def validate_graph(graph: StaticGraph) -> list[str]:
    """Problems that would trip up layout, as human readable strings."""
    problems = []
    for node_id in graph.dangling_nodes():
        problems.append(f"edge endpoint {node_id!r} is not a node")

    for node in graph.nodes():
        if node.node_type == "loop-start":
            end = node.node_id + LOOP_END_SUFFIX
            if not graph.has_node(end):
                problems.append(f"loop {node.node_id!r} has no end sentinel")
            elif graph.out_degree(node.node_id) == 0:
                problems.append(f"loop {node.node_id!r} has no body")
        elif node.node_type == "loop-end" and graph.in_degree(node.node_id) == 0:
            problems.append(f"loop end {node.node_id!r} is unreachable")
    return problems


def graph_summary(graph: StaticGraph) -> GraphSummary:
    """Extract basic statistics from a built graph.

    Args:
        graph: result of build_graph()

    Returns:
        GraphSummary with counts, loops and consistency findings.
    """
    nx_graph = graph.to_networkx()
    nodes = graph.nodes()

    loops = []
    for node in nodes:
        if node.node_type != "loop-start":
            continue
        end = node.node_id + LOOP_END_SUFFIX
        loops.append(LoopInfo(
            start=node.node_id,
            end=end,
            label=node.label,
            body_size=_loop_body_size(nx_graph, node.node_id, end),
        ))

    is_acyclic = nx.is_directed_acyclic_graph(nx_graph)
    return GraphSummary(
        node_count=len(nodes),
        edge_count=len(graph.edges()),
        node_types=dict(Counter(node.node_type for node in nodes)),
        roots=[n.node_id for n in nodes if graph.in_degree(n.node_id) == 0],
        leaves=[n.node_id for n in nodes if graph.out_degree(n.node_id) == 0],
        exit_handlers=[n.node_id for n in nodes if n.node_type == "exit-handler"],
        loops=loops,
        dangling=graph.dangling_nodes(),
        is_acyclic=is_acyclic,
        longest_path=nx.dag_longest_path_length(nx_graph) if is_acyclic else None,
        diagnostics=[str(error) for error in graph.diagnostics],
        problems=validate_graph(graph),
    )
