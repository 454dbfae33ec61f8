"""Mutable graph filled in by the builder.

Wraps a networkx DiGraph: adding an edge that already exists is a no-op and
an edge may name an endpoint before (or without) that node being added.
Such endpoints carry no "node" attribute and are reported by
dangling_nodes().
"""

from __future__ import annotations

import networkx as nx

from staticgraph.errors import StaticGraphError
from staticgraph.models.graph_topology import GraphEdge, GraphNode, GraphTopology
from staticgraph.utils.identifiers import generate_graph_id, utc_timestamp


class StaticGraph:
    """Nodes keyed by task name plus predecessor -> successor edges."""

    def __init__(self) -> None:
        self._graph: nx.DiGraph = nx.DiGraph()
        self.diagnostics: list[StaticGraphError] = []

    def set_node(self, node: GraphNode) -> None:
        """Add a node, replacing the attributes of an existing one with the same id."""
        self._graph.add_node(node.node_id, node=node)

    def set_edge(self, source: str, target: str) -> None:
        self._graph.add_edge(source, target)

    def has_node(self, node_id: str) -> bool:
        """True only for ids that were added as nodes, not bare edge endpoints."""
        return "node" in self._graph.nodes.get(node_id, {})

    def has_edge(self, source: str, target: str) -> bool:
        return self._graph.has_edge(source, target)

    def node(self, node_id: str) -> GraphNode | None:
        return self._graph.nodes.get(node_id, {}).get("node")

    def nodes(self) -> list[GraphNode]:
        """Nodes in insertion order."""
        return [data["node"] for _, data in self._graph.nodes(data=True) if "node" in data]

    def node_ids(self) -> list[str]:
        return [node.node_id for node in self.nodes()]

    def edges(self) -> list[tuple[str, str]]:
        """Edges grouped by source, sources in node insertion order."""
        return list(self._graph.edges())

    def in_degree(self, node_id: str) -> int:
        """Number of incoming edges; 0 for ids the graph has never seen."""
        if node_id not in self._graph:
            return 0
        return self._graph.in_degree(node_id)

    def out_degree(self, node_id: str) -> int:
        """Number of outgoing edges; 0 for ids the graph has never seen."""
        if node_id not in self._graph:
            return 0
        return self._graph.out_degree(node_id)

    def dangling_nodes(self) -> list[str]:
        """Edge endpoints that were never added as nodes."""
        return [node_id for node_id, data in self._graph.nodes(data=True) if "node" not in data]

    def to_networkx(self) -> nx.DiGraph:
        """A frozen copy of the underlying graph for analysis."""
        return nx.freeze(self._graph.copy())

    def to_topology(
        self,
        graph_id: str | None = None,
        name: str = "",
        description: str | None = None,
    ) -> GraphTopology:
        """Serializable snapshot of the graph."""
        now = utc_timestamp()
        return GraphTopology(
            graph_id=graph_id or generate_graph_id(),
            name=name,
            description=description,
            nodes=[node.model_copy(deep=True) for node in self.nodes()],
            edges=[GraphEdge(source=source, target=target) for source, target in self.edges()],
            diagnostics=[str(error) for error in self.diagnostics],
            created_at=now,
            updated_at=now,
        )

    def __len__(self) -> int:
        return len(self.nodes())

    def __repr__(self) -> str:
        return f"StaticGraph(nodes={len(self)}, edges={self._graph.number_of_edges()})"
