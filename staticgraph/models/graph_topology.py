"""Data model for a built pipeline graph.

GraphTopology is the serialized form handed to the layout/rendering side
and stored by the server.
"""

from enum import Enum

from pydantic import BaseModel, Field


class NodeKind(str, Enum):
    """what a node runs."""

    container = "container"
    resource = "resource"
    dag = "dag"
    unknown = "unknown"


class NodeInfo(BaseModel):
    """display details of a single node.

    List fields are empty when the manifest has no data for them; see
    display_rows() for how they render.
    """

    node_type: NodeKind = NodeKind.unknown
    args: list[str] = Field(default_factory=list)
    command: list[str] = Field(default_factory=list)
    condition: str = ""
    image: str = ""
    inputs: list[tuple[str, str]] = Field(default_factory=list)  # (name, value)
    outputs: list[tuple[str, str]] = Field(default_factory=list)  # (name, description)
    volume_mounts: list[tuple[str, str]] = Field(default_factory=list)  # (mountPath, volume name)
    resource: list[tuple[str, str]] = Field(default_factory=list)  # reserved


def display_rows(pairs: list[tuple[str, str]]) -> list[tuple[str, str]]:
    """Rows a renderer shows for a pair list; an empty list is one blank row."""
    return list(pairs) if pairs else [("", "")]


class GraphNode(BaseModel):
    """a node in the graph, one per task plus loop end sentinels."""

    node_id: str
    label: str
    node_type: str = "task"  # "task", "exit-handler", "loop-start", "loop-end"
    width: int
    height: int
    bg_color: str | None = None
    info: NodeInfo = Field(default_factory=NodeInfo)


class GraphEdge(BaseModel):
    """a directed edge, predecessor -> successor."""

    source: str
    target: str


class GraphTopology(BaseModel):
    """the full graph built from one pipeline run."""

    graph_id: str
    name: str
    description: str | None = None
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    diagnostics: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str
