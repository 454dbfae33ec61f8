"""API routes for building and storing pipeline graphs."""

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from staticgraph.errors import LoopAnnotationError, LoopDepthExceededError, ManifestError
from staticgraph.models.graph_topology import GraphEdge, GraphNode, GraphTopology
from staticgraph.parser.builder import build_graph
from staticgraph.utils.identifiers import generate_graph_id, utc_timestamp
from server.graph_db import (
    GraphRow,
    delete_graph as db_delete_graph,
    list_graphs as db_list_graphs,
    load_graph,
    save_graph,
)

router = APIRouter()


class BuildGraphRequest(BaseModel):
    """request body for building the graph of a pipeline run."""

    manifest: dict[str, Any]
    graph_id: str | None = None
    name: str | None = None
    description: str | None = None
    strict: bool = False
    persist: bool = False


class StoreGraphRequest(BaseModel):
    """request body for storing an already built topology."""

    name: str
    description: str | None = None
    nodes: list[GraphNode]
    edges: list[GraphEdge]
    diagnostics: list[str] = []


@router.post("/graphs/build")
def build(request: BuildGraphRequest) -> GraphTopology:
    """build the graph of a pipeline-run manifest, optionally storing it."""
    try:
        graph = build_graph(request.manifest, strict=request.strict)
    except ManifestError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except (LoopDepthExceededError, LoopAnnotationError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    run_name = (request.manifest.get("metadata") or {}).get("name")
    topology = graph.to_topology(
        graph_id=request.graph_id or generate_graph_id(),
        name=request.name or run_name or "",
        description=request.description,
    )
    if request.persist:
        save_graph(topology)
    return topology


@router.get("/graphs")
def list_graphs(limit: int = 100) -> list[GraphRow]:
    """list stored graphs, newest first, without their nodes and edges."""
    return db_list_graphs(limit)


@router.get("/graphs/{graph_id}")
def get_graph(graph_id: str) -> GraphTopology:
    graph = load_graph(graph_id)
    if not graph:
        raise HTTPException(status_code=404, detail=f"Graph not found: {graph_id}")
    return graph


@router.put("/graphs/{graph_id}")
def store_graph(graph_id: str, request: StoreGraphRequest) -> GraphTopology:
    """store a topology under graph_id; repeated calls replace it."""
    now = utc_timestamp()
    graph = GraphTopology(
        graph_id=graph_id,
        name=request.name,
        description=request.description,
        nodes=request.nodes,
        edges=request.edges,
        diagnostics=request.diagnostics,
        created_at=now,
        updated_at=now,
    )
    save_graph(graph)
    # pick up the original creation time on replacement
    return load_graph(graph_id) or graph


@router.delete("/graphs/{graph_id}")
def delete_graph(graph_id: str) -> dict:
    if not db_delete_graph(graph_id):
        raise HTTPException(status_code=404, detail=f"Graph not found: {graph_id}")
    return {"deleted": graph_id}
