"""Build the graph of a pipeline run and register it on the graph server.

Usage in pipeline tooling (e.g. after compiling a run):

    from staticgraph.sdk.graph_publisher import build_and_register
    topology = build_and_register(pipeline_run, graph_id="train-run-42", name="Training")
"""

from __future__ import annotations

import warnings
from typing import Any

import httpx

from staticgraph.config import Settings
from staticgraph.models.graph_topology import GraphTopology
from staticgraph.models.manifest import PipelineRun
from staticgraph.parser.builder import build_graph


def build_topology(
    manifest: PipelineRun | dict[str, Any],
    graph_id: str,
    name: str,
    description: str | None = None,
    settings: Settings | None = None,
) -> GraphTopology:
    """Build a GraphTopology from a pipeline-run manifest."""
    graph = build_graph(manifest, settings)
    return graph.to_topology(graph_id=graph_id, name=name, description=description)


def build_and_register(
    manifest: PipelineRun | dict[str, Any],
    graph_id: str,
    name: str,
    description: str | None = None,
    base_url: str = "http://localhost:8000",
    timeout: float = 10.0,
    settings: Settings | None = None,
) -> GraphTopology:
    """Build the graph of a manifest and PUT it to the server.

    Build errors propagate. A server that can't be reached or rejects the
    graph only produces a warning; the topology is returned either way.
    """
    topology = build_topology(manifest, graph_id, name, description, settings)

    url = f"{base_url.rstrip('/')}/api/graphs/{graph_id}"
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.put(url, json={
                "name": topology.name,
                "description": topology.description,
                "nodes": [n.model_dump(mode="json") for n in topology.nodes],
                "edges": [e.model_dump() for e in topology.edges],
                "diagnostics": topology.diagnostics,
            })
            response.raise_for_status()
    except (httpx.RequestError, httpx.HTTPStatusError) as exc:
        warnings.warn(
            f"failed to register graph topology with server at {base_url}: {exc}",
            stacklevel=2,
        )

    return topology
