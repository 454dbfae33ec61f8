"""SQLite storage for built graph topologies."""

import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from staticgraph.models.graph_topology import GraphTopology


DEFAULT_DB_PATH = Path(__file__).parent / "data" / "graphs.db"
GRAPH_DB_PATH = Path(os.getenv("GRAPH_DB_PATH", str(DEFAULT_DB_PATH)))


@dataclass
class GraphRow:
    """listing entry for a stored graph, without its nodes and edges."""

    graph_id: str
    name: str
    node_count: int
    edge_count: int
    diagnostic_count: int
    created_at: str
    updated_at: str


def _connect() -> sqlite3.Connection:
    GRAPH_DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(GRAPH_DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db() -> None:
    with _connect() as conn:
        conn.execute(
            """
            create table if not exists graphs (
                graph_id text primary key,
                name text not null,
                node_count integer not null,
                edge_count integer not null,
                diagnostic_count integer not null default 0,
                topology_json text not null,
                created_at text not null,
                updated_at text not null
            )
            """
        )
        conn.execute(
            "create index if not exists idx_graphs_updated_at on graphs(updated_at)"
        )
        conn.commit()


def save_graph(topology: GraphTopology) -> None:
    """insert a topology, or replace it keeping its original created_at."""
    with _connect() as conn:
        conn.execute(
            """
            insert into graphs (
                graph_id, name, node_count, edge_count, diagnostic_count,
                topology_json, created_at, updated_at
            )
            values (?, ?, ?, ?, ?, ?, ?, ?)
            on conflict(graph_id) do update set
                name = excluded.name,
                node_count = excluded.node_count,
                edge_count = excluded.edge_count,
                diagnostic_count = excluded.diagnostic_count,
                topology_json = excluded.topology_json,
                updated_at = excluded.updated_at
            """,
            (
                topology.graph_id,
                topology.name,
                len(topology.nodes),
                len(topology.edges),
                len(topology.diagnostics),
                topology.model_dump_json(),
                topology.created_at,
                topology.updated_at,
            ),
        )
        conn.commit()


def load_graph(graph_id: str) -> GraphTopology | None:
    with _connect() as conn:
        row = conn.execute(
            "select topology_json, created_at from graphs where graph_id = ?",
            (graph_id,),
        ).fetchone()
    if not row:
        return None
    topology = GraphTopology.model_validate_json(row["topology_json"])
    # the stored row is authoritative for creation time across replacements
    topology.created_at = row["created_at"]
    return topology


def list_graphs(limit: int = 100) -> list[GraphRow]:
    """most recently updated graphs first."""
    with _connect() as conn:
        rows = conn.execute(
            """
            select graph_id, name, node_count, edge_count, diagnostic_count,
                   created_at, updated_at
            from graphs order by updated_at desc limit ?
            """,
            (limit,),
        ).fetchall()
    return [GraphRow(**dict(row)) for row in rows]


def delete_graph(graph_id: str) -> bool:
    """remove a graph, returning whether it existed."""
    with _connect() as conn:
        cursor = conn.execute("delete from graphs where graph_id = ?", (graph_id,))
        conn.commit()
    return cursor.rowcount > 0
