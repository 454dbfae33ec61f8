#!/usr/bin/env python3
"""CLI script to build and summarize the graph of a pipeline-run manifest.

Usage:
    staticgraph-analyze <pipelinerun.yaml>

    # or with JSON output
    staticgraph-analyze <pipelinerun.json> --json

    # dump the full graph topology instead of a summary
    staticgraph-analyze <pipelinerun.json> --topology
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import yaml

from staticgraph.analysis.graph_summary import GraphSummary, graph_summary
from staticgraph.errors import StaticGraphError
from staticgraph.parser.builder import build_graph


def load_manifest(manifest_file: Path) -> dict[str, Any]:
    """Load a manifest from a JSON or YAML file.

    Args:
        manifest_file: path ending in .json, or anything else for YAML

    Returns:
        the manifest as a plain mapping
    """
    with open(manifest_file) as f:
        if manifest_file.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{manifest_file} does not contain a manifest object")
    return data


def format_summary(summary: GraphSummary) -> str:
    """Format graph summary for human-readable output."""
    lines = []
    lines.append("=" * 60)
    lines.append("GRAPH SUMMARY")
    lines.append("=" * 60)
    lines.append("")

    # basic info
    lines.append(f"Nodes:        {summary.node_count}")
    lines.append(f"Edges:        {summary.edge_count}")
    if summary.longest_path is not None:
        lines.append(f"Longest path: {summary.longest_path}")
    else:
        lines.append("Longest path: n/a (graph has a cycle)")
    lines.append("")

    lines.append("-" * 40)
    lines.append("NODE TYPES")
    lines.append("-" * 40)
    for node_type, count in sorted(summary.node_types.items()):
        lines.append(f"  • {node_type}: {count}")
    lines.append("")

    lines.append("-" * 40)
    lines.append("ENTRY / EXIT")
    lines.append("-" * 40)
    lines.append(f"  roots:  {', '.join(summary.roots) or '(none)'}")
    lines.append(f"  leaves: {', '.join(summary.leaves) or '(none)'}")
    if summary.exit_handlers:
        lines.append(f"  exit handlers: {', '.join(summary.exit_handlers)}")
    lines.append("")

    if summary.loops:
        lines.append("-" * 40)
        lines.append("LOOPS")
        lines.append("-" * 40)
        for loop in summary.loops:
            lines.append(f"  {loop.start} → {loop.end} ({loop.label}, {loop.body_size} body nodes)")
        lines.append("")

    findings = summary.diagnostics + summary.problems
    lines.append("-" * 40)
    if findings:
        lines.append("PROBLEMS")
        lines.append("-" * 40)
        for finding in findings:
            lines.append(f"  ! {finding}")
    else:
        lines.append("✓ No problems detected")
        lines.append("-" * 40)
    lines.append("")

    return "\n".join(lines)


def summary_to_dict(summary: GraphSummary) -> dict:
    """Convert GraphSummary to a JSON-serializable dict."""
    return asdict(summary)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build the static graph of a pipeline run and summarize it."
    )
    parser.add_argument(
        "manifest_file",
        type=Path,
        help="path to the pipeline-run manifest (JSON or YAML)",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--json",
        action="store_true",
        help="output summary as JSON instead of human-readable format",
    )
    output.add_argument(
        "--topology",
        action="store_true",
        help="output the full graph topology as JSON",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="fail on loop bodies that can't be loaded",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="log loop expansion details",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.manifest_file.exists():
        print(f"Error: manifest file not found: {args.manifest_file}", file=sys.stderr)
        return 1

    try:
        manifest = load_manifest(args.manifest_file)
        graph = build_graph(manifest, strict=args.strict)
    except (StaticGraphError, ValueError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.topology:
        topology = graph.to_topology(name=args.manifest_file.stem)
        print(topology.model_dump_json(indent=2))
    elif args.json:
        print(json.dumps(summary_to_dict(graph_summary(graph)), indent=2))
    else:
        print(format_summary(graph_summary(graph)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
