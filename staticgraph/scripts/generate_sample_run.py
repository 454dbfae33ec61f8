"""Generate sample pipeline-run manifests for trying out the graph builder.

Generates two scenarios:
- Scenario A (nested loops): a training run with a loop that contains
  another loop, a conditional task and an exit handler
- Scenario B (broken loop): a loop whose body annotation is missing
"""

import json
from pathlib import Path
from typing import Any

from staticgraph.analysis.graph_summary import graph_summary
from staticgraph.parser.builder import build_graph


def _container_task(
    name: str,
    image: str,
    command: list[str],
    args: list[str] | None = None,
    results: list[str] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """A task with an inline single-step body."""
    task_spec: dict[str, Any] = {
        "steps": [{
            "name": "main",
            "image": image,
            "command": command,
            "args": args or [],
        }],
    }
    if results:
        task_spec["results"] = [
            {"name": result, "description": f"{result} produced by {name}"}
            for result in results
        ]
    return {"name": name, "taskSpec": task_spec, **fields}


def _loop_task(name: str, loop_name: str, **fields: Any) -> dict[str, Any]:
    return {
        "name": name,
        "taskRef": {
            "apiVersion": "custom.tekton.dev/v1alpha1",
            "kind": "PipelineLoop",
            "name": loop_name,
        },
        **fields,
    }


def _loop_body(tasks: list[dict[str, Any]]) -> str:
    return json.dumps({"spec": {"pipelineSpec": {"tasks": tasks}}})


def create_nested_loops_run() -> dict[str, Any]:
    """Training run with an outer loop over shards and an inner loop over folds."""
    outer_body = [
        _container_task(
            "prepare-shard", "python:3.11", ["python", "prepare.py"],
            results=["shard-path"],
        ),
        _container_task(
            "train-shard", "python:3.11", ["python", "train.py"],
            runAfter=["prepare-shard"],
        ),
        _loop_task("fold-loop", "pipeline-loop-2", runAfter=["prepare-shard"]),
    ]
    inner_body = [
        _container_task("score-fold", "python:3.11", ["python", "score.py"]),
    ]

    return {
        "apiVersion": "tekton.dev/v1beta1",
        "kind": "PipelineRun",
        "metadata": {
            "name": "train-sharded",
            "annotations": {
                "tekton.dev/pipeline-loop-1": _loop_body(outer_body),
                "tekton.dev/pipeline-loop-2": _loop_body(inner_body),
            },
        },
        "spec": {
            "pipelineSpec": {
                "tasks": [
                    _container_task(
                        "flip-coin", "python:3.11", ["python", "-c"],
                        args=["import random; print(random.choice(['heads', 'tails']))"],
                        results=["output"],
                    ),
                    _container_task("download", "alpine:3", ["sh", "-c"], args=["wget data"]),
                    _loop_task("shard-loop", "pipeline-loop-1", runAfter=["download"]),
                    _container_task(
                        "evaluate", "python:3.11", ["python", "evaluate.py"],
                        runAfter=["shard-loop"],
                        when=[{
                            "input": "$(tasks.flip-coin.results.output)",
                            "operator": "in",
                            "values": ["heads"],
                        }],
                    ),
                ],
                "finally": [
                    _container_task("cleanup", "alpine:3", ["sh", "-c"], args=["rm -rf /tmp/work"]),
                ],
            },
        },
    }


def create_broken_loop_run() -> dict[str, Any]:
    """Run whose loop body annotation was stripped."""
    return {
        "metadata": {"name": "broken-loop", "annotations": {}},
        "spec": {
            "pipelineSpec": {
                "tasks": [
                    _container_task("setup", "alpine:3", ["true"]),
                    _loop_task("work-loop", "pipeline-loop-9", runAfter=["setup"]),
                    _container_task("report", "alpine:3", ["true"], runAfter=["work-loop"]),
                ],
            },
        },
    }


def write_scenario(output_dir: Path, name: str, manifest: dict[str, Any]) -> Path:
    """Write the manifest and its graph topology under output_dir/name."""
    scenario_dir = output_dir / name
    scenario_dir.mkdir(parents=True, exist_ok=True)

    with open(scenario_dir / "pipelinerun.json", "w") as f:
        json.dump(manifest, f, indent=2)

    graph = build_graph(manifest)
    with open(scenario_dir / "graph.json", "w") as f:
        f.write(graph.to_topology(name=name).model_dump_json(indent=2))

    summary = graph_summary(graph)
    print(f"Scenario {name} generated: {scenario_dir}")
    print(f"  Nodes: {summary.node_count}")
    print(f"  Edges: {summary.edge_count}")
    print(f"  Loops: {len(summary.loops)}")
    print(f"  Diagnostics: {len(summary.diagnostics)}")
    return scenario_dir


def main():
    """Generate both scenarios."""
    output_dir = Path.cwd() / "outputs"
    output_dir.mkdir(exist_ok=True)

    print("Generating sample pipeline runs...")
    print()

    write_scenario(output_dir, "nested-loops", create_nested_loops_run())
    print()
    write_scenario(output_dir, "broken-loop", create_broken_loop_run())
    print()

    print("Done!")


if __name__ == "__main__":
    main()
