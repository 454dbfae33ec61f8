"""Flatten a task into the NodeInfo shown in the node details panel."""

from __future__ import annotations

import json
from typing import Any

from staticgraph.models.graph_topology import NodeInfo, NodeKind
from staticgraph.models.manifest import PipelineTask, WhenExpression


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value)


def format_when(expressions: list[WhenExpression]) -> str:
    """Render when expressions as e.g. "$(tasks.flip.results.side) in [heads]"."""
    parts = []
    for expression in expressions:
        values = ", ".join(_as_text(v) for v in expression.values)
        parts.append(f"{_as_text(expression.input)} {expression.operator} [{values}]".strip())
    return " && ".join(parts)


def populate_node_info(info: NodeInfo, task: PipelineTask | None = None) -> NodeInfo:
    """Fill info from task in place and return it.

    Only the first step of a task body is represented: its command, args,
    image and volume mounts describe the whole node.
    """
    if task is None:
        return info

    if task.when:
        info.condition = format_when(task.when)

    spec = task.task_spec
    if spec is None:
        return info

    info.node_type = NodeKind.container
    if spec.steps:
        step = spec.steps[0]
        info.args = list(step.args)
        info.command = list(step.command)
        info.image = step.image or ""
        info.volume_mounts = [(mount.mount_path, mount.name) for mount in step.volume_mounts]

    if spec.params is not None:
        info.inputs = [
            (param.name, _as_text(param.value if param.value is not None else param.default))
            for param in spec.params
        ]
    if spec.results is not None:
        info.outputs = [(result.name, result.description or "") for result in spec.results]

    return info


def extract_node_info(task: PipelineTask | None) -> NodeInfo:
    """NodeInfo for a task, starting from the defaults."""
    return populate_node_info(NodeInfo(), task)
