"""Expand PipelineLoop tasks into bracketed sub-graphs.

A loop task is a taskRef of kind PipelineLoop. Its body is another pipeline
manifest stored as a JSON string in the annotation
"<annotation_prefix><taskRef name>" (tekton.dev/<name> by default). The loop
head keeps the task's name and becomes the start sentinel; a second node
"<name>-end" closes the loop. Both share the loop number N in their labels
(start-loop-N, end-loop-N).
"""

from __future__ import annotations

import logging
from typing import Callable

from staticgraph.errors import (
    LoopAnnotationError,
    LoopDepthExceededError,
    MalformedLoopAnnotationError,
    ManifestError,
    MissingLoopAnnotationError,
)
from staticgraph.graph import StaticGraph
from staticgraph.models.graph_topology import GraphNode, NodeInfo
from staticgraph.models.manifest import PipelineRun, PipelineTask, parse_manifest_json
from staticgraph.parser.context import BuildContext, LoopBoundary
from staticgraph.parser.dependencies import loop_end_name

logger = logging.getLogger(__name__)

# signature of build_pipeline_dag, passed in to avoid a circular import
BuildFn = Callable[[StaticGraph, PipelineRun, BuildContext, LoopBoundary | None], None]


def loop_annotation_key(task: PipelineTask, ctx: BuildContext) -> str:
    ref_name = task.task_ref.name if task.task_ref else ""
    return ctx.settings.annotation_prefix + ref_name


def load_loop_body(task: PipelineTask, ctx: BuildContext) -> PipelineRun:
    """Decode the loop body manifest of task.

    Raises:
        MissingLoopAnnotationError: no manifest in scope has the annotation
        MalformedLoopAnnotationError: the annotation isn't a manifest
    """
    key = loop_annotation_key(task, ctx)
    raw = ctx.find_annotation(key)
    if raw is None:
        raise MissingLoopAnnotationError(task.name, key)
    try:
        return parse_manifest_json(raw)
    except ManifestError as e:
        raise MalformedLoopAnnotationError(task.name, key, str(e)) from e


def expand_loop(
    graph: StaticGraph,
    task: PipelineTask,
    info: NodeInfo,
    bg_color: str | None,
    ctx: BuildContext,
    build: BuildFn,
) -> LoopBoundary:
    """Add the loop's sentinel nodes and build its body between them.

    A body that can't be loaded is recorded in graph.diagnostics and the
    sentinels are joined directly (start -> end); in strict mode the error
    is raised instead.

    Raises:
        LoopDepthExceededError: the body would be nested deeper than
            settings.max_loop_depth
        LoopAnnotationError: in strict mode, for a missing or malformed body
    """
    settings = ctx.settings
    number = ctx.next_loop_number()
    ctx.register_loop(task.name)

    boundary = LoopBoundary(start=task.name, end=loop_end_name(task.name))
    graph.set_node(GraphNode(
        node_id=boundary.start,
        label=f"start-loop-{number}",
        node_type="loop-start",
        width=settings.node_width,
        height=settings.node_height,
        bg_color=bg_color,
        info=info,
    ))
    graph.set_node(GraphNode(
        node_id=boundary.end,
        label=f"end-loop-{number}",
        node_type="loop-end",
        width=settings.node_width,
        height=settings.node_height,
        bg_color=bg_color,
        info=info.model_copy(deep=True),
    ))

    key = loop_annotation_key(task, ctx)
    if ctx.depth + 1 > settings.max_loop_depth:
        raise LoopDepthExceededError(task.name, key, ctx.depth + 1, settings.max_loop_depth)

    try:
        body = load_loop_body(task, ctx)
    except LoopAnnotationError as e:
        if ctx.strict:
            raise
        logger.warning("%s, leaving the loop unexpanded", e)
        graph.diagnostics.append(e)
        graph.set_edge(boundary.start, boundary.end)
        return boundary

    logger.debug(
        "expanding loop %s (#%d) from %s with %d tasks",
        task.name, number, key, len(body.tasks) + len(body.finally_tasks),
    )
    with ctx.nested():
        build(graph, body, ctx, boundary)
    return boundary
