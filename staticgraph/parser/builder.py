"""Build the static graph of a pipeline run.

    from staticgraph.parser import build_graph

    graph = build_graph(pipeline_run_dict)
    topology = graph.to_topology(name="my-run")

Tasks are visited in manifest order followed by the finally (exit handler)
tasks. Every task becomes a node named after it; loop tasks additionally get
an end sentinel and their bodies are built recursively between the two.
"""

from __future__ import annotations

import logging
from typing import Any

from staticgraph.config import TASK_DISPLAY_NAME_ANNOTATION, Settings, load_settings
from staticgraph.graph import StaticGraph
from staticgraph.models.graph_topology import GraphNode
from staticgraph.models.manifest import PipelineRun, PipelineTask, TaskVariant, parse_manifest
from staticgraph.parser.context import BuildContext, LoopBoundary
from staticgraph.parser.dependencies import add_dependency_edges, loop_end_name
from staticgraph.parser.loops import expand_loop
from staticgraph.parser.node_info import extract_node_info

logger = logging.getLogger(__name__)

EXIT_HANDLER_LABEL_PREFIX = "onExit - "


def build_graph(
    manifest: PipelineRun | dict[str, Any],
    settings: Settings | None = None,
    *,
    strict: bool = False,
) -> StaticGraph:
    """Build the graph of a pipeline-run manifest.

    Args:
        manifest: a PipelineRun or the raw manifest mapping
        settings: builder settings, read from the environment when omitted
        strict: raise on loop bodies that can't be loaded instead of
            recording them in graph.diagnostics

    Returns:
        a fully populated StaticGraph

    Raises:
        ManifestError: the manifest doesn't have the pipeline-run shape
        LoopDepthExceededError: loops nest deeper than settings.max_loop_depth
    """
    run = parse_manifest(manifest)
    ctx = BuildContext(settings=settings or load_settings(), strict=strict)
    graph = StaticGraph()
    build_pipeline_dag(graph, run, ctx)

    dangling = graph.dangling_nodes()
    if dangling:
        logger.warning("graph references tasks that are not defined: %s", ", ".join(dangling))
    return graph


def task_label(task: PipelineTask, is_exit_handler: bool) -> str:
    if is_exit_handler:
        return EXIT_HANDLER_LABEL_PREFIX + task.name
    if task.task_spec is not None:
        display_name = task.task_spec.metadata.annotations.get(TASK_DISPLAY_NAME_ANNOTATION)
        if display_name:
            return display_name
    return task.name


def task_color(task: PipelineTask, is_exit_handler: bool, settings: Settings) -> str | None:
    if is_exit_handler:
        return settings.exit_handler_color
    if task.when is not None:
        return settings.condition_color
    return None


def build_pipeline_dag(
    graph: StaticGraph,
    manifest: PipelineRun,
    ctx: BuildContext,
    boundary: LoopBoundary | None = None,
) -> None:
    """Add the tasks of manifest to graph.

    With a boundary (manifest is a loop body), tasks left without
    predecessors are hooked to boundary.start and tasks left without
    successors to boundary.end.
    """
    settings = ctx.settings
    tasks = manifest.tasks + manifest.finally_tasks
    exit_handlers = {task.name for task in manifest.finally_tasks}

    with ctx.manifest_scope(manifest):
        for task in tasks:
            add_dependency_edges(graph, task, ctx.loop_tasks)

            info = extract_node_info(task)
            is_exit_handler = task.name in exit_handlers
            bg_color = task_color(task, is_exit_handler, settings)

            if task.variant(settings.loop_kind) is TaskVariant.loop:
                expand_loop(graph, task, info, bg_color, ctx, build_pipeline_dag)
                continue

            graph.set_node(GraphNode(
                node_id=task.name,
                label=task_label(task, is_exit_handler),
                node_type="exit-handler" if is_exit_handler else "task",
                width=settings.node_width,
                height=settings.node_height,
                bg_color=bg_color,
                info=info,
            ))

    if boundary is not None:
        stitch_loop_boundary(graph, tasks, boundary, settings.loop_kind)


def stitch_loop_boundary(
    graph: StaticGraph,
    tasks: list[PipelineTask],
    boundary: LoopBoundary,
    loop_kind: str,
) -> None:
    """Connect a loop body's free entry and exit tasks to its sentinels.

    Only the body's own tasks are considered. A nested loop is entered at
    its head and left at its end sentinel.
    """
    for task in tasks:
        if graph.in_degree(task.name) == 0:
            graph.set_edge(boundary.start, task.name)

        exit_name = task.name
        if task.variant(loop_kind) is TaskVariant.loop:
            exit_name = loop_end_name(task.name)
        if graph.out_degree(exit_name) == 0:
            graph.set_edge(exit_name, boundary.end)
