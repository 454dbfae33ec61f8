"""Work out which tasks must finish before a given task.

Predecessors come from four places on a task:

- runAfter: explicit task names
- when: each expression's input may reference a task result
- conditions: legacy gates whose param values may reference a task result
- params: list-valued bindings whose items may reference a task result

A predecessor that was expanded as a loop is finished only when its end
sentinel is, so the first three channels redirect "<loop>" to "<loop>-end".
Parameter bindings are not redirected: the referenced result is produced
inside the loop body and the edge points at the loop head itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from staticgraph.graph import StaticGraph
from staticgraph.models.manifest import PipelineTask
from staticgraph.parser.param_refs import parse_task_reference

logger = logging.getLogger(__name__)

LOOP_END_SUFFIX = "-end"


def loop_end_name(task_name: str) -> str:
    return task_name + LOOP_END_SUFFIX


def redirect_through_loop(task_name: str, loop_tasks: Mapping[str, bool]) -> str:
    """Point a dependency on a loop head at the loop's end sentinel."""
    if loop_tasks.get(task_name):
        return loop_end_name(task_name)
    return task_name


def _condition_sources(task: PipelineTask) -> list[str]:
    sources = []
    for expression in task.when or []:
        parent = parse_task_reference(expression.input)
        if parent is not None:
            sources.append(parent)
    for condition in task.conditions:
        for param in condition.params:
            parent = parse_task_reference(param.value)
            if parent is not None:
                sources.append(parent)
    return sources


def _param_sources(task: PipelineTask) -> list[str]:
    sources = []
    for param in task.params:
        # scalar values aren't scanned, only list-valued bindings
        if not isinstance(param.value, list):
            continue
        for item in param.value:
            parent = parse_task_reference(item)
            if parent is not None:
                sources.append(parent)
    return sources


def resolve_dependencies(
    task: PipelineTask,
    loop_tasks: Mapping[str, bool],
) -> list[tuple[str, str]]:
    """Predecessor edges (source, task.name) in discovery order, without duplicates.

    Args:
        task: the task whose predecessors are wanted
        loop_tasks: loop heads expanded so far, name -> expanded

    Returns:
        list of (predecessor, task name) pairs
    """
    sources = [redirect_through_loop(name, loop_tasks) for name in task.run_after]
    sources += [redirect_through_loop(name, loop_tasks) for name in _condition_sources(task)]
    sources += _param_sources(task)

    edges: list[tuple[str, str]] = []
    for source in sources:
        edge = (source, task.name)
        if edge not in edges:
            edges.append(edge)
    return edges


def add_dependency_edges(
    graph: StaticGraph,
    task: PipelineTask,
    loop_tasks: Mapping[str, bool],
) -> list[tuple[str, str]]:
    """Add the task's predecessor edges to graph and return them."""
    edges = resolve_dependencies(task, loop_tasks)
    for source, target in edges:
        graph.set_edge(source, target)
    if edges:
        logger.debug("task %s depends on %s", task.name, [source for source, _ in edges])
    return edges
