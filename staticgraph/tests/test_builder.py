"""Tests for building graphs from pipeline-run manifests."""

import json

import pytest

from staticgraph.config import Settings
from staticgraph.errors import (
    LoopDepthExceededError,
    MalformedLoopAnnotationError,
    ManifestError,
    MissingLoopAnnotationError,
)
from staticgraph.models.graph_topology import NodeKind
from staticgraph.parser.builder import build_graph


SETTINGS = Settings()


def _container(name: str, **fields) -> dict:
    return {"name": name, "taskSpec": {"steps": [{"image": "alpine:3", "command": ["true"]}]}, **fields}


def _loop(name: str, ref: str, **fields) -> dict:
    return {"name": name, "taskRef": {"kind": "PipelineLoop", "name": ref}, **fields}


def _body(tasks: list[dict], annotations: dict | None = None) -> str:
    body = {"spec": {"pipelineSpec": {"tasks": tasks}}}
    if annotations is not None:
        body["metadata"] = {"annotations": annotations}
    return json.dumps(body)


def _run(tasks: list[dict], finally_tasks: list[dict] | None = None, annotations: dict | None = None) -> dict:
    pipeline_spec = {"tasks": tasks}
    if finally_tasks is not None:
        pipeline_spec["finally"] = finally_tasks
    return {
        "metadata": {"name": "run", "annotations": annotations or {}},
        "spec": {"pipelineSpec": pipeline_spec},
    }


def _simple_loop_run() -> dict:
    """Loop L whose body is X and Y (Y runs after X)."""
    return _run(
        [_loop("L", "loop-body")],
        annotations={
            "tekton.dev/loop-body": _body([_container("X"), _container("Y", runAfter=["X"])]),
        },
    )


class TestDependencyEdges:
    """Edges inferred from each dependency channel."""

    def test_run_after_edge(self):
        graph = build_graph(_run([_container("B"), _container("A", runAfter=["B"])]), SETTINGS)
        assert graph.has_edge("B", "A")

    def test_when_edge(self):
        graph = build_graph(_run([
            _container("B"),
            _container("A", when=[{"input": "$(tasks.B.status)", "operator": "in", "values": ["Succeeded"]}]),
        ]), SETTINGS)
        assert graph.has_edge("B", "A")

    def test_param_edge(self):
        graph = build_graph(_run([
            _container("B"),
            _container("A", params=[{"name": "x", "value": ["$(tasks.B.results.x)"]}]),
        ]), SETTINGS)
        assert graph.has_edge("B", "A")

    def test_param_edge_to_loop_head_not_redirected(self):
        """A params reference to a loop head stays on the head, unlike runAfter."""
        run = _simple_loop_run()
        run["spec"]["pipelineSpec"]["tasks"] += [
            _container("P", params=[{"name": "x", "value": ["$(tasks.L.results.x)"]}]),
            _container("R", runAfter=["L"]),
        ]
        graph = build_graph(run, SETTINGS)

        assert graph.has_edge("L", "P")
        assert not graph.has_edge("L-end", "P")
        assert graph.has_edge("L-end", "R")
        assert not graph.has_edge("L", "R")

    def test_dependency_on_later_loop_not_redirected(self):
        """The loop registry only knows loops already expanded in task order."""
        run = _simple_loop_run()
        run["spec"]["pipelineSpec"]["tasks"].insert(0, _container("early", runAfter=["L"]))
        graph = build_graph(run, SETTINGS)

        assert graph.has_edge("L", "early")


class TestLoopExpansion:
    """Loop bodies are built between start and end sentinels."""

    def test_simple_loop(self):
        graph = build_graph(_simple_loop_run(), SETTINGS)

        assert graph.node("L").label == "start-loop-1"
        assert graph.node("L").node_type == "loop-start"
        assert graph.node("L-end").label == "end-loop-1"
        assert graph.node("L-end").node_type == "loop-end"
        assert set(graph.edges()) == {("L", "X"), ("X", "Y"), ("Y", "L-end")}

    def test_stitching_happens_after_whole_body(self):
        """A body task with a successor later in the list isn't wired to the end."""
        graph = build_graph(_simple_loop_run(), SETTINGS)
        assert not graph.has_edge("X", "L-end")
        assert not graph.has_edge("L", "Y")

    def test_parallel_body_tasks_all_bracketed(self):
        run = _run(
            [_loop("L", "body")],
            annotations={"tekton.dev/body": _body([_container("a"), _container("b")])},
        )
        graph = build_graph(run, SETTINGS)
        assert set(graph.edges()) == {("L", "a"), ("a", "L-end"), ("L", "b"), ("b", "L-end")}

    def test_nested_loops(self):
        """Inner loops number after their outer loop and close into the outer end."""
        inner = _body([_container("leaf")])
        outer = _body(
            [_container("first"), _loop("inner", "inner-body", runAfter=["first"])],
            annotations={"tekton.dev/inner-body": inner},
        )
        run = _run([_loop("outer", "outer-body")], annotations={"tekton.dev/outer-body": outer})
        graph = build_graph(run, SETTINGS)

        assert graph.node("outer").label == "start-loop-1"
        assert graph.node("outer-end").label == "end-loop-1"
        assert graph.node("inner").label == "start-loop-2"
        assert graph.node("inner-end").label == "end-loop-2"
        assert set(graph.edges()) == {
            ("outer", "first"),
            ("first", "inner"),
            ("inner", "leaf"),
            ("leaf", "inner-end"),
            ("inner-end", "outer-end"),
        }
        assert graph.dangling_nodes() == []

    def test_nested_body_found_in_enclosing_annotations(self):
        """A body without its own annotations can use the run's annotations."""
        run = _run(
            [_loop("outer", "outer-body")],
            annotations={
                "tekton.dev/outer-body": _body([_loop("inner", "inner-body")]),
                "tekton.dev/inner-body": _body([_container("leaf")]),
            },
        )
        graph = build_graph(run, SETTINGS)
        assert graph.has_edge("inner", "leaf")
        assert graph.diagnostics == []

    def test_sentinels_have_separate_info(self):
        graph = build_graph(_simple_loop_run(), SETTINGS)
        start, end = graph.node("L"), graph.node("L-end")
        assert start.info == end.info
        assert start.info is not end.info

    def test_custom_annotation_prefix_and_kind(self):
        settings = Settings(annotation_prefix="loops/", loop_kind="ForEach")
        run = _run(
            [{"name": "L", "taskRef": {"kind": "ForEach", "name": "b"}}],
            annotations={"loops/b": _body([_container("x")])},
        )
        graph = build_graph(run, settings)
        assert set(graph.edges()) == {("L", "x"), ("x", "L-end")}


class TestLoopErrors:
    """Missing, malformed and runaway loop bodies."""

    def _missing_run(self) -> dict:
        return _run([
            _container("setup"),
            _loop("L", "gone", runAfter=["setup"]),
            _container("after", runAfter=["L"]),
        ])

    def test_missing_annotation_recorded(self):
        """The loop stays, unexpanded but bracketed, and the key is reported."""
        graph = build_graph(self._missing_run(), SETTINGS)

        assert graph.has_node("L")
        assert graph.has_node("L-end")
        assert set(graph.edges()) == {("setup", "L"), ("L", "L-end"), ("L-end", "after")}
        assert len(graph.diagnostics) == 1
        error = graph.diagnostics[0]
        assert isinstance(error, MissingLoopAnnotationError)
        assert error.annotation_key == "tekton.dev/gone"
        assert error.task_name == "L"

    def test_missing_annotation_strict(self):
        with pytest.raises(MissingLoopAnnotationError) as exc_info:
            build_graph(self._missing_run(), SETTINGS, strict=True)
        assert "tekton.dev/gone" in str(exc_info.value)

    def test_malformed_annotation(self):
        run = _run([_loop("L", "bad")], annotations={"tekton.dev/bad": "{not json"})
        graph = build_graph(run, SETTINGS)

        assert isinstance(graph.diagnostics[0], MalformedLoopAnnotationError)
        assert graph.has_edge("L", "L-end")

    def test_self_referencing_loop_hits_depth_limit(self):
        body = _body([_loop("again", "self")])
        run = _run([_loop("L", "self")], annotations={"tekton.dev/self": body})

        with pytest.raises(LoopDepthExceededError) as exc_info:
            build_graph(run, Settings(max_loop_depth=5))
        assert exc_info.value.max_depth == 5
        assert exc_info.value.annotation_key == "tekton.dev/self"

    def test_depth_limit_allows_nesting_up_to_limit(self):
        inner = _body([_container("leaf")])
        run = _run(
            [_loop("outer", "o")],
            annotations={"tekton.dev/o": _body([_loop("inner", "i")]), "tekton.dev/i": inner},
        )
        graph = build_graph(run, Settings(max_loop_depth=2))
        assert graph.has_node("leaf")

        with pytest.raises(LoopDepthExceededError):
            build_graph(run, Settings(max_loop_depth=1))


class TestNodes:
    """Labels, colors and node info of plain nodes."""

    def test_unrecognized_task_gets_default_node(self):
        graph = build_graph(_run([{"name": "mystery"}]), SETTINGS)
        node = graph.node("mystery")

        assert node.label == "mystery"
        assert node.info.node_type == NodeKind.unknown
        assert node.info.inputs == []
        assert node.info.outputs == []
        assert node.info.volume_mounts == []
        assert node.info.resource == []

    def test_exit_handler_label_and_color(self):
        graph = build_graph(
            _run(
                [_container("main")],
                finally_tasks=[_container("cleanup", when=[{"input": "x", "operator": "in", "values": ["x"]}])],
            ),
            SETTINGS,
        )
        node = graph.node("cleanup")

        assert node.label == "onExit - cleanup"
        assert node.bg_color == SETTINGS.exit_handler_color
        assert node.node_type == "exit-handler"

    def test_conditional_task_color(self):
        graph = build_graph(_run([
            _container("gated", when=[{"input": "$(params.go)", "operator": "in", "values": ["yes"]}]),
            _container("plain"),
        ]), SETTINGS)

        assert graph.node("gated").bg_color == "cornsilk"
        assert graph.node("plain").bg_color is None

    def test_empty_when_still_conditional(self):
        graph = build_graph(_run([_container("gated", when=[]), _container("open", when=None)]), SETTINGS)

        assert graph.node("gated").bg_color == "cornsilk"
        assert graph.node("open").bg_color is None
        assert graph.edges() == []

    def test_display_name_annotation(self):
        task = _container("train")
        task["taskSpec"]["metadata"] = {
            "annotations": {"pipelines.kubeflow.org/task_display_name": "Train model"},
        }
        graph = build_graph(_run([task]), SETTINGS)
        assert graph.node("train").label == "Train model"

    def test_node_dimensions_from_settings(self):
        graph = build_graph(_run([_container("a")]), Settings(node_width=100, node_height=40))
        node = graph.node("a")
        assert (node.width, node.height) == (100, 40)

    def test_insertion_order_follows_manifest(self):
        graph = build_graph(
            _run([_container("c"), _container("a"), _container("b")], finally_tasks=[_container("z")]),
            SETTINGS,
        )
        assert graph.node_ids() == ["c", "a", "b", "z"]


class TestBuildInvocation:
    """Whole-build behavior: input handling and isolation between builds."""

    def test_rebuild_is_identical(self):
        """Two builds of the same manifest agree, loop numbering included."""
        first = build_graph(_simple_loop_run(), SETTINGS)
        second = build_graph(_simple_loop_run(), SETTINGS)

        assert first.node_ids() == second.node_ids()
        assert set(first.edges()) == set(second.edges())
        assert [n.label for n in first.nodes()] == [n.label for n in second.nodes()]
        assert second.node("L").label == "start-loop-1"

    def test_loop_registry_not_shared_between_builds(self):
        build_graph(_simple_loop_run(), SETTINGS)
        graph = build_graph(_run([_container("L"), _container("A", runAfter=["L"])]), SETTINGS)
        assert graph.has_edge("L", "A")

    def test_empty_manifest(self):
        graph = build_graph({}, SETTINGS)
        assert graph.nodes() == []
        assert graph.edges() == []

    def test_invalid_manifest_raises(self):
        with pytest.raises(ManifestError):
            build_graph({"spec": {"pipelineSpec": {"tasks": [{"runAfter": ["x"]}]}}}, SETTINGS)

    def test_undefined_dependency_left_dangling(self):
        graph = build_graph(_run([_container("A", runAfter=["ghost"])]), SETTINGS)
        assert graph.dangling_nodes() == ["ghost"]


class TestNullFields:
    """Keys present with a null value read as if they were absent."""

    def test_null_finally(self):
        manifest = _run([_container("A")])
        manifest["spec"]["pipelineSpec"]["finally"] = None

        graph = build_graph(manifest, SETTINGS)
        assert graph.node_ids() == ["A"]

    def test_null_task_lists(self):
        graph = build_graph(_run([
            _container("A"),
            _container("B", runAfter=None, when=None, conditions=None, params=None),
        ]), SETTINGS)

        assert graph.node_ids() == ["A", "B"]
        assert graph.edges() == []
        assert graph.node("B").bg_color is None

    def test_null_sections(self):
        graph = build_graph({"metadata": None, "spec": {"pipelineSpec": None}}, SETTINGS)
        assert graph.nodes() == []

        graph = build_graph({"metadata": {"annotations": None}, "spec": None}, SETTINGS)
        assert graph.nodes() == []

    def test_null_step_fields_and_scalar_args(self):
        task = {
            "name": "train",
            "taskSpec": {
                "metadata": None,
                "steps": [{"image": "trainer:1", "command": None, "args": ["--epochs", 5, "--lr", 0.1],
                           "volumeMounts": None}],
                "params": None,
            },
        }
        info = build_graph(_run([task]), SETTINGS).node("train").info

        assert info.args == ["--epochs", "5", "--lr", "0.1"]
        assert info.command == []
        assert info.volume_mounts == []
        assert info.inputs == []

    def test_null_fields_inside_loop_body(self):
        body = json.dumps({"spec": {"pipelineSpec": {
            "tasks": [_container("X", runAfter=None), _container("Y", runAfter=["X"], params=None)],
            "finally": None,
        }}})
        graph = build_graph(_run([_loop("L", "loop-body")], annotations={"tekton.dev/loop-body": body}), SETTINGS)

        assert graph.diagnostics == []
        assert set(graph.edges()) == {("L", "X"), ("X", "Y"), ("Y", "L-end")}
