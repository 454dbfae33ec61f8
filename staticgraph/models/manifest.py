"""Pipeline-run manifest models.

A manifest is validated once on the way in so the graph builder works on a
checked shape instead of probing optional keys. Fields keep the camelCase
names used on the wire (populate_by_name lets Python code use snake_case) and
unknown keys are preserved. Values that only feed dependency inference
(param values, condition inputs) are typed loosely: anything that isn't a
task reference simply contributes no edge.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from staticgraph.errors import ManifestError


def _empty_list_if_null(value: Any) -> Any:
    return [] if value is None else value


def _empty_dict_if_null(value: Any) -> Any:
    return {} if value is None else value


def _text_items(value: Any) -> Any:
    """Coerce scalar list items to text; YAML reads `--epochs, 5` as a str and an int."""
    if value is None:
        return []
    if isinstance(value, list):
        return [item if isinstance(item, str) else json.dumps(item) for item in value]
    return value


# a key written without a value (`finally:` in YAML) arrives as null
NullableList = BeforeValidator(_empty_list_if_null)
NullableDict = BeforeValidator(_empty_dict_if_null)
TextList = Annotated[list[str], BeforeValidator(_text_items)]


class _ManifestModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class VolumeMount(_ManifestModel):
    """a volume mounted into a step container."""

    name: str = ""
    mount_path: str = Field("", alias="mountPath")


class Step(_ManifestModel):
    """one container of a task body."""

    name: str | None = None
    image: str | None = None
    command: TextList = Field(default_factory=list)
    args: TextList = Field(default_factory=list)
    volume_mounts: Annotated[list[VolumeMount], NullableList] = Field(default_factory=list, alias="volumeMounts")


class ParamSpec(_ManifestModel):
    """a declared input parameter of a task body."""

    name: str = ""
    value: Any = None
    default: Any = None
    description: str | None = None


class ResultSpec(_ManifestModel):
    """a declared output of a task body."""

    name: str = ""
    description: str | None = None


class ObjectMeta(_ManifestModel):
    name: str | None = None
    labels: Annotated[dict[str, str], NullableDict] = Field(default_factory=dict)
    annotations: Annotated[dict[str, str], NullableDict] = Field(default_factory=dict)


class TaskSpec(_ManifestModel):
    """inline body of a task."""

    metadata: Annotated[ObjectMeta, NullableDict] = Field(default_factory=ObjectMeta)
    steps: Annotated[list[Step], NullableList] = Field(default_factory=list)
    params: list[ParamSpec] | None = None
    results: list[ResultSpec] | None = None


class TaskRef(_ManifestModel):
    """reference to a task defined elsewhere (a loop body for PipelineLoop)."""

    name: str = ""
    kind: str | None = None
    api_version: str | None = Field(None, alias="apiVersion")


class WhenExpression(_ManifestModel):
    input: Any = None
    operator: str = ""
    values: Annotated[list[Any], NullableList] = Field(default_factory=list)


class ConditionParam(_ManifestModel):
    name: Any = None
    value: Any = None


class Condition(_ManifestModel):
    """legacy condition gate, superseded by when expressions."""

    condition_ref: str | None = Field(None, alias="conditionRef")
    params: Annotated[list[ConditionParam], NullableList] = Field(default_factory=list)


class ParamBinding(_ManifestModel):
    """a parameter passed to a task; value may reference another task's result."""

    name: Any = None
    value: Any = None


class TaskVariant(str, Enum):
    """What kind of node a task produces."""

    body = "body"  # inline taskSpec
    loop = "loop"  # taskRef to a loop pipeline
    unrecognized = "unrecognized"


class PipelineTask(_ManifestModel):
    """an entry of spec.pipelineSpec.tasks or spec.pipelineSpec.finally."""

    name: str
    task_spec: TaskSpec | None = Field(None, alias="taskSpec")
    task_ref: TaskRef | None = Field(None, alias="taskRef")
    run_after: Annotated[list[str], NullableList] = Field(default_factory=list, alias="runAfter")
    # None and [] differ: any when list, even an empty one, marks the task as conditional
    when: list[WhenExpression] | None = None
    conditions: Annotated[list[Condition], NullableList] = Field(default_factory=list)
    params: Annotated[list[ParamBinding], NullableList] = Field(default_factory=list)

    def variant(self, loop_kind: str) -> TaskVariant:
        """Classify the task; an inline body wins over a reference."""
        if self.task_spec is not None:
            return TaskVariant.body
        if self.task_ref is not None and self.task_ref.kind == loop_kind:
            return TaskVariant.loop
        return TaskVariant.unrecognized


class PipelineSpec(_ManifestModel):
    tasks: Annotated[list[PipelineTask], NullableList] = Field(default_factory=list)
    finally_: Annotated[list[PipelineTask], NullableList] = Field(default_factory=list, alias="finally")


class RunSpec(_ManifestModel):
    pipeline_spec: Annotated[PipelineSpec, NullableDict] = Field(default_factory=PipelineSpec, alias="pipelineSpec")


class PipelineRun(_ManifestModel):
    """A pipeline run, or a loop body decoded from an annotation."""

    api_version: str | None = Field(None, alias="apiVersion")
    kind: str | None = None
    metadata: Annotated[ObjectMeta, NullableDict] = Field(default_factory=ObjectMeta)
    spec: Annotated[RunSpec, NullableDict] = Field(default_factory=RunSpec)

    @property
    def tasks(self) -> list[PipelineTask]:
        return self.spec.pipeline_spec.tasks

    @property
    def finally_tasks(self) -> list[PipelineTask]:
        return self.spec.pipeline_spec.finally_

    @property
    def annotations(self) -> dict[str, str]:
        return self.metadata.annotations


def parse_manifest(data: PipelineRun | dict[str, Any]) -> PipelineRun:
    """Validate a manifest mapping into a PipelineRun.

    Raises:
        ManifestError: if the mapping doesn't have the manifest shape.
    """
    if isinstance(data, PipelineRun):
        return data
    try:
        return PipelineRun.model_validate(data)
    except ValidationError as e:
        raise ManifestError(f"invalid pipeline manifest: {e}") from e


def parse_manifest_json(text: str) -> PipelineRun:
    """Decode and validate a JSON-serialized manifest."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ManifestError(f"manifest is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"manifest must be a JSON object, got {type(data).__name__}")
    return parse_manifest(data)
