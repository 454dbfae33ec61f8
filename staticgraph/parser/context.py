"""State shared by one top-level build and its recursive loop expansions."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Generator

from staticgraph.config import Settings
from staticgraph.models.manifest import PipelineRun


@dataclass(frozen=True)
class LoopBoundary:
    """Sentinel node ids bracketing a loop body."""

    start: str
    end: str


@dataclass
class BuildContext:
    """Created by build_graph() and dropped when it returns.

    Loop numbering restarts at 1 for every build, and the loop registry
    only knows loops seen during this build.
    """

    settings: Settings
    strict: bool = False
    loop_tasks: dict[str, bool] = field(default_factory=dict)  # loop head name -> expanded
    depth: int = 0  # loop nesting level of the manifest being built
    _loop_number: int = 0
    _annotation_scopes: list[dict[str, str]] = field(default_factory=list)

    def next_loop_number(self) -> int:
        self._loop_number += 1
        return self._loop_number

    def register_loop(self, task_name: str) -> None:
        self.loop_tasks[task_name] = True

    def find_annotation(self, key: str) -> str | None:
        """Look key up in the innermost manifest first, then its enclosing ones."""
        for annotations in reversed(self._annotation_scopes):
            if key in annotations:
                return annotations[key]
        return None

    @contextmanager
    def manifest_scope(self, manifest: PipelineRun) -> Generator[None, None, None]:
        """Make the manifest's annotations visible while its tasks are built."""
        self._annotation_scopes.append(manifest.annotations)
        try:
            yield
        finally:
            self._annotation_scopes.pop()

    @contextmanager
    def nested(self) -> Generator[None, None, None]:
        """One loop level deeper for the duration of the block."""
        self.depth += 1
        try:
            yield
        finally:
            self.depth -= 1
