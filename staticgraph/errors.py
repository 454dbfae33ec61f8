"""Exceptions raised while turning a manifest into a graph."""


class StaticGraphError(Exception):
    """Base class for graph builder failures."""
    pass


class ManifestError(StaticGraphError):
    """Raised when a manifest (or an embedded loop body) fails validation."""
    pass


class LoopAnnotationError(StaticGraphError):
    """A loop task whose body annotation could not be used.

    These are recoverable: the builder records them on the graph and leaves
    the loop unexpanded unless it runs in strict mode.
    """

    def __init__(self, task_name: str, annotation_key: str, reason: str) -> None:
        self.task_name = task_name
        self.annotation_key = annotation_key
        self.reason = reason
        super().__init__(f"loop task {task_name!r}: {reason} (annotation {annotation_key!r})")


class MissingLoopAnnotationError(LoopAnnotationError):
    """The annotation holding a loop body is not present."""

    def __init__(self, task_name: str, annotation_key: str) -> None:
        super().__init__(task_name, annotation_key, "loop body annotation not found")


class MalformedLoopAnnotationError(LoopAnnotationError):
    """The annotation exists but does not decode to a pipeline manifest."""
    pass


class LoopDepthExceededError(StaticGraphError):
    """Loop nesting went past the configured limit, e.g. self-referencing annotations."""

    def __init__(self, task_name: str, annotation_key: str, depth: int, max_depth: int) -> None:
        self.task_name = task_name
        self.annotation_key = annotation_key
        self.depth = depth
        self.max_depth = max_depth
        super().__init__(
            f"loop task {task_name!r} (annotation {annotation_key!r}) is nested "
            f"{depth} levels deep, limit is {max_depth}"
        )
