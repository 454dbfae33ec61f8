"""Recognize task references such as $(tasks.train.results.model)."""

from typing import Any

TASK_REF_PREFIX = "$(tasks."
TASK_REF_SUFFIX = ")"


def parse_task_reference(value: Any) -> str | None:
    """Return the task named by a $(tasks.<name>...) reference.

    The whole value must be the reference: a string starting with
    "$(tasks." and ending with ")". Anything else, including malformed
    references like "$(tasks.)", returns None.
    """
    if not isinstance(value, str):
        return None
    if not (value.startswith(TASK_REF_PREFIX) and value.endswith(TASK_REF_SUFFIX)):
        return None
    # "tasks.<name>.<field>..." between "$(" and ")"
    inner = value[2:-len(TASK_REF_SUFFIX)]
    parts = inner.split(".")
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]
