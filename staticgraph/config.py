"""Settings for the static graph builder.

Values are read from the process environment. A .env file in the working
directory is loaded first so local overrides don't need exporting.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


# annotation under which a task spec can carry a human readable name
TASK_DISPLAY_NAME_ANNOTATION = "pipelines.kubeflow.org/task_display_name"


@dataclass(frozen=True)
class Settings:
    """Knobs that shape how a manifest becomes a graph."""

    annotation_prefix: str = "tekton.dev/"  # loop bodies live under prefix + taskRef name
    loop_kind: str = "PipelineLoop"
    max_loop_depth: int = 32
    node_width: int = 172
    node_height: int = 64
    exit_handler_color: str = "#eee"
    condition_color: str = "cornsilk"


def _int_env(env: dict, key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from e


def load_settings(env: dict | None = None) -> Settings:
    """Build Settings from environment variables.

    Args:
        env: mapping to read from, defaults to os.environ

    Returns:
        Settings with every unset variable left at its default
    """
    env = os.environ if env is None else env
    defaults = Settings()
    settings = Settings(
        annotation_prefix=env.get("STATIC_GRAPH_ANNOTATION_PREFIX", defaults.annotation_prefix),
        loop_kind=env.get("STATIC_GRAPH_LOOP_KIND", defaults.loop_kind),
        max_loop_depth=_int_env(env, "STATIC_GRAPH_MAX_LOOP_DEPTH", defaults.max_loop_depth),
        node_width=_int_env(env, "STATIC_GRAPH_NODE_WIDTH", defaults.node_width),
        node_height=_int_env(env, "STATIC_GRAPH_NODE_HEIGHT", defaults.node_height),
        exit_handler_color=env.get("STATIC_GRAPH_EXIT_HANDLER_COLOR", defaults.exit_handler_color),
        condition_color=env.get("STATIC_GRAPH_CONDITION_COLOR", defaults.condition_color),
    )
    if settings.max_loop_depth < 1:
        raise ValueError("STATIC_GRAPH_MAX_LOOP_DEPTH must be at least 1")
    return settings
