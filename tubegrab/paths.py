import os
from dataclasses import dataclass
from pathlib import Path


def _env_path(name, default):
    value = os.environ.get(name)
    if value:
        return os.path.abspath(os.path.expanduser(value))
    return os.path.abspath(default)


# Everything the tool writes on its own behalf lives under one home directory.
# Override via env for portable installs or tests.
TOOL_HOME = _env_path("TUBEGRAB_HOME", Path.home() / ".tubegrab")


@dataclass(frozen=True)
class ToolPaths:
    home: str
    config_path: str
    log_dir: str
    workspace_root: str


def ensure_dir(path):
    if path:
        os.makedirs(path, exist_ok=True)


def resolve_config_path(path, home=None):
    base = home or TOOL_HOME
    if not path:
        return os.path.join(base, "config.json")
    path = os.path.expanduser(path)
    if os.path.isabs(path):
        return os.path.abspath(path)
    return os.path.abspath(os.path.join(base, path))


def resolve_output_dir(path):
    """Expand ``~`` and env vars; relative paths are taken from the cwd."""
    if not path:
        return os.path.abspath(os.getcwd())
    return os.path.abspath(os.path.expandvars(os.path.expanduser(path)))


def build_tool_paths(home=None, config_path=None):
    home = os.path.abspath(home) if home else TOOL_HOME
    return ToolPaths(
        home=home,
        config_path=resolve_config_path(config_path, home),
        log_dir=os.path.join(home, "logs"),
        workspace_root=home,
    )
