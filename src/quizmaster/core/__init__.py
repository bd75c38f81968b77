"""Core shared helpers for quizmaster subcommands."""

from __future__ import annotations

from .ai import load_client
from .config import (
    TomlConfigError,
    env_value,
    first_set,
    overlay,
    read_toml,
    write_template,
)
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "TomlConfigError",
    "env_value",
    "first_set",
    "overlay",
    "read_toml",
    "write_template",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
