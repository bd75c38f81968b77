"""Configuration loader for quizmaster commands."""

from __future__ import annotations

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Mapping, Optional

from ..core import config as core_config
from ..core import workspace as workspace_mod
from ..core.config import env_value, first_set
from .generator import GenerationSettings
from .parser import ANSWER_CHECK_MODES

CONFIG_FILENAME = "quizmaster.toml"
CONFIG_ENV = "QUIZMASTER_CONFIG"
ENV_PREFIX = "QUIZMASTER_"
DEFAULT_QUIZ_FILE = "quizzes.json"


class QuizmasterConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class QuizmasterConfig:
    """Fully resolved configuration for a command run."""

    quiz_file: Path
    generation: GenerationSettings
    answer_check: str
    log_level: str
    verbose: bool


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    quiz_file: Optional[Path] = None
    model: Optional[str] = None
    answer_check: Optional[str] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizmasterConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def template_text() -> str:
    """Return the packaged default ``quizmaster.toml``."""

    resource = resources.files(__package__).joinpath(CONFIG_FILENAME)
    return resource.read_text(encoding="utf-8")


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_template(
            path, template=template_text(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizmasterConfigError(str(exc)) from exc


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults.

    A missing default config file means built-in defaults; a missing file
    requested explicitly (flag or ``QUIZMASTER_CONFIG``) is an error.
    """

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizmasterConfigError(str(exc)) from exc

    requested = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=layout.path_for("config") / CONFIG_FILENAME,
    )
    explicit = config_path is not None or bool(
        (env_map.get(CONFIG_ENV) or "").strip()
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        try:
            table = core_config.overlay(
                table, core_config.read_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise QuizmasterConfigError(str(exc)) from exc
        loaded_path = requested
    elif explicit:
        raise QuizmasterConfigError(f"Config file not found: {requested}")

    generation = table["generation"]
    model = first_set(
        overrides.model,
        env_value(env_map, ENV_PREFIX, "MODEL"),
        generation["model"],
    )
    config = QuizmasterConfig(
        quiz_file=_resolve_quiz_file(
            first_set(
                overrides.quiz_file,
                env_value(env_map, ENV_PREFIX, "QUIZ_FILE"),
                table["storage"]["quiz_file"],
            ),
            layout,
        ),
        generation=GenerationSettings(
            model=_require_text(model, "generation.model"),
            temperature=_require_number(
                generation["temperature"], "generation.temperature"
            ),
            max_tokens=_require_positive_int(
                generation["max_tokens"], "generation.max_tokens"
            ),
            question_count=_require_positive_int(
                generation["question_count"], "generation.question_count"
            ),
            option_count=_require_positive_int(
                generation["option_count"], "generation.option_count"
            ),
        ),
        answer_check=_resolve_answer_check(
            first_set(
                overrides.answer_check,
                env_value(env_map, ENV_PREFIX, "ANSWER_CHECK"),
                table["parser"]["answer_check"],
            )
        ),
        log_level=_require_text(
            first_set(
                overrides.log_level,
                env_value(env_map, ENV_PREFIX, "LOG_LEVEL"),
                table["logging"]["level"],
            ),
            "logging.level",
        ).upper(),
        verbose=_require_bool(
            first_set(overrides.verbose, table["logging"]["verbose"]),
            "logging.verbose",
        ),
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> dict[str, dict[str, Any]]:
    defaults = GenerationSettings()
    return {
        "storage": {"quiz_file": ""},
        "generation": {
            "model": defaults.model,
            "temperature": defaults.temperature,
            "max_tokens": defaults.max_tokens,
            "question_count": defaults.question_count,
            "option_count": defaults.option_count,
        },
        "parser": {"answer_check": "reject"},
        "logging": {"level": "INFO", "verbose": False},
    }


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _resolve_quiz_file(
    value: Any, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if isinstance(value, Path):
        candidate = value
    elif isinstance(value, str):
        if not value.strip():
            return layout.path_for("data") / DEFAULT_QUIZ_FILE
        candidate = Path(value.strip())
    else:
        raise QuizmasterConfigError(
            "storage.quiz_file must be a string when provided."
        )
    candidate = candidate.expanduser()
    if not candidate.is_absolute():
        candidate = layout.home / candidate
    return candidate


def _resolve_answer_check(value: Any) -> str:
    if not isinstance(value, str) or value.strip().lower() not in (
        ANSWER_CHECK_MODES
    ):
        expected = ", ".join(ANSWER_CHECK_MODES)
        raise QuizmasterConfigError(
            f"parser.answer_check must be one of: {expected}."
        )
    return value.strip().lower()


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizmasterConfigError(f"'{field}' must be a non-empty string.")
    return value.strip()


def _require_bool(value: Any, field: str) -> bool:
    if not isinstance(value, bool):
        raise QuizmasterConfigError(f"'{field}' must be true or false.")
    return value


def _require_number(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizmasterConfigError(f"'{field}' must be a number.")
    return float(value)


def _require_positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuizmasterConfigError(f"'{field}' must be a positive integer.")
    return value
