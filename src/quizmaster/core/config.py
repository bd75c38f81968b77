"""Layered option resolution: built-in table, TOML file, env, CLI."""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any, Mapping, MutableMapping, Optional

__all__ = [
    "TomlConfigError",
    "env_value",
    "first_set",
    "overlay",
    "read_toml",
    "write_template",
]


class TomlConfigError(RuntimeError):
    """Raised when a config file cannot be read, parsed or validated."""


def read_toml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise TomlConfigError(
            f"Cannot read config file {path}: {exc}"
        ) from exc
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(
            f"Failed to parse config TOML {path.name}: {exc}"
        ) from exc


def overlay(
    defaults: Mapping[str, Any], override: Mapping[str, Any]
) -> dict[str, Any]:
    """Return a copy of ``defaults`` with ``override`` laid over it.

    Every key in ``override`` must already exist in ``defaults``, and a
    table may only be replaced by a table. ``defaults`` is left untouched.
    """

    merged = copy.deepcopy(dict(defaults))
    _overlay_into(merged, override, prefix="")
    return merged


def _overlay_into(
    target: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    prefix: str,
) -> None:
    for key, value in override.items():
        dotted = prefix + key
        if key not in target:
            raise TomlConfigError(f"Unknown configuration key '{dotted}'.")
        current = target[key]
        if not isinstance(current, MutableMapping):
            target[key] = value
            continue
        if not isinstance(value, Mapping):
            raise TomlConfigError(
                f"Expected table for '{dotted}', found "
                f"{type(value).__name__}."
            )
        _overlay_into(current, value, prefix=f"{dotted}.")


def env_value(
    env: Mapping[str, str], prefix: str, key: str
) -> Optional[str]:
    """Return ``env[prefix + key]`` trimmed, or ``None`` when blank."""

    raw = env.get(f"{prefix}{key}")
    if raw is None:
        return None
    return raw.strip() or None


def first_set(*candidates: Any) -> Any:
    """Return the first candidate that is not ``None``."""

    return next((item for item in candidates if item is not None), None)


def write_template(
    path: Path,
    *,
    template: str,
    overwrite: bool = False,
    mode: int = 0o600,
) -> Path:
    """Write ``template`` to ``path``; an existing file needs ``overwrite``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("w" if overwrite else "x", encoding="utf-8") as handle:
            handle.write(template)
    except FileExistsError as exc:
        raise TomlConfigError(f"Config already exists: {path}") from exc
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path
