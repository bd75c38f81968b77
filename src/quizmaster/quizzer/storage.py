"""Best-effort persistence of the quiz collection.

The collection is stored as one JSON value under a fixed key of a small
JSON key-value file. Reads and writes never raise to the caller: a missing
or unreadable file loads as an empty collection and a failed write is
logged and dropped.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from .models import Quiz

__all__ = [
    "QUIZZES_KEY",
    "PersistenceError",
    "JsonKeyValueFile",
    "QuizStore",
]

QUIZZES_KEY = "quizmaster_quizzes"

_LOGGER = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """Raised when the key-value file cannot be read or written."""


class JsonKeyValueFile:
    """A JSON object on disk addressed by top-level keys."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[Any]:
        return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        try:
            document = self._read()
        except PersistenceError:
            # An unreadable document is replaced wholesale.
            document = {}
        document[key] = value
        try:
            _atomic_write_json(self._path, document)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(
                f"Failed to write store file: {self._path}"
            ) from exc

    def _read(self) -> dict[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise PersistenceError(
                f"Failed to read store file: {self._path}"
            ) from exc
        except json.JSONDecodeError as exc:
            raise PersistenceError(
                f"Failed to parse store file: {self._path}"
            ) from exc
        if not isinstance(data, dict):
            raise PersistenceError(
                f"Store file must hold a JSON object: {self._path}"
            )
        return data


class QuizStore:
    """``load``/``save`` of the whole quiz collection."""

    def __init__(
        self,
        kv: JsonKeyValueFile,
        *,
        key: str = QUIZZES_KEY,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._kv = kv
        self._key = key
        self._logger = logger or _LOGGER

    @classmethod
    def at(
        cls, path: Path, *, logger: Optional[logging.Logger] = None
    ) -> "QuizStore":
        return cls(JsonKeyValueFile(path), logger=logger)

    def load(self) -> List[Quiz]:
        try:
            raw = self._kv.get(self._key)
            if raw is None:
                return []
            if not isinstance(raw, list):
                raise PersistenceError(f"'{self._key}' is not a list")
            return [_quiz_from_raw(item) for item in raw]
        except PersistenceError:
            self._logger.exception(
                "Failed to load quizzes", extra={"key": self._key}
            )
            return []

    def save(self, quizzes: Sequence[Quiz]) -> None:
        try:
            self._kv.set(self._key, [quiz.to_dict() for quiz in quizzes])
        except PersistenceError:
            self._logger.exception(
                "Failed to save quizzes",
                extra={"key": self._key, "count": len(quizzes)},
            )
            return
        self._logger.debug(
            "Saved quizzes", extra={"key": self._key, "count": len(quizzes)}
        )


def _quiz_from_raw(item: Any) -> Quiz:
    try:
        return Quiz.from_dict(item)
    except (ValueError, TypeError, AttributeError) as exc:
        raise PersistenceError(f"Invalid stored quiz: {exc}") from exc


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        suffix=".tmp",
    )
    try:
        json.dump(payload, handle, indent=2, ensure_ascii=False)
        handle.flush()
        os.fsync(handle.fileno())
    except BaseException:
        handle.close()
        os.unlink(handle.name)
        raise
    handle.close()
    os.replace(handle.name, path)
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
