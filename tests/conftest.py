from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeChatClient, QuizWorkspace  # noqa: E402

_ENV_KEYS = (
    "QUIZMASTER_DATA_HOME",
    "QUIZMASTER_CONFIG",
    "QUIZMASTER_LOG_LEVEL",
    "QUIZMASTER_MODEL",
    "QUIZMASTER_ANSWER_CHECK",
    "QUIZMASTER_QUIZ_FILE",
    "OPENAI_API_KEY",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_quizmaster_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("quizmaster")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def workspace(tmp_path: Path) -> QuizWorkspace:
    """Provide a workspace helper bound to pytest's tmp directory."""

    return QuizWorkspace(tmp_path)


@pytest.fixture
def fake_client() -> FakeChatClient:
    """A chat client that records requests and replays queued replies."""

    return FakeChatClient()
