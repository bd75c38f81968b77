"""Generate quizzes from a topic with an OpenAI chat model.

One best-effort request per call: no retries, no fallback to text parsing.
The response is validated against an explicit schema before any
:class:`Quiz` is built, and every failure surfaces as
:class:`GenerationError` with a generic message.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from ..core import load_client
from .labels import find_matching_option
from .models import Question, Quiz, new_id, timestamp

__all__ = [
    "GENERATION_FAILED_MESSAGE",
    "GenerationError",
    "GenerationSettings",
    "generate_quiz",
    "quiz_from_payload",
]

GENERATION_FAILED_MESSAGE = (
    "Failed to generate quiz. Please check your API key and try again."
)

_LOGGER = logging.getLogger(__name__)


class GenerationError(RuntimeError):
    """Raised when a generation attempt produced no usable quiz."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(GENERATION_FAILED_MESSAGE)
        self.detail = detail


@dataclass(frozen=True)
class GenerationSettings:
    model: str = "gpt-4o-mini"
    temperature: float = 0.2
    max_tokens: int = 2000
    question_count: int = 5
    option_count: int = 4


def _build_prompts(
    topic: str, settings: GenerationSettings
) -> Tuple[str, str]:
    sys_prompt = (
        "You write multiple-choice quizzes and reply with a single JSON "
        "object only."
    )
    schema_line = (
        '{"title": str, "description": str, "questions": [{"text": str, '
        '"options": [str], "correctAnswer": str}]}\n'
    )
    user_prompt = (
        f'Create a multiple-choice quiz about "{topic}".\n'
        f"Include a title, a short description, and "
        f"{settings.question_count} questions.\n"
        f"For each question, provide {settings.option_count} options and "
        "the correct answer text.\n\n"
        f"Schema:\n{schema_line}"
        "Constraints: correctAnswer must repeat one option verbatim; no "
        "option labels like 'a)'."
    )
    return sys_prompt, user_prompt


def _chat_completion_content(
    client: Any,
    *,
    settings: GenerationSettings,
    system_prompt: str,
    user_prompt: str,
) -> str:
    try:
        resp = client.chat.completions.create(
            model=settings.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=settings.temperature,
            max_tokens=settings.max_tokens,
            response_format={"type": "json_object"},
        )
        raw_content = resp.choices[0].message.content
    except Exception as exc:
        raise GenerationError("chat completion request failed") from exc
    return (raw_content or "").strip()


def _extract_json_object(content: str) -> Mapping[str, Any]:
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise GenerationError("response is not valid JSON") from exc
    if not isinstance(data, dict):
        raise GenerationError("response JSON is not an object")
    return data


def _require_text(value: Any, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise GenerationError(f"'{field}' must be a non-empty string")
    return value.strip()


def _resolve_answer(raw_answer: str, options: List[str]) -> str:
    """Map a bare option letter (``"B"``) to that option's text."""

    candidate = raw_answer.strip()
    if find_matching_option(candidate, options) is not None:
        return candidate
    if len(candidate) == 1 and candidate.isalpha():
        index = ord(candidate.upper()) - ord("A")
        if 0 <= index < len(options):
            return options[index]
    return candidate


def _build_question(item: Any, position: int) -> Question:
    if not isinstance(item, dict):
        raise GenerationError(f"question {position} is not an object")
    text = _require_text(item.get("text"), f"questions[{position}].text")
    raw_options = item.get("options")
    if not isinstance(raw_options, list) or not raw_options:
        raise GenerationError(
            f"questions[{position}].options must be a non-empty list"
        )
    options = [
        _require_text(option, f"questions[{position}].options")
        for option in raw_options
    ]
    answer = _resolve_answer(
        _require_text(
            item.get("correctAnswer"), f"questions[{position}].correctAnswer"
        ),
        options,
    )
    if find_matching_option(answer, options) is None:
        raise GenerationError(
            f"questions[{position}].correctAnswer matches no single option"
        )
    return Question(
        id=new_id(),
        text=text,
        options=tuple(options),
        correct_answer=answer,
    )


def quiz_from_payload(payload: Mapping[str, Any]) -> Quiz:
    """Validate a generated payload and build a :class:`Quiz` from it."""

    title = _require_text(payload.get("title"), "title")
    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        raise GenerationError("'description' must be a string")
    questions = payload.get("questions")
    if not isinstance(questions, list) or not questions:
        raise GenerationError("'questions' must be a non-empty list")
    return Quiz(
        id=new_id(),
        title=title,
        description=description.strip() if description else None,
        questions=tuple(
            _build_question(item, idx) for idx, item in enumerate(questions)
        ),
        created_at=timestamp(),
    )


def generate_quiz(
    topic: str,
    *,
    client: Optional[Any] = None,
    settings: Optional[GenerationSettings] = None,
    logger: Optional[logging.Logger] = None,
) -> Quiz:
    """Ask the model for a quiz about ``topic`` and return it validated."""

    log = logger or _LOGGER
    settings = settings or GenerationSettings()
    topic = (topic or "").strip()
    try:
        if not topic:
            raise GenerationError("topic is empty")
        if client is None:
            try:
                client = load_client()
            except RuntimeError as exc:
                raise GenerationError("no OpenAI client available") from exc
        system_prompt, user_prompt = _build_prompts(topic, settings)
        content = _chat_completion_content(
            client,
            settings=settings,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
        )
        if not content:
            raise GenerationError("empty response")
        quiz = quiz_from_payload(_extract_json_object(content))
    except GenerationError as exc:
        log.error(
            "Quiz generation failed",
            exc_info=exc.__cause__ is not None,
            extra={"topic": topic, "detail": exc.detail},
        )
        raise
    log.info(
        "Generated quiz",
        extra={
            "topic": topic,
            "quiz_id": quiz.id,
            "questions": len(quiz.questions),
            "model": settings.model,
        },
    )
    return quiz
