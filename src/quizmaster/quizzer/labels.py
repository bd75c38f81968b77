"""Option label normalization used for all answer matching."""

from __future__ import annotations

import re
from typing import Optional, Sequence

__all__ = [
    "strip_label",
    "answers_match",
    "find_matching_option",
]

_LABEL_RE = re.compile(r"^([a-zA-Z]|[0-9]+)[).]\s+")


def strip_label(text: str) -> str:
    """Drop one leading ``a)``/``B.``/``12.`` style label and trim.

    Text without a label passes through trimmed. Only one label is removed,
    so ``"a) b) x"`` becomes ``"b) x"``.
    """

    return _LABEL_RE.sub("", text, count=1).strip()


def answers_match(selected: Optional[str], correct: str) -> bool:
    if not selected:
        return False
    return selected.lower() == correct.lower()


def find_matching_option(
    answer: str, options: Sequence[str]
) -> Optional[int]:
    """Return the index of the single option matching ``answer``.

    Both sides are compared in stripped form, case-insensitively. ``None``
    means no option matches or the match is ambiguous.
    """

    target = strip_label(answer)
    hits = [
        idx
        for idx, option in enumerate(options)
        if answers_match(strip_label(option), target)
    ]
    if len(hits) != 1:
        return None
    return hits[0]
