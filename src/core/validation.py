from __future__ import annotations

import re
from typing import Any

from core.errors import ValidationError


_TITLE_MIN = 3
_TITLE_MAX = 30
_SINGLE_WORD_MAX = 20
_WORD_MAX = 15
_HAS_LETTER_RE = re.compile(r"[a-zA-Z]")


def validate_title(title: str) -> str:
    """Validate a request/key title and return it trimmed."""
    t = (title or "").strip()
    if not t:
        raise ValidationError("Title is required")
    if len(t) < _TITLE_MIN:
        raise ValidationError(f"Title must be at least {_TITLE_MIN} characters")
    if len(t) > _TITLE_MAX:
        raise ValidationError(f"Title must be no more than {_TITLE_MAX} characters")

    words = t.split()
    if len(words) == 1 and len(t) > _SINGLE_WORD_MAX:
        raise ValidationError("Please use a descriptive title, not a single long word")
    if any(len(w) > _WORD_MAX for w in words):
        raise ValidationError(f"Words cannot exceed {_WORD_MAX} characters")

    if not _HAS_LETTER_RE.search(t):
        raise ValidationError("Title must contain at least some letters")
    return t


def normalize_id(value: Any, *, name: str = "id") -> int:
    try:
        n = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be an integer") from e
    if n <= 0:
        raise ValidationError(f"{name} must be positive")
    return n


def normalize_query(query: str) -> str:
    # Collapse whitespace and case so equivalent searches share a cache key
    return " ".join((query or "").split()).lower()
