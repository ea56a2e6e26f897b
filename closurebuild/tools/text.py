"""Text helpers for log output and compiled content."""

from __future__ import annotations

import re
import secrets
import string
from typing import Iterable, Optional, Sequence, Tuple

_TOKEN_ALPHABET = string.ascii_letters + string.digits


def random_string(length: int = 32) -> str:
    """Return a random alphanumeric token."""
    return "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(length))


def truncate_text(text: str, max_length: int = 40, separator: str = "…") -> str:
    """Shorten ``text`` in the middle so long paths still fit a log line."""
    if len(text) <= max_length:
        return text
    head = text[: max(0, -(-max_length // 2) - len(separator))]
    tail = text[len(text) - max_length // 2 :]
    return f"{head}{separator}{tail}"


def replace_text(content: str, replacement: Optional[Sequence[str]]) -> str:
    """Apply a single ``(pattern, replacement)`` regex substitution."""
    if not content or not replacement:
        return content
    if len(replacement) != 2:
        raise ValueError("replace expects exactly [pattern, replacement]")
    pattern, value = replacement
    return re.sub(pattern, value, content)


def filter_lines(text: str, ignored: Iterable[str]) -> str:
    """Drop lines containing any of the ``ignored`` fragments."""
    markers: Tuple[str, ...] = tuple(ignored)
    if not text or not markers:
        return text
    kept = [line for line in text.splitlines() if not any(marker in line for marker in markers)]
    return "\n".join(kept).strip()


__all__ = ["filter_lines", "random_string", "replace_text", "truncate_text"]
