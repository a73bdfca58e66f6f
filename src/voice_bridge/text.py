"""Turn assistant message parts into speakable plain text."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from voice_bridge.models import MessagePart

MIN_MAX_CHARS = 200

_FENCED_CODE_RE = re.compile(r"```[\s\S]*?```")
_INLINE_CODE_RE = re.compile(r"`[^`]*`")
_LINK_RE = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class TruncatedText:
    text: str
    truncated: bool


def extract_text(parts: Iterable[MessagePart] | None) -> str:
    """Join the text of non-ignored text parts, in order, without separators."""
    chunks: list[str] = []
    for part in parts or ():
        if part.type != "text" or part.ignored:
            continue
        if part.text:
            chunks.append(part.text)
    return "".join(chunks).strip()


def sanitize(text: str) -> str:
    """Drop code and link markup that reads badly when spoken."""
    cleaned = _FENCED_CODE_RE.sub(" ", text)
    cleaned = _INLINE_CODE_RE.sub(" ", cleaned)
    cleaned = _LINK_RE.sub(r"\1", cleaned)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def effective_max_chars(configured: int) -> int:
    return max(MIN_MAX_CHARS, configured)


def truncate(text: str, max_chars: int) -> TruncatedText:
    if len(text) <= max_chars:
        return TruncatedText(text=text, truncated=False)
    return TruncatedText(text=text[:max_chars].rstrip(), truncated=True)


def speakable_text(parts: Iterable[MessagePart] | None, max_chars: int) -> TruncatedText:
    """Extract, sanitize, and truncate in one step using the floored limit."""
    return truncate(sanitize(extract_text(parts)), effective_max_chars(max_chars))
