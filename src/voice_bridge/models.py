from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SpeakReason(str, Enum):
    IDLE = "idle"
    MANUAL = "manual"


@dataclass(frozen=True, slots=True)
class SpeakRequest:
    session_id: str
    reason: SpeakReason


@dataclass(frozen=True, slots=True)
class MessagePart:
    type: str
    text: str = ""
    ignored: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> MessagePart:
        text = payload.get("text")
        return cls(
            type=str(payload.get("type") or ""),
            text=text if isinstance(text, str) else "",
            ignored=bool(payload.get("ignored", False)),
        )


@dataclass(frozen=True, slots=True)
class Message:
    """Read-only snapshot of one host message and its content parts."""

    id: str
    role: str
    session_id: str | None = None
    parts: tuple[MessagePart, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Message | None:
        """Build from the host's ``{"info": {...}, "parts": [...]}`` shape."""
        info = payload.get("info")
        if not isinstance(info, Mapping) or not info.get("id"):
            return None
        raw_parts = payload.get("parts") or []
        return cls(
            id=str(info["id"]),
            role=str(info.get("role") or ""),
            session_id=info.get("sessionID"),
            parts=tuple(MessagePart.from_payload(part) for part in raw_parts if isinstance(part, Mapping)),
        )


@dataclass(frozen=True, slots=True)
class SpeakableMessage:
    message_id: str
    text: str
    truncated: bool = False
