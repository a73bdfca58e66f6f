"""Contracts for the host, text-to-speech, and playback collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from voice_bridge.models import Message

if TYPE_CHECKING:
    from voice_bridge.voice_config import PlayerConfig


@dataclass(frozen=True, slots=True)
class SynthesisRequest:
    api_key: str
    voice_id: str
    text: str
    model_id: str
    output_format: str


@dataclass(frozen=True, slots=True)
class PlayerResult:
    exit_code: int
    stderr: str = ""


class MessageSource(Protocol):
    """Reads a session's message history from the host, oldest first."""

    async def list_messages(self, session_id: str, *, limit: int) -> Sequence[Message]:
        """Return up to ``limit`` most recent messages of the session."""


class Notifier(Protocol):
    """Presents a toast notification in the host UI."""

    async def show_toast(self, message: str, variant: str) -> None:
        """Show ``message`` with an info/success/warning/error variant."""


class SpeechSynthesizer(Protocol):
    """Converts text into encoded audio."""

    async def synthesize(self, request: SynthesisRequest) -> bytes:
        """Return audio bytes in the requested output format."""


class AudioPlayer(Protocol):
    """Plays encoded audio through a local player."""

    async def play(self, audio: bytes, player: PlayerConfig) -> None:
        """Play ``audio`` to completion, raising ``PlaybackError`` on failure."""
