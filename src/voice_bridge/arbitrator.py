"""Single-flight speak arbitration with a one-slot pending request."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from voice_bridge.adapters.interfaces import AudioPlayer, MessageSource, SpeechSynthesizer, SynthesisRequest
from voice_bridge.errors import VoiceConfigError, VoiceError
from voice_bridge.models import SpeakableMessage, SpeakReason, SpeakRequest
from voice_bridge.notifications import Notifications
from voice_bridge.session import SessionPolicyStore
from voice_bridge.text import speakable_text
from voice_bridge.voice_config import ConfigSnapshotManager, VoiceConfig

DEFAULT_MESSAGE_LIMIT = 25


@dataclass(frozen=True, slots=True)
class Idle:
    pass


@dataclass(frozen=True, slots=True)
class Speaking:
    current: SpeakRequest


@dataclass(frozen=True, slots=True)
class SpeakingWithPending:
    current: SpeakRequest
    pending: SpeakRequest


ArbitratorState = Idle | Speaking | SpeakingWithPending

IDLE = Idle()


class SpeakArbitrator:
    """Runs at most one speak pipeline at a time.

    A request arriving while a pipeline is in flight replaces whatever is in the
    pending slot and returns immediately. The caller that started the pipeline
    keeps draining the slot until it is empty, so a queued request always runs.
    """

    def __init__(
        self,
        *,
        policy: SessionPolicyStore,
        config: ConfigSnapshotManager,
        message_source: MessageSource,
        synthesizer: SpeechSynthesizer,
        player: AudioPlayer,
        notifications: Notifications,
        api_key_provider: Callable[[], str | None],
        message_limit: int = DEFAULT_MESSAGE_LIMIT,
        logger: logging.Logger | None = None,
    ) -> None:
        self._policy = policy
        self._config = config
        self._message_source = message_source
        self._synthesizer = synthesizer
        self._player = player
        self._notifications = notifications
        self._api_key_provider = api_key_provider
        self._message_limit = message_limit
        self._logger = logger or logging.getLogger("voice_bridge.arbitrator")

        self._state: ArbitratorState = IDLE

    @property
    def state(self) -> ArbitratorState:
        return self._state

    @property
    def is_speaking(self) -> bool:
        return not isinstance(self._state, Idle)

    async def request_speak(self, session_id: str, reason: SpeakReason) -> None:
        if not self._policy.is_enabled_for_session(session_id):
            self._logger.debug("speak_skipped_disabled", extra={"session_id": session_id, "reason": reason.value})
            return

        request = SpeakRequest(session_id=session_id, reason=reason)
        state = self._state
        if isinstance(state, (Speaking, SpeakingWithPending)):
            # State flips before any await so re-entrant callers see it.
            self._state = SpeakingWithPending(current=state.current, pending=request)
            self._logger.info(
                "speak_queued",
                extra={"session_id": session_id, "reason": reason.value, "current": state.current.session_id},
            )
            return

        self._state = Speaking(current=request)
        try:
            await self._drain(request)
        except BaseException:
            self._state = IDLE
            raise

    async def _drain(self, request: SpeakRequest) -> None:
        current: SpeakRequest | None = request
        while current is not None:
            await self._run_reported(current)
            current = self._advance()

    def _advance(self) -> SpeakRequest | None:
        """Promote the pending request, or go idle when the slot is empty."""
        while isinstance(self._state, SpeakingWithPending):
            pending = self._state.pending
            self._state = Speaking(current=pending)
            if self._policy.is_enabled_for_session(pending.session_id):
                return pending
            self._logger.debug("pending_skipped_disabled", extra={"session_id": pending.session_id})
        self._state = IDLE
        return None

    async def _run_reported(self, request: SpeakRequest) -> None:
        try:
            await self._run_pipeline(request)
        except VoiceConfigError as exc:
            self._logger.warning("speak_config_error", extra={"session_id": request.session_id, "error": str(exc)})
            await self._notifications.error(str(exc))
        except VoiceError as exc:
            self._logger.warning("speak_failed", extra={"session_id": request.session_id, "error": str(exc)})
            await self._notifications.error(f"Voice error: {exc}")
        except Exception as exc:  # noqa: BLE001 - one bad pipeline must not wedge the arbitrator.
            self._logger.exception("speak_crashed", extra={"session_id": request.session_id})
            await self._notifications.error(f"Voice error: {exc}")

    async def _run_pipeline(self, request: SpeakRequest) -> None:
        config = self._config.snapshot

        api_key = self._api_key_provider()
        if not api_key:
            raise VoiceConfigError("Missing ELEVENLABS_API_KEY")
        if not config.voice_id:
            raise VoiceConfigError("Missing voiceId in voice.json")
        model_id = config.resolve_model_id()

        latest = await self._latest_assistant(request.session_id, config)
        if latest is None:
            self._logger.debug("speak_skipped_no_message", extra={"session_id": request.session_id})
            return

        if request.reason == SpeakReason.IDLE and self._policy.was_spoken(request.session_id, latest.message_id):
            self._logger.debug(
                "speak_skipped_duplicate",
                extra={"session_id": request.session_id, "message_id": latest.message_id},
            )
            return

        if latest.truncated:
            await self._notifications.warning(f"Voice text truncated to {len(latest.text)} characters")

        self._logger.info(
            "speak_started",
            extra={
                "session_id": request.session_id,
                "message_id": latest.message_id,
                "reason": request.reason.value,
                "model_id": model_id,
            },
        )
        audio = await self._synthesizer.synthesize(
            SynthesisRequest(
                api_key=api_key,
                voice_id=config.voice_id,
                text=latest.text,
                model_id=model_id,
                output_format=config.output_format,
            )
        )
        await self._player.play(audio, config.player)

        self._policy.record_spoken(request.session_id, latest.message_id)
        self._logger.info("speak_finished", extra={"session_id": request.session_id, "message_id": latest.message_id})

    async def _latest_assistant(self, session_id: str, config: VoiceConfig) -> SpeakableMessage | None:
        messages = await self._message_source.list_messages(session_id, limit=self._message_limit)
        for message in reversed(messages):
            if message.role != "assistant":
                continue
            speakable = speakable_text(message.parts, config.max_chars)
            if not speakable.text:
                continue
            return SpeakableMessage(message_id=message.id, text=speakable.text, truncated=speakable.truncated)
        return None
