"""Dispatch of host events and ``voice.*`` commands."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from voice_bridge.arbitrator import SpeakArbitrator
from voice_bridge.models import SpeakReason
from voice_bridge.notifications import Notifications
from voice_bridge.session import SessionPolicyStore, ToggleAction
from voice_bridge.voice_config import ConfigSnapshotManager, VoiceMode

COMMAND_PREFIX = "voice."


class VoiceCommand(str, Enum):
    TOGGLE = "voice.toggle"
    ON = "voice.on"
    OFF = "voice.off"
    SPEAK = "voice.speak"
    MODE_CONTINUOUS = "voice.mode.continuous"
    MODE_PUSH_TO_TALK = "voice.mode.push-to-talk"
    STATUS = "voice.status"
    RELOAD = "voice.reload"


_TOGGLE_ACTIONS = {
    VoiceCommand.TOGGLE: ToggleAction.TOGGLE,
    VoiceCommand.ON: ToggleAction.ON,
    VoiceCommand.OFF: ToggleAction.OFF,
}

_MODE_COMMANDS = {
    VoiceCommand.MODE_CONTINUOUS: VoiceMode.CONTINUOUS,
    VoiceCommand.MODE_PUSH_TO_TALK: VoiceMode.PUSH_TO_TALK,
}


def _get(mapping: Any, *keys: str) -> Any:
    value = mapping
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


class VoiceEventRouter:
    """Maps host events to policy, arbitrator, and config operations."""

    def __init__(
        self,
        *,
        policy: SessionPolicyStore,
        arbitrator: SpeakArbitrator,
        config: ConfigSnapshotManager,
        notifications: Notifications,
        logger: logging.Logger | None = None,
    ) -> None:
        self._policy = policy
        self._arbitrator = arbitrator
        self._config = config
        self._notifications = notifications
        self._logger = logger or logging.getLogger("voice_bridge.router")

    async def handle(self, event: Mapping[str, Any]) -> None:
        payload = event.get("payload") if isinstance(event, Mapping) else None
        if not isinstance(payload, Mapping):
            payload = event
        if not isinstance(payload, Mapping):
            return

        event_type = payload.get("type")
        properties = payload.get("properties")

        if event_type == "session.idle":
            await self._on_session_idle(properties)
        elif event_type == "message.updated":
            session_id = _str_or_none(_get(properties, "info", "sessionID"))
            if session_id:
                self._policy.mark_active(session_id)
        elif event_type == "session.deleted":
            session_id = _str_or_none(_get(properties, "info", "id")) or _str_or_none(_get(properties, "sessionID"))
            if session_id:
                self._policy.forget(session_id)
        elif event_type == "tui.command.execute":
            command = _str_or_none(_get(properties, "command"))
            if command and command.startswith(COMMAND_PREFIX):
                await self.handle_command(command)
        elif event_type == "file.watcher.updated":
            file = _str_or_none(_get(properties, "file"))
            if file and self._config.is_config_path(file):
                self._logger.info("config_file_changed", extra={"file": file})
                await self._config.reload(announce=False)

    async def _on_session_idle(self, properties: Any) -> None:
        session_id = _str_or_none(_get(properties, "sessionID"))
        if not session_id:
            return
        self._policy.mark_active(session_id)
        if self._config.snapshot.mode == VoiceMode.CONTINUOUS:
            await self._arbitrator.request_speak(session_id, SpeakReason.IDLE)

    async def handle_command(self, raw_command: str) -> None:
        try:
            command = VoiceCommand(raw_command)
        except ValueError:
            self._logger.debug("unknown_command_ignored", extra={"command": raw_command})
            return

        session_id = self._policy.active_session_id

        if command == VoiceCommand.RELOAD:
            await self._config.reload(announce=True)
        elif command == VoiceCommand.STATUS:
            effective = "on" if self._policy.is_enabled() else "off"
            snapshot = self._config.snapshot
            await self._notifications.info(
                f"Voice {effective}. mode={snapshot.mode.value}. source={self._config.source.value}"
            )
        elif command in _MODE_COMMANDS:
            mode = _MODE_COMMANDS[command]
            self._config.override(mode=mode)
            await self._notifications.success(f"Voice mode: {mode.value}")
        elif command == VoiceCommand.SPEAK:
            if session_id is None:
                await self._notifications.warning("No active session to speak")
                return
            await self._arbitrator.request_speak(session_id, SpeakReason.MANUAL)
        else:
            result = self._policy.apply_toggle(_TOGGLE_ACTIONS[command])
            await self._notifications.success(f"Voice {'on' if result.enabled else 'off'} ({result.scope.value})")
