"""Per-session enablement overrides and spoken-message memory."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from voice_bridge.voice_config import ConfigSnapshotManager


class ToggleAction(str, Enum):
    ON = "on"
    OFF = "off"
    TOGGLE = "toggle"


class ToggleScope(str, Enum):
    GLOBAL = "global"
    SESSION = "session"


@dataclass(frozen=True, slots=True)
class ToggleResult:
    enabled: bool
    scope: ToggleScope


@dataclass(slots=True)
class SessionPolicyState:
    active_session_id: str | None = None
    disabled_sessions: set[str] = field(default_factory=set)
    last_spoken: dict[str, str] = field(default_factory=dict)


class SessionPolicyStore:
    """Layers session overrides on top of the global ``enabled`` flag.

    The global flag lives in the config snapshot; toggling a session never
    touches it and toggling globally never touches session overrides.
    """

    def __init__(self, config: ConfigSnapshotManager, *, logger: logging.Logger | None = None) -> None:
        self._config = config
        self._state = SessionPolicyState()
        self._logger = logger or logging.getLogger("voice_bridge.session")

    @property
    def state(self) -> SessionPolicyState:
        return self._state

    @property
    def active_session_id(self) -> str | None:
        return self._state.active_session_id

    def mark_active(self, session_id: str) -> None:
        self._state.active_session_id = session_id

    def is_enabled_for_session(self, session_id: str) -> bool:
        if not self._config.snapshot.enabled:
            return False
        return session_id not in self._state.disabled_sessions

    def is_enabled(self) -> bool:
        """Effective state for the active session, or the global flag without one."""
        session_id = self._state.active_session_id
        if session_id is None:
            return self._config.snapshot.enabled
        return self.is_enabled_for_session(session_id)

    def record_spoken(self, session_id: str, message_id: str) -> None:
        self._state.last_spoken[session_id] = message_id

    def was_spoken(self, session_id: str, message_id: str) -> bool:
        return self._state.last_spoken.get(session_id) == message_id

    def forget(self, session_id: str) -> None:
        self._state.disabled_sessions.discard(session_id)
        self._state.last_spoken.pop(session_id, None)
        if self._state.active_session_id == session_id:
            self._state.active_session_id = None
        self._logger.debug("session_forgotten", extra={"session_id": session_id})

    def apply_toggle(self, action: ToggleAction) -> ToggleResult:
        session_id = self._state.active_session_id
        if session_id is None:
            enabled = self._next_state(action, self._config.snapshot.enabled)
            self._config.override(enabled=enabled)
            return ToggleResult(enabled=enabled, scope=ToggleScope.GLOBAL)

        enabled = self._next_state(action, self.is_enabled_for_session(session_id))
        if enabled:
            self._state.disabled_sessions.discard(session_id)
        else:
            self._state.disabled_sessions.add(session_id)
        return ToggleResult(enabled=enabled, scope=ToggleScope.SESSION)

    @staticmethod
    def _next_state(action: ToggleAction, current: bool) -> bool:
        if action == ToggleAction.ON:
            return True
        if action == ToggleAction.OFF:
            return False
        return not current
