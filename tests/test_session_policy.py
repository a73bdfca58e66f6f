from pathlib import Path

from voice_bridge.notifications import Notifications
from voice_bridge.session import SessionPolicyStore, ToggleAction, ToggleScope
from voice_bridge.voice_config import ConfigSnapshotManager


class SilentNotifier:
    async def show_toast(self, message: str, variant: str) -> None:
        return None


def _store(tmp_path: Path) -> tuple[SessionPolicyStore, ConfigSnapshotManager]:
    config = ConfigSnapshotManager(tmp_path, notifications=Notifications(SilentNotifier()))
    return SessionPolicyStore(config), config


def test_global_flag_disables_every_session(tmp_path: Path) -> None:
    store, config = _store(tmp_path)
    config.override(enabled=False)

    assert store.is_enabled_for_session("s1") is False


def test_session_toggle_does_not_touch_global_flag(tmp_path: Path) -> None:
    store, config = _store(tmp_path)
    store.mark_active("s1")

    result = store.apply_toggle(ToggleAction.TOGGLE)

    assert result.enabled is False
    assert result.scope == ToggleScope.SESSION
    assert store.is_enabled_for_session("s1") is False
    assert store.is_enabled_for_session("s2") is True
    assert config.snapshot.enabled is True


def test_toggle_without_active_session_flips_global_flag(tmp_path: Path) -> None:
    store, config = _store(tmp_path)

    first = store.apply_toggle(ToggleAction.TOGGLE)
    second = store.apply_toggle(ToggleAction.TOGGLE)

    assert (first.enabled, first.scope) == (False, ToggleScope.GLOBAL)
    assert (second.enabled, second.scope) == (True, ToggleScope.GLOBAL)
    assert config.snapshot.enabled is True


def test_session_toggle_inverts_effective_state(tmp_path: Path) -> None:
    store, config = _store(tmp_path)
    config.override(enabled=False)
    store.mark_active("s1")

    result = store.apply_toggle(ToggleAction.TOGGLE)

    # Effective state was off because of the global flag, so toggle turns the session "on".
    assert result.enabled is True
    assert store.is_enabled_for_session("s1") is False


def test_explicit_on_and_off(tmp_path: Path) -> None:
    store, _ = _store(tmp_path)
    store.mark_active("s1")

    assert store.apply_toggle(ToggleAction.OFF).enabled is False
    assert store.apply_toggle(ToggleAction.OFF).enabled is False
    assert store.apply_toggle(ToggleAction.ON).enabled is True
    assert store.is_enabled_for_session("s1") is True


def test_spoken_memory_and_forget(tmp_path: Path) -> None:
    store, _ = _store(tmp_path)
    store.mark_active("s1")
    store.record_spoken("s1", "m1")
    store.apply_toggle(ToggleAction.OFF)

    assert store.was_spoken("s1", "m1") is True
    assert store.was_spoken("s1", "m2") is False

    store.forget("s1")

    assert store.was_spoken("s1", "m1") is False
    assert store.is_enabled_for_session("s1") is True
    assert store.active_session_id is None
