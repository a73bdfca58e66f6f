from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from voice_bridge.errors import VoiceConfigError
from voice_bridge.notifications import Notifications
from voice_bridge.voice_config import (
    DEFAULT_OUTPUT_FORMAT,
    ConfigSnapshotManager,
    ConfigSource,
    VoiceConfig,
    VoiceMode,
    load_voice_config,
)


class RecordingNotifier:
    def __init__(self) -> None:
        self.toasts: list[tuple[str, str]] = []

    async def show_toast(self, message: str, variant: str) -> None:
        self.toasts.append((message, variant))


def _write(path: Path, payload: dict | str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")


def _manager(tmp_path: Path, notifier: RecordingNotifier) -> ConfigSnapshotManager:
    return ConfigSnapshotManager(
        tmp_path / "project",
        notifications=Notifications(notifier),
        home=tmp_path / "home",
    )


def test_defaults_are_fully_populated() -> None:
    config = VoiceConfig()

    assert config.enabled is True
    assert config.mode == VoiceMode.CONTINUOUS
    assert config.output_format == "mp3_44100_128"
    assert config.player.cmd == "mpv"
    assert config.player.args == ("--no-terminal", "--force-window=no", "--keep-open=no")
    assert config.max_chars == 3000


def test_camel_case_file_fields_and_nulls() -> None:
    config = VoiceConfig.model_validate(
        {"voiceId": "v", "modelId": None, "mode": "push-to-talk", "player": {"args": []}, "maxChars": 500}
    )

    assert config.voice_id == "v"
    assert config.model_id is None
    assert config.mode == VoiceMode.PUSH_TO_TALK
    assert config.player.cmd == "mpv"
    assert config.player.args == ()
    assert config.max_chars == 500


def test_unsupported_output_format_falls_back() -> None:
    assert VoiceConfig(output_format="pcm_16000").output_format == DEFAULT_OUTPUT_FORMAT
    assert VoiceConfig(output_format="mp3_22050_32").output_format == "mp3_22050_32"


def test_model_id_resolution() -> None:
    assert VoiceConfig().resolve_model_id() == "eleven_turbo_v2_5"
    assert VoiceConfig(language="de").resolve_model_id() == "eleven_multilingual_v2"
    assert VoiceConfig(language="de", model_id="custom").resolve_model_id() == "custom"


def test_project_config_wins_over_global(tmp_path: Path) -> None:
    _write(tmp_path / "project" / ".opencode" / "voice.json", {"voiceId": "project"})
    _write(tmp_path / "home" / ".config" / "opencode" / "voice.json", {"voiceId": "global"})

    loaded = load_voice_config(tmp_path / "project", tmp_path / "home")

    assert loaded.source == ConfigSource.PROJECT
    assert loaded.config.voice_id == "project"


def test_global_config_then_defaults(tmp_path: Path) -> None:
    _write(tmp_path / "home" / ".config" / "opencode" / "voice.json", {"voiceId": "global"})

    assert load_voice_config(tmp_path / "project", tmp_path / "home").source == ConfigSource.GLOBAL
    assert load_voice_config(tmp_path / "project", None).source == ConfigSource.NONE


def test_malformed_file_raises_config_error(tmp_path: Path) -> None:
    _write(tmp_path / "project" / ".opencode" / "voice.json", "{not json")

    with pytest.raises(VoiceConfigError):
        load_voice_config(tmp_path / "project", None)


def test_reload_announces_only_when_fingerprint_changes(tmp_path: Path) -> None:
    config_file = tmp_path / "project" / ".opencode" / "voice.json"
    _write(config_file, {"voiceId": "v"})
    notifier = RecordingNotifier()
    manager = _manager(tmp_path, notifier)

    async def _run() -> None:
        await manager.reload(announce=True)
        await manager.reload(announce=True)
        _write(config_file, {"voiceId": "v", "mode": "push-to-talk"})
        await manager.reload(announce=True)

    asyncio.run(_run())

    assert notifier.toasts == [
        ("Voice config loaded (project). mode=continuous enabled=on", "success"),
        ("Voice config loaded (project). mode=push-to-talk enabled=on", "success"),
    ]
    assert manager.snapshot.mode == VoiceMode.PUSH_TO_TALK


def test_reload_without_announce_is_silent(tmp_path: Path) -> None:
    _write(tmp_path / "project" / ".opencode" / "voice.json", {"voiceId": "v", "outputFormat": "wav"})
    notifier = RecordingNotifier()
    manager = _manager(tmp_path, notifier)

    changed = asyncio.run(manager.reload(announce=False))

    assert changed is True
    assert notifier.toasts == []
    assert manager.snapshot.voice_id == "v"


def test_unsupported_format_warns_on_every_announced_load(tmp_path: Path) -> None:
    _write(tmp_path / "project" / ".opencode" / "voice.json", {"voiceId": "v", "outputFormat": "wav"})
    notifier = RecordingNotifier()
    manager = _manager(tmp_path, notifier)

    async def _run() -> None:
        await manager.reload(announce=True)
        await manager.reload(announce=True)

    asyncio.run(_run())

    warnings = [message for message, variant in notifier.toasts if variant == "warning"]
    assert len(warnings) == 2
    assert "'wav'" in warnings[0]
    assert manager.snapshot.output_format == DEFAULT_OUTPUT_FORMAT


def test_failed_reload_keeps_previous_snapshot(tmp_path: Path) -> None:
    config_file = tmp_path / "project" / ".opencode" / "voice.json"
    _write(config_file, {"voiceId": "v", "mode": "push-to-talk"})
    notifier = RecordingNotifier()
    manager = _manager(tmp_path, notifier)

    async def _run() -> None:
        await manager.reload(announce=False)
        _write(config_file, {"mode": "shouting"})
        await manager.reload(announce=False)

    asyncio.run(_run())

    assert manager.snapshot.voice_id == "v"
    assert manager.snapshot.mode == VoiceMode.PUSH_TO_TALK
    assert notifier.toasts[-1][1] == "error"
    assert notifier.toasts[-1][0].startswith("Voice config error:")


def test_reload_of_non_utf8_file_keeps_previous_snapshot(tmp_path: Path) -> None:
    config_file = tmp_path / "project" / ".opencode" / "voice.json"
    _write(config_file, {"voiceId": "v1"})
    notifier = RecordingNotifier()
    manager = _manager(tmp_path, notifier)

    async def _run() -> None:
        await manager.reload(announce=True)
        config_file.write_bytes(b'{"voiceId": "\xff\xfe"}')
        await manager.reload(announce=True)

    asyncio.run(_run())

    assert manager.snapshot.voice_id == "v1"
    assert notifier.toasts[-1][1] == "error"
    assert notifier.toasts[-1][0].startswith("Voice config error:")
    assert "not valid UTF-8" in notifier.toasts[-1][0]


def test_load_rejects_non_utf8_file(tmp_path: Path) -> None:
    config_file = tmp_path / "project" / ".opencode" / "voice.json"
    config_file.parent.mkdir(parents=True)
    config_file.write_bytes(b"\xff\xfe{}")

    with pytest.raises(VoiceConfigError, match="not valid UTF-8"):
        load_voice_config(tmp_path / "project", None)


def test_override_replaces_snapshot_without_mutating_old_one(tmp_path: Path) -> None:
    manager = _manager(tmp_path, RecordingNotifier())
    before = manager.snapshot

    after = manager.override(enabled=False)

    assert before.enabled is True
    assert after.enabled is False
    assert manager.snapshot is after


def test_is_config_path_matches_both_locations(tmp_path: Path) -> None:
    manager = _manager(tmp_path, RecordingNotifier())
    project_file = tmp_path / "project" / ".opencode" / "voice.json"
    global_file = tmp_path / "home" / ".config" / "opencode" / "voice.json"

    assert manager.is_config_path(str(project_file))
    assert manager.is_config_path(str(global_file))
    assert manager.is_config_path(".opencode/voice.json")
    assert manager.is_config_path(".opencode\\voice.json")
    assert not manager.is_config_path(str(tmp_path / "project" / "voice.json"))
