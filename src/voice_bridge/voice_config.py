"""Loading, fingerprinting, and hot-swapping of the ``voice.json`` configuration."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from voice_bridge.errors import VoiceConfigError
from voice_bridge.notifications import Notifications

DEFAULT_OUTPUT_FORMAT = "mp3_44100_128"
DEFAULT_PLAYER_CMD = "mpv"
DEFAULT_PLAYER_ARGS = ("--no-terminal", "--force-window=no", "--keep-open=no")
DEFAULT_MAX_CHARS = 3000

DEFAULT_MODEL_ID = "eleven_turbo_v2_5"
MULTILINGUAL_MODEL_ID = "eleven_multilingual_v2"

PROJECT_CONFIG_PATH = Path(".opencode") / "voice.json"
GLOBAL_CONFIG_PATH = Path(".config") / "opencode" / "voice.json"

_MP3_FORMAT_RE = re.compile(r"^mp3_\d+_\d+$")


class VoiceMode(str, Enum):
    """When assistant replies are spoken."""

    CONTINUOUS = "continuous"
    PUSH_TO_TALK = "push-to-talk"


class ConfigSource(str, Enum):
    PROJECT = "project"
    GLOBAL = "global"
    NONE = "none"


def is_supported_output_format(output_format: str) -> bool:
    """Only mp3 codecs are accepted; the player receives ``.mp3`` files."""
    return bool(_MP3_FORMAT_RE.match(output_format))


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
        protected_namespaces=(),
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class PlayerConfig(_ConfigModel):
    cmd: str = DEFAULT_PLAYER_CMD
    args: tuple[str, ...] = DEFAULT_PLAYER_ARGS


class VoiceConfig(_ConfigModel):
    """Immutable configuration snapshot with every field populated."""

    enabled: bool = True
    mode: VoiceMode = VoiceMode.CONTINUOUS
    language: str | None = None
    voice_id: str | None = None
    model_id: str | None = None
    output_format: str = DEFAULT_OUTPUT_FORMAT
    player: PlayerConfig = Field(default_factory=PlayerConfig)
    max_chars: int = DEFAULT_MAX_CHARS

    @field_validator("output_format")
    @classmethod
    def _fallback_output_format(cls, value: str) -> str:
        return value if is_supported_output_format(value) else DEFAULT_OUTPUT_FORMAT

    def resolve_model_id(self) -> str:
        if self.model_id:
            return self.model_id
        return MULTILINGUAL_MODEL_ID if self.language else DEFAULT_MODEL_ID


@dataclass(frozen=True, slots=True)
class LoadedVoiceConfig:
    config: VoiceConfig
    source: ConfigSource
    path: Path | None = None
    requested_output_format: str | None = None

    @property
    def unsupported_output_format(self) -> bool:
        return self.requested_output_format is not None and not is_supported_output_format(
            self.requested_output_format
        )


def config_paths(project_root: Path, home: Path | None) -> tuple[Path, Path | None]:
    """Return the project-scoped and user-global ``voice.json`` locations."""
    global_path = home / GLOBAL_CONFIG_PATH if home else None
    return project_root / PROJECT_CONFIG_PATH, global_path


def load_voice_config(project_root: Path, home: Path | None) -> LoadedVoiceConfig:
    """Read the first existing config file: project, then global, else defaults."""
    project_path, global_path = config_paths(project_root, home)
    for source, path in ((ConfigSource.PROJECT, project_path), (ConfigSource.GLOBAL, global_path)):
        if path is not None and path.exists():
            return _parse_config_file(path, source)
    return LoadedVoiceConfig(config=VoiceConfig(), source=ConfigSource.NONE)


def _parse_config_file(path: Path, source: ConfigSource) -> LoadedVoiceConfig:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise VoiceConfigError(f"Unable to read {path}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise VoiceConfigError(f"{path} is not valid UTF-8: {exc.reason}") from exc
    except json.JSONDecodeError as exc:
        raise VoiceConfigError(f"{path} is not valid JSON: {exc.msg} (line {exc.lineno})") from exc

    if not isinstance(raw, dict):
        raise VoiceConfigError(f"{path} must contain a JSON object")

    try:
        config = VoiceConfig.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(item) for item in first.get("loc", ()))
        raise VoiceConfigError(f"Invalid {location or 'value'} in {path}: {first.get('msg')}") from exc

    requested = raw.get("outputFormat")
    return LoadedVoiceConfig(
        config=config,
        source=source,
        path=path,
        requested_output_format=requested if isinstance(requested, str) else None,
    )


def voice_config_fingerprint(loaded: LoadedVoiceConfig) -> str:
    payload = {
        "source": loaded.source.value,
        "config": loaded.config.model_dump(mode="json", by_alias=True),
    }
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


def _normalize_path(path: str | Path) -> str:
    return os.path.normpath(str(path).replace("\\", "/")).replace("\\", "/")


class ConfigSnapshotManager:
    """Owns the current config snapshot and swaps it atomically on reload."""

    def __init__(
        self,
        project_root: str | Path,
        *,
        notifications: Notifications,
        home: Path | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._project_root = Path(os.path.abspath(project_root))
        self._home = home
        self._notifications = notifications
        self._logger = logger or logging.getLogger("voice_bridge.voice_config")

        self._snapshot = VoiceConfig()
        self._source = ConfigSource.NONE
        self._fingerprint: str | None = None

    @property
    def snapshot(self) -> VoiceConfig:
        return self._snapshot

    @property
    def source(self) -> ConfigSource:
        return self._source

    @property
    def fingerprint(self) -> str | None:
        return self._fingerprint

    @property
    def project_root(self) -> Path:
        return self._project_root

    def config_paths(self) -> tuple[Path, Path | None]:
        return config_paths(self._project_root, self._home)

    def is_config_path(self, candidate: str) -> bool:
        """Whether a watcher-reported file is one of the two config locations."""
        target = Path(candidate.replace("\\", "/"))
        if not target.is_absolute():
            target = self._project_root / target
        normalized = _normalize_path(target)
        return any(path is not None and _normalize_path(path) == normalized for path in self.config_paths())

    async def reload(self, *, announce: bool) -> bool:
        """Reload from disk; returns True when the effective config changed.

        A failed load keeps the previous snapshot in place.
        """
        try:
            loaded = await asyncio.to_thread(load_voice_config, self._project_root, self._home)
        except VoiceConfigError as exc:
            self._logger.warning("config_reload_failed", extra={"error": str(exc)})
            await self._notifications.error(f"Voice config error: {exc}")
            return False

        fingerprint = voice_config_fingerprint(loaded)
        changed = fingerprint != self._fingerprint
        self._snapshot = loaded.config
        self._source = loaded.source
        self._fingerprint = fingerprint
        self._logger.info(
            "config_reloaded",
            extra={"source": loaded.source.value, "path": str(loaded.path or ""), "changed": changed},
        )

        if announce and changed:
            await self._notifications.success(
                f"Voice config loaded ({loaded.source.value}). "
                f"mode={loaded.config.mode.value} enabled={'on' if loaded.config.enabled else 'off'}"
            )
        if announce and loaded.unsupported_output_format:
            await self._notifications.warning(
                f"Voice outputFormat '{loaded.requested_output_format}' is not supported; "
                f"using {DEFAULT_OUTPUT_FORMAT}"
            )
        return changed

    def override(self, **changes: Any) -> VoiceConfig:
        """Swap in a runtime-modified copy of the current snapshot."""
        self._snapshot = self._snapshot.model_copy(update=changes)
        self._logger.info("config_overridden", extra={"changes": {k: str(v) for k, v in changes.items()}})
        return self._snapshot
