"""Audio playback through an external player executable (``mpv`` by default)."""

from __future__ import annotations

import asyncio
import logging
import shlex
import time
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

from voice_bridge.errors import PlaybackError

from .interfaces import AudioPlayer, PlayerResult

if TYPE_CHECKING:
    from voice_bridge.voice_config import PlayerConfig

PlayerRunner = Callable[[Sequence[str]], Awaitable[PlayerResult]]


async def run_player_process(argv: Sequence[str]) -> PlayerResult:
    """Run the player quietly and wait for it to exit."""
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise PlaybackError(f"Player command not found: {argv[0]}") from exc
    _, stderr = await process.communicate()
    return PlayerResult(
        exit_code=process.returncode if process.returncode is not None else -1,
        stderr=(stderr or b"").decode("utf-8", errors="replace"),
    )


class SubprocessAudioPlayer(AudioPlayer):
    """Writes audio to a temp file and hands its path to the configured player."""

    def __init__(
        self,
        temp_dir: str | Path,
        *,
        runner: PlayerRunner = run_player_process,
        logger: logging.Logger | None = None,
    ) -> None:
        self._temp_dir = Path(temp_dir)
        self._runner = runner
        self._logger = logger or logging.getLogger("voice_bridge.adapters.player")

    def _temp_path(self) -> Path:
        return self._temp_dir / f"voice-bridge-{int(time.time() * 1000)}-{uuid4().hex[:12]}.mp3"

    async def play(self, audio: bytes, player: PlayerConfig) -> None:
        command = shlex.split(player.cmd) if player.cmd else []
        if not command:
            raise PlaybackError("Missing player.cmd")

        file_path = self._temp_path()
        await asyncio.to_thread(file_path.write_bytes, audio)
        try:
            result = await self._runner([*command, *player.args, str(file_path)])
        finally:
            await self._remove(file_path)

        if result.exit_code != 0:
            self._logger.warning("playback_failed", extra={"exit_code": result.exit_code, "cmd": command[0]})
            raise PlaybackError(result.stderr.strip() or f"Player exited with code {result.exit_code}")

    async def _remove(self, file_path: Path) -> None:
        try:
            await asyncio.to_thread(file_path.unlink, missing_ok=True)
        except OSError:
            self._logger.debug("temp_audio_cleanup_failed", extra={"file": str(file_path)}, exc_info=True)
