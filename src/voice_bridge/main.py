"""CLI entrypoint for the voice bridge."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx
import typer
from rich import print

from voice_bridge.adapters import (
    ElevenLabsSynthesizer,
    OpencodeMessageSource,
    OpencodeToastNotifier,
    SubprocessAudioPlayer,
    SynthesisRequest,
)
from voice_bridge.bridge import VoiceBridge
from voice_bridge.config import settings
from voice_bridge.errors import VoiceConfigError, VoiceError
from voice_bridge.notifications import LoggingNotifier, Notifications
from voice_bridge.telemetry import configure_logging
from voice_bridge.text import effective_max_chars, sanitize, truncate
from voice_bridge.voice_config import ConfigSnapshotManager

app = typer.Typer(help="Speak assistant replies aloud via ElevenLabs")

logger = logging.getLogger("voice_bridge.main")


def _config_manager(project_root: Path) -> ConfigSnapshotManager:
    return ConfigSnapshotManager(
        project_root,
        notifications=Notifications(LoggingNotifier()),
        home=settings.home,
    )


@app.callback()
def main(log_level: str = typer.Option(None, help="Override VOICE_BRIDGE_LOG_LEVEL")) -> None:
    configure_logging(log_level or settings.log_level)


@app.command()
def status(project_root: Path = typer.Option(Path("."), help="Project whose .opencode/voice.json is used")) -> None:
    """Show the resolved voice configuration."""
    manager = _config_manager(project_root)
    asyncio.run(manager.reload(announce=False))
    snapshot = manager.snapshot
    project_path, global_path = manager.config_paths()
    print(
        {
            "source": manager.source.value,
            "project_config": str(project_path),
            "global_config": str(global_path) if global_path else None,
            "config": snapshot.model_dump(mode="json", by_alias=True),
            "resolved_model_id": snapshot.resolve_model_id(),
            "api_key_configured": bool(settings.elevenlabs_api_key),
            "fingerprint": manager.fingerprint,
        }
    )


@app.command()
def say(
    text: str = typer.Argument(..., help="Text to speak"),
    project_root: Path = typer.Option(Path("."), help="Project whose .opencode/voice.json is used"),
) -> None:
    """Speak arbitrary text with the configured voice and player."""

    async def _run() -> dict:
        manager = _config_manager(project_root)
        await manager.reload(announce=False)
        config = manager.snapshot
        if not settings.elevenlabs_api_key:
            raise VoiceConfigError("Missing ELEVENLABS_API_KEY")
        if not config.voice_id:
            raise VoiceConfigError("Missing voiceId in voice.json")

        payload = truncate(sanitize(text), effective_max_chars(config.max_chars))
        if not payload.text:
            return {"spoken": False, "reason": "nothing to speak"}

        audio = await ElevenLabsSynthesizer(base_url=settings.elevenlabs_base_url).synthesize(
            SynthesisRequest(
                api_key=settings.elevenlabs_api_key,
                voice_id=config.voice_id,
                text=payload.text,
                model_id=config.resolve_model_id(),
                output_format=config.output_format,
            )
        )
        await SubprocessAudioPlayer(settings.temp_dir).play(audio, config.player)
        return {"spoken": True, "chars": len(payload.text), "truncated": payload.truncated}

    try:
        result = asyncio.run(_run())
    except VoiceError as exc:
        print({"error": str(exc)})
        raise typer.Exit(code=1)
    print(result)


def _http_transport() -> httpx.AsyncBaseTransport | None:
    """Transport shared by the host and ElevenLabs clients; None uses the network."""
    return None


@app.command()
def listen(
    project_root: Path = typer.Option(Path("."), help="Project whose .opencode/voice.json is used"),
    host_url: str = typer.Option(None, help="Host API base URL (defaults to VOICE_BRIDGE_HOST_URL)"),
) -> None:
    """Read newline-delimited JSON host events from stdin and react to them."""

    async def _run() -> dict:
        handled = 0
        failed = 0
        pending: set[asyncio.Task[None]] = set()

        def _finished(task: asyncio.Task[None]) -> None:
            nonlocal failed
            pending.discard(task)
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                failed += 1
                logger.error("event_failed", exc_info=exc)

        transport = _http_transport()
        base_url = host_url or settings.host_url
        async with httpx.AsyncClient(base_url=base_url, timeout=10.0, transport=transport) as client:
            bridge = await VoiceBridge.create(
                project_root,
                message_source=OpencodeMessageSource(client),
                notifier=OpencodeToastNotifier(client),
                synthesizer=ElevenLabsSynthesizer(base_url=settings.elevenlabs_base_url, transport=transport),
                settings=settings,
            )
            while True:
                line = await asyncio.to_thread(sys.stdin.readline)
                if not line:
                    break
                line = line.strip()
                if not line:
                    continue
                try:
                    event = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("event_not_json", extra={"line": line[:200]})
                    continue
                if not isinstance(event, dict):
                    continue

                # Events keep flowing while a speak pipeline is suspended.
                task = asyncio.create_task(bridge.handle_event(event))
                pending.add(task)
                task.add_done_callback(_finished)
                handled += 1

            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
        return {"events_handled": handled, "events_failed": failed}

    print(asyncio.run(_run()))


if __name__ == "__main__":
    app()
