"""Text-to-speech backend powered by the ElevenLabs HTTP API."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from voice_bridge.errors import SynthesisError

from .interfaces import SpeechSynthesizer, SynthesisRequest

DEFAULT_BASE_URL = "https://api.elevenlabs.io"


class ElevenLabsSynthesizer(SpeechSynthesizer):
    """Calls the streaming text-to-speech endpoint and buffers the full response."""

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        transport: httpx.AsyncBaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport
        self._logger = logger or logging.getLogger("voice_bridge.adapters.elevenlabs")

    async def synthesize(self, request: SynthesisRequest) -> bytes:
        url = f"{self._base_url}/v1/text-to-speech/{quote(request.voice_id, safe='')}/stream"
        headers = {
            "Content-Type": "application/json",
            "xi-api-key": request.api_key,
            "Accept": "audio/mpeg",
        }
        body = {"text": request.text, "model_id": request.model_id}

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.post(
                    url,
                    params={"output_format": request.output_format},
                    headers=headers,
                    json=body,
                )
        except httpx.HTTPError as exc:
            raise SynthesisError(f"ElevenLabs request failed: {exc}") from exc

        if not response.is_success:
            detail = response.text.strip()
            raise SynthesisError(
                detail or f"ElevenLabs request failed: {response.status_code} {response.reason_phrase}"
            )

        self._logger.info(
            "tts_succeeded",
            extra={"model_id": request.model_id, "chars": len(request.text), "audio_bytes": len(response.content)},
        )
        return response.content
