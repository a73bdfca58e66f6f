"""Host adapters talking to a running opencode server over HTTP."""

from __future__ import annotations

from collections.abc import Sequence
from urllib.parse import quote

import httpx

from voice_bridge.models import Message

from .interfaces import MessageSource, Notifier


class OpencodeMessageSource(MessageSource):
    """Fetches session history from ``GET /session/{id}/message``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def list_messages(self, session_id: str, *, limit: int) -> Sequence[Message]:
        response = await self._client.get(f"/session/{quote(session_id, safe='')}/message", params={"limit": limit})
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            return []
        messages = [Message.from_payload(item) for item in payload if isinstance(item, dict)]
        return [message for message in messages if message is not None]


class OpencodeToastNotifier(Notifier):
    """Shows toasts through ``POST /tui/show-toast``."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def show_toast(self, message: str, variant: str) -> None:
        response = await self._client.post("/tui/show-toast", json={"message": message, "variant": variant})
        response.raise_for_status()
