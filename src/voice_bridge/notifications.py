"""User-facing toast notifications."""

from __future__ import annotations

import logging
from enum import Enum

from voice_bridge.adapters.interfaces import Notifier


class ToastVariant(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


_LOG_LEVELS = {
    ToastVariant.INFO: logging.INFO,
    ToastVariant.SUCCESS: logging.INFO,
    ToastVariant.WARNING: logging.WARNING,
    ToastVariant.ERROR: logging.ERROR,
}


class Notifications:
    """Best-effort toast dispatch; a failing notifier never escalates."""

    def __init__(self, notifier: Notifier, *, logger: logging.Logger | None = None) -> None:
        self._notifier = notifier
        self._logger = logger or logging.getLogger("voice_bridge.notifications")

    async def show(self, message: str, variant: ToastVariant = ToastVariant.INFO) -> None:
        self._logger.log(_LOG_LEVELS[variant], "toast: %s", message, extra={"variant": variant.value})
        try:
            await self._notifier.show_toast(message, variant.value)
        except Exception:  # noqa: BLE001 - toast delivery is best effort.
            self._logger.debug("toast_dispatch_failed", exc_info=True)

    async def info(self, message: str) -> None:
        await self.show(message, ToastVariant.INFO)

    async def success(self, message: str) -> None:
        await self.show(message, ToastVariant.SUCCESS)

    async def warning(self, message: str) -> None:
        await self.show(message, ToastVariant.WARNING)

    async def error(self, message: str) -> None:
        await self.show(message, ToastVariant.ERROR)


class LoggingNotifier:
    """Notifier for headless runs: toasts only go to the log."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("voice_bridge.toast")

    async def show_toast(self, message: str, variant: str) -> None:
        self._logger.debug("toast_suppressed", extra={"toast": message, "variant": variant})
