"""Host environment capabilities: clipboard, native share and timers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class Clipboard(Protocol):
    async def write_text(self, text: str) -> bool: ...


class Sharer(Protocol):
    async def share(self, payload: dict[str, str]) -> bool: ...


class UnavailableClipboard:
    """Clipboard variant for hosts without clipboard access."""

    async def write_text(self, text: str) -> bool:
        return False


class UnavailableSharer:
    """Share variant for hosts without a native share sheet."""

    async def share(self, payload: dict[str, str]) -> bool:
        return False


class HostOutbox:
    """Clipboard and share requests relayed to the browser page.

    The host shell renders in a browser that owns the real clipboard and
    share sheet, so accepted requests are queued here and handed to the
    page with the next action response.
    """

    def __init__(self) -> None:
        self._commands: list[dict[str, Any]] = []

    async def write_text(self, text: str) -> bool:
        self._commands.append({"type": "clipboard", "text": text})
        return True

    async def share(self, payload: dict[str, str]) -> bool:
        self._commands.append({"type": "share", **payload})
        return True

    def drain(self) -> list[dict[str, Any]]:
        commands, self._commands = self._commands, []
        return commands


@dataclass(slots=True)
class HostCapabilities:
    """Capabilities resolved once at startup."""

    origin: str
    clipboard: Clipboard = field(default_factory=UnavailableClipboard)
    sharer: Sharer = field(default_factory=UnavailableSharer)

    @property
    def can_copy(self) -> bool:
        return not isinstance(self.clipboard, UnavailableClipboard)

    @property
    def can_share(self) -> bool:
        return not isinstance(self.sharer, UnavailableSharer)

    async def copy(self, text: str) -> bool:
        """Copy ``text``; any failure reads as ``False``."""

        if not self.can_copy:
            return False
        try:
            return bool(await self.clipboard.write_text(text))
        except Exception as exc:
            logger.info("Clipboard write failed: %s", exc)
            return False

    async def share(self, *, title: str, url: str) -> bool:
        """Open the native share sheet; absence is a silent no-op."""

        if not self.can_share:
            return False
        payload = {"title": title, "text": f"Watch: {title}", "url": url}
        try:
            return bool(await self.sharer.share(payload))
        except Exception as exc:
            logger.info("Share was cancelled or failed: %s", exc)
            return False


class TimerHandle(Protocol):
    def cancel(self) -> Any: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class LoopScheduler:
    """Scheduler backed by the running asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class CopiedMarkerTimer:
    """Keeps at most one pending marker clear alive."""

    def __init__(self, scheduler: Scheduler | None = None):
        self._scheduler = scheduler or LoopScheduler()
        self._pending: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Supersede any pending clear with a fresh one."""

        if self._pending is not None:
            logger.debug("Superseding pending copied-marker clear")
            self._pending.cancel()

        def _fire() -> None:
            self._pending = None
            callback()

        self._pending = self._scheduler.call_later(delay, _fire)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
