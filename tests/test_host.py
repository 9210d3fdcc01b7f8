"""Host capability and copied-marker timer behaviour."""

from __future__ import annotations

import pytest

from app.services.host import CopiedMarkerTimer, HostCapabilities, HostOutbox


class RaisingClipboard:
    async def write_text(self, text: str) -> bool:
        raise PermissionError("denied")


def test_timer_supersedes_pending_clear(scheduler) -> None:
    fired: list[str] = []
    timer = CopiedMarkerTimer(scheduler)

    timer.schedule(2.0, lambda: fired.append("first"))
    timer.schedule(2.0, lambda: fired.append("second"))

    assert scheduler.handles[0].cancelled is True
    assert len(scheduler.live()) == 1
    scheduler.fire_all()
    assert fired == ["second"]
    assert timer.pending is False


def test_timer_cancel_drops_pending_clear(scheduler) -> None:
    timer = CopiedMarkerTimer(scheduler)
    timer.schedule(2.0, lambda: None)
    timer.cancel()

    assert scheduler.live() == []
    assert timer.pending is False


@pytest.mark.anyio("asyncio")
async def test_unavailable_capabilities_are_silent() -> None:
    host = HostCapabilities(origin="https://tv.example.com")

    assert host.can_copy is False
    assert host.can_share is False
    assert await host.copy("https://tv.example.com/video/film") is False
    assert await host.share(title="Film", url="https://tv.example.com/video/film") is False


@pytest.mark.anyio("asyncio")
async def test_failing_clipboard_reads_as_false() -> None:
    host = HostCapabilities(origin="https://tv.example.com", clipboard=RaisingClipboard())

    assert await host.copy("anything") is False


@pytest.mark.anyio("asyncio")
async def test_outbox_relays_requests_once() -> None:
    outbox = HostOutbox()
    host = HostCapabilities(origin="https://tv.example.com", clipboard=outbox, sharer=outbox)

    assert await host.copy("https://tv.example.com/video/film") is True
    assert await host.share(title="Film", url="https://tv.example.com/video/film") is True

    assert outbox.drain() == [
        {"type": "clipboard", "text": "https://tv.example.com/video/film"},
        {
            "type": "share",
            "title": "Film",
            "text": "Watch: Film",
            "url": "https://tv.example.com/video/film",
        },
    ]
    assert outbox.drain() == []
