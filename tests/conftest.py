"""Pytest configuration and test helpers."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest


# Ensure the application package is importable when running tests without an
# editable install. This mirrors the expected runtime layout where ``app`` sits
# at the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


LIBRARY_PAYLOAD: dict[str, Any] = {
    "series": [
        {
            "name": "show",
            "displayName": "The Show",
            "seasons": [
                {
                    "number": 1,
                    "episodes": [
                        {"path": "show/s1e1", "filename": "Ep1", "episode": 1},
                    ],
                }
            ],
        }
    ],
    "movies": [{"name": "Film", "path": "film"}],
}

PROFILES_PAYLOAD: list[dict[str, str]] = [
    {"id": "a", "name": "Alex", "icon": "🦊"},
    {"id": "b", "name": "Blair", "icon": "🐢"},
]


class FakeHandle:
    def __init__(self, delay: float, callback: Callable[[], None]):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Scheduler that only fires callbacks when a test asks it to."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    def live(self) -> list[FakeHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def fire_all(self) -> None:
        for handle in self.live():
            handle.cancelled = True
            handle.callback()


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO tests to run on asyncio without requiring trio."""

    return "asyncio"


@pytest.fixture
def library_payload() -> dict[str, Any]:
    return LIBRARY_PAYLOAD


@pytest.fixture
def profiles_payload() -> list[dict[str, str]]:
    return PROFILES_PAYLOAD


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
