"""End-to-end runtime behaviour against mocked network and storage."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import httpx
import pytest

from app.config import Settings
from app.database import MemoryKeyValueStore
from app.runtime import ClientRuntime
from app.services.host import CopiedMarkerTimer, HostCapabilities, HostOutbox
from app.services.library_api import LibraryApiClient
from app.watch_state import GlobalKey, ProfilePreferences, WatchStateStore


def mock_backend(
    library_payload: Any, profiles_payload: Any, *, fail: set[str] | None = None
) -> httpx.MockTransport:
    failing = fail or set()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path in failing:
            return httpx.Response(500, json={"error": "broken"})
        if request.url.path == "/api/library":
            return httpx.Response(200, json=library_payload)
        if request.url.path == "/api/profiles":
            return httpx.Response(200, json=profiles_payload)
        return httpx.Response(404)

    return httpx.MockTransport(handler)


def build_runtime(
    transport: httpx.MockTransport,
    *,
    store: MemoryKeyValueStore | None = None,
    scheduler=None,
    outbox: HostOutbox | None = None,
    global_scope: bool = False,
    **overrides: Any,
) -> tuple[httpx.AsyncClient, ClientRuntime, MemoryKeyValueStore]:
    settings = Settings(_env_file=None, PUBLIC_ORIGIN="https://tv.example.com", **overrides)
    backing = store if store is not None else MemoryKeyValueStore()
    http_client = httpx.AsyncClient(transport=transport, base_url="https://media.example.com")
    host = HostCapabilities(origin=settings.link_origin)
    if outbox is not None:
        host = HostCapabilities(origin=settings.link_origin, clipboard=outbox, sharer=outbox)
    runtime = ClientRuntime(
        settings,
        LibraryApiClient(settings, http_client),
        WatchStateStore(backing, GlobalKey() if global_scope else None),
        ProfilePreferences(backing),
        host,
        marker_timer=CopiedMarkerTimer(scheduler) if scheduler is not None else None,
    )
    return http_client, runtime, backing


@pytest.mark.anyio("asyncio")
async def test_startup_activates_first_profile_and_persists_it(
    library_payload, profiles_payload
) -> None:
    http_client, runtime, store = build_runtime(mock_backend(library_payload, profiles_payload))
    async with http_client:
        await runtime.start()

    assert runtime.state.status == "ready"
    assert runtime.state.active_profile_id == "a"
    assert store.get("current_profile_id") == "a"


@pytest.mark.anyio("asyncio")
async def test_startup_restores_remembered_profile_and_watch_set(
    library_payload, profiles_payload
) -> None:
    store = MemoryKeyValueStore(
        {"current_profile_id": "b", "watched_videos_b": json.dumps(["film"])}
    )
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload), store=store
    )
    async with http_client:
        await runtime.start()

    assert runtime.state.active_profile_id == "b"
    assert runtime.state.watched == frozenset({"film"})
    assert runtime.state.picker_visible is False


@pytest.mark.anyio("asyncio")
async def test_library_failure_shows_error_while_profiles_still_resolve(
    library_payload, profiles_payload
) -> None:
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload, fail={"/api/library"})
    )
    async with http_client:
        await runtime.start()

    assert runtime.state.status == "error"
    assert runtime.state.library is None
    assert runtime.state.active_profile_id == "a"
    assert runtime.view().status == "error"


@pytest.mark.anyio("asyncio")
async def test_profile_failure_does_not_block_library(library_payload, profiles_payload) -> None:
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload, fail={"/api/profiles"})
    )
    async with http_client:
        await runtime.start()

    assert runtime.state.library is not None
    assert runtime.state.profiles_error is not None
    assert runtime.state.active_profile is None


@pytest.mark.anyio("asyncio")
async def test_switching_profiles_round_trips_watch_sets(
    library_payload, profiles_payload
) -> None:
    http_client, runtime, store = build_runtime(mock_backend(library_payload, profiles_payload))
    async with http_client:
        await runtime.start()

    alex, blair = runtime.state.profiles
    runtime.play("film", "Film")
    runtime.toggle_watched("show/s1e1")
    before = runtime.state.watched

    runtime.select_profile(blair)
    assert runtime.state.watched == frozenset()
    runtime.play("show/s1e1", "Ep1")

    runtime.select_profile(alex)
    assert runtime.state.watched == before
    assert json.loads(store.get("watched_videos_b") or "[]") == ["show/s1e1"]
    assert store.get("current_profile_id") == "a"


@pytest.mark.anyio("asyncio")
async def test_global_scope_shares_watch_set(library_payload, profiles_payload) -> None:
    http_client, runtime, store = build_runtime(
        mock_backend(library_payload, profiles_payload), global_scope=True
    )
    async with http_client:
        await runtime.start()

    runtime.play("film", "Film")
    runtime.select_profile(runtime.state.profiles[1])

    assert runtime.state.watched == frozenset({"film"})
    assert json.loads(store.get("watched_videos") or "[]") == ["film"]


@pytest.mark.anyio("asyncio")
async def test_navigation_survives_library_refresh(library_payload, profiles_payload) -> None:
    http_client, runtime, _ = build_runtime(mock_backend(library_payload, profiles_payload))
    async with http_client:
        await runtime.start()
        runtime.search("The")
        runtime.toggle_series("show")
        runtime.toggle_series("vanished")
        await runtime.refresh_library()

    view = runtime.view()
    assert view.search_query == "the"
    assert [series.name for series in view.series] == ["show"]
    assert view.series[0].expanded is True
    assert view.movies == ()


@pytest.mark.anyio("asyncio")
async def test_listeners_observe_every_transition(library_payload, profiles_payload) -> None:
    http_client, runtime, _ = build_runtime(mock_backend(library_payload, profiles_payload))
    seen: list[str] = []
    unsubscribe = runtime.subscribe(lambda state: seen.append(state.status))
    async with http_client:
        await runtime.start()
    unsubscribe()
    runtime.search("x")

    assert seen[0] == "loading"
    assert seen[-1] == "ready"
    assert runtime.state.navigation.search_query == "x"
    assert len(seen) >= 3


@pytest.mark.anyio("asyncio")
async def test_copy_marker_clears_and_is_superseded(
    library_payload, profiles_payload, scheduler
) -> None:
    outbox = HostOutbox()
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload), scheduler=scheduler, outbox=outbox
    )
    async with http_client:
        await runtime.start()

    await runtime.copy_link("film")
    assert runtime.state.copied_path == "film"
    assert outbox.drain() == [
        {"type": "clipboard", "text": "https://tv.example.com/video/film"}
    ]
    assert [handle.delay for handle in scheduler.live()] == [2.0]

    await runtime.copy_link("show/s1e1")
    assert runtime.state.copied_path == "show/s1e1"
    assert scheduler.handles[0].cancelled is True
    assert len(scheduler.live()) == 1

    scheduler.fire_all()
    assert runtime.state.copied_path is None


@pytest.mark.anyio("asyncio")
async def test_copy_marker_clears_on_the_event_loop(library_payload, profiles_payload) -> None:
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload),
        outbox=HostOutbox(),
        COPIED_MARKER_SECONDS=0.01,
    )
    async with http_client:
        await runtime.start()

    await runtime.copy_link("film")
    assert runtime.state.copied_path == "film"
    await asyncio.sleep(0.05)
    assert runtime.state.copied_path is None


@pytest.mark.anyio("asyncio")
async def test_copy_without_clipboard_has_no_visible_effect(
    library_payload, profiles_payload, scheduler
) -> None:
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload), scheduler=scheduler
    )
    async with http_client:
        await runtime.start()

    await runtime.copy_link("film")
    await runtime.share_link("film", "Film")

    assert runtime.state.copied_path is None
    assert scheduler.handles == []


@pytest.mark.anyio("asyncio")
async def test_adaptive_mode_plays_manifest(library_payload, profiles_payload) -> None:
    http_client, runtime, _ = build_runtime(
        mock_backend(library_payload, profiles_payload), DELIVERY_MODE="adaptive"
    )
    async with http_client:
        await runtime.start()

    runtime.play("show/s1e1", "Ep1")
    player = runtime.view().player

    assert player is not None
    assert player.url == "/hls/show/s1e1/playlist.m3u8"
    assert player.mode == "adaptive"


@pytest.mark.anyio("asyncio")
async def test_failing_listener_does_not_skip_profile_switch_effects(
    library_payload, profiles_payload
) -> None:
    http_client, runtime, store = build_runtime(mock_backend(library_payload, profiles_payload))
    async with http_client:
        await runtime.start()

    blair = runtime.state.profiles[1]
    store.set("watched_videos_b", json.dumps(["show/s1e1"]))

    def broken(_state) -> None:
        raise RuntimeError("listener exploded")

    runtime.subscribe(broken)
    runtime.play("film", "Film")
    runtime.select_profile(blair)

    assert json.loads(store.get("watched_videos_a") or "[]") == ["film"]
    assert store.get("current_profile_id") == "b"
    assert runtime.state.active_profile_id == "b"
    assert runtime.state.watched == frozenset({"show/s1e1"})
