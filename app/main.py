"""Entry point for the FastAPI-hosted library browser."""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .config import settings
from .database import KeyValueStore, MemoryKeyValueStore, SqlKeyValueStore, StorageError
from .runtime import ClientRuntime
from .services.host import HostCapabilities, HostOutbox
from .services.library_api import LibraryApiClient
from .watch_state import ProfilePreferences, WatchStateStore, key_policy_from_settings
from .web import render_library_page

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


class SearchRequest(BaseModel):
    query: str = ""


class SeriesRequest(BaseModel):
    name: str


class SeasonRequest(BaseModel):
    series: str
    number: int


class PathRequest(BaseModel):
    path: str = Field(min_length=1)


class TitledPathRequest(PathRequest):
    title: str = ""


class ProfileRequest(BaseModel):
    id: str = Field(min_length=1)


def open_store(database_url: str) -> KeyValueStore:
    """Open the persistent store, falling back to memory when it is unusable."""

    try:
        return SqlKeyValueStore(database_url)
    except StorageError as exc:
        logger.warning(
            "Storage unavailable (%s); watch state will not survive a restart", exc
        )
        return MemoryKeyValueStore()


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.media_server_base,
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=5.0),
        )
    )
    store = open_store(settings.storage_url)
    outbox = HostOutbox()
    runtime = ClientRuntime(
        settings,
        LibraryApiClient(settings, http_client),
        WatchStateStore(store, key_policy_from_settings(settings)),
        ProfilePreferences(store),
        HostCapabilities(origin=settings.link_origin, clipboard=outbox, sharer=outbox),
    )

    fastapi_app.state.runtime = runtime
    fastapi_app.state.outbox = outbox
    startup = asyncio.create_task(runtime.start())

    try:
        yield
    finally:
        startup.cancel()
        runtime.shutdown()
        if isinstance(store, SqlKeyValueStore):
            store.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Browse the media library, track watched videos and play them",
        version="1.0.0",
        lifespan=lifespan,
    )
    register_routes(fastapi_app)
    return fastapi_app


def get_runtime(fastapi_app: FastAPI) -> ClientRuntime:
    runtime = getattr(fastapi_app.state, "runtime", None)
    if not isinstance(runtime, ClientRuntime):
        raise RuntimeError("Client runtime not initialised")
    return runtime


def register_routes(fastapi_app: FastAPI) -> None:
    def _response(runtime: ClientRuntime) -> dict[str, Any]:
        outbox = getattr(fastapi_app.state, "outbox", None)
        commands = outbox.drain() if isinstance(outbox, HostOutbox) else []
        return {"view": runtime.view().to_dict(), "commands": commands}

    def _require_known_path(runtime: ClientRuntime, path: str) -> None:
        library = runtime.state.library
        if library is not None and not library.contains_path(path):
            raise HTTPException(status_code=404, detail="Unknown media path")

    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/", response_class=HTMLResponse)
    async def library_page() -> HTMLResponse:
        runtime = get_runtime(fastapi_app)
        return HTMLResponse(render_library_page(settings, runtime.view()))

    @fastapi_app.get("/state")
    async def current_state() -> dict[str, Any]:
        return _response(get_runtime(fastapi_app))

    @fastapi_app.post("/search")
    async def search(payload: SearchRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.search(payload.query)
        return _response(runtime)

    @fastapi_app.post("/series/toggle")
    async def toggle_series(payload: SeriesRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.toggle_series(payload.name)
        return _response(runtime)

    @fastapi_app.post("/seasons/toggle")
    async def toggle_season(payload: SeasonRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.toggle_season(payload.series, payload.number)
        return _response(runtime)

    @fastapi_app.post("/play")
    async def play(payload: TitledPathRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        _require_known_path(runtime, payload.path)
        runtime.play(payload.path, payload.title or payload.path)
        return _response(runtime)

    @fastapi_app.post("/close")
    async def close() -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.close()
        return _response(runtime)

    @fastapi_app.post("/watched/toggle")
    async def toggle_watched(payload: PathRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        _require_known_path(runtime, payload.path)
        runtime.toggle_watched(payload.path)
        return _response(runtime)

    @fastapi_app.post("/profiles/select")
    async def select_profile(payload: ProfileRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        profile = runtime.state.find_profile(payload.id)
        if profile is None:
            raise HTTPException(status_code=404, detail="Profile not found")
        runtime.select_profile(profile)
        return _response(runtime)

    @fastapi_app.post("/profiles/picker")
    async def show_profile_picker() -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.show_profile_picker()
        return _response(runtime)

    @fastapi_app.post("/profiles/picker/dismiss")
    async def dismiss_profile_picker() -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.dismiss_profile_picker()
        return _response(runtime)

    @fastapi_app.post("/copy")
    async def copy_link(payload: PathRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        _require_known_path(runtime, payload.path)
        await runtime.copy_link(payload.path)
        return _response(runtime)

    @fastapi_app.post("/copy/failed")
    async def copy_failed(payload: PathRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        runtime.copy_failed(payload.path)
        return _response(runtime)

    @fastapi_app.post("/share")
    async def share_link(payload: TitledPathRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        _require_known_path(runtime, payload.path)
        await runtime.share_link(payload.path, payload.title or payload.path)
        return _response(runtime)

    @fastapi_app.post("/video/info")
    async def video_info(payload: PathRequest) -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        _require_known_path(runtime, payload.path)
        info = await runtime.video_info(payload.path)
        return {
            "path": payload.path,
            "info": info.model_dump() if info is not None else None,
            "summary": info.summary() if info is not None else None,
        }

    @fastapi_app.post("/library/refresh")
    async def refresh_library() -> dict[str, Any]:
        runtime = get_runtime(fastapi_app)
        await runtime.refresh_library()
        return _response(runtime)


app = create_app()
