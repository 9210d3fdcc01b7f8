"""Event loop glue between the reducer, storage, network and host."""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Coroutine

from .config import Settings
from .models import Profile, VideoInfo
from .playback import PlaybackUrls, absolute_link
from .services.host import CopiedMarkerTimer, HostCapabilities
from .services.library_api import FetchError, LibraryApiClient
from .state import (
    ClientState,
    CopiedMarkerExpired,
    CopyToClipboard,
    Effect,
    Event,
    LibraryFailed,
    LibraryLoaded,
    LinkCopied,
    LinkCopyFailed,
    LinkCopyRequested,
    LinkShareRequested,
    LoadWatchSet,
    PersistActiveProfile,
    PlaybackClosed,
    PlaybackStarted,
    ProfilePickerDismissed,
    ProfilePickerShown,
    ProfileSelected,
    ProfilesFailed,
    ProfilesLoaded,
    SaveWatchSet,
    ScheduleMarkerClear,
    SearchChanged,
    SeasonToggled,
    SeriesToggled,
    SessionStarted,
    ShareLink,
    WatchSetLoaded,
    WatchedToggled,
    reduce,
)
from .view import LibraryView, render_state
from .watch_state import ProfilePreferences, WatchStateStore

logger = logging.getLogger(__name__)

Listener = Callable[[ClientState], None]


class ClientRuntime:
    """Owns the client state and executes the effects the reducer requests.

    Events are processed strictly one at a time: an event dispatched while
    another is being handled (for example ``WatchSetLoaded`` raised by a
    ``LoadWatchSet`` effect) is queued and handled once the current event's
    effects have run.
    """

    def __init__(
        self,
        settings: Settings,
        api: LibraryApiClient,
        watch_store: WatchStateStore,
        preferences: ProfilePreferences,
        host: HostCapabilities,
        *,
        marker_timer: CopiedMarkerTimer | None = None,
    ) -> None:
        self._settings = settings
        self._api = api
        self._watch_store = watch_store
        self._preferences = preferences
        self._host = host
        self._timer = marker_timer or CopiedMarkerTimer()
        self._urls = PlaybackUrls.from_settings(settings)
        self._state = ClientState.initial(settings.profile_picker)
        self._queue: deque[Event] = deque()
        self._dispatching = False
        self._listeners: list[Listener] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def urls(self) -> PlaybackUrls:
        return self._urls

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` for state changes; returns an unsubscribe hook."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def view(self) -> LibraryView:
        return render_state(
            self._state, mode=self._settings.delivery_mode, urls=self._urls
        )

    # Startup --------------------------------------------------------------

    async def start(self) -> None:
        """Issue the catalog and profile fetches concurrently."""

        self.dispatch(SessionStarted())
        await asyncio.gather(self._load_profiles(), self._load_library())

    async def refresh_library(self) -> None:
        """Fetch a fresh catalog snapshot; navigation state is kept."""

        await self._load_library()

    async def _load_library(self) -> None:
        try:
            library = await self._api.fetch_library()
        except FetchError as exc:
            logger.warning("Library load failed: %s", exc)
            self.dispatch(LibraryFailed(str(exc)))
            return
        logger.info(
            "Loaded library with %d series and %d movies",
            len(library.series),
            len(library.movies),
        )
        self.dispatch(LibraryLoaded(library))

    async def _load_profiles(self) -> None:
        try:
            profiles = await self._api.fetch_profiles()
        except FetchError as exc:
            logger.warning("Profile load failed: %s", exc)
            self.dispatch(ProfilesFailed(str(exc)))
            return
        self.dispatch(
            ProfilesLoaded(profiles, last_profile_id=self._preferences.last_profile_id())
        )

    # User actions ---------------------------------------------------------

    def search(self, query: str) -> None:
        self.dispatch(SearchChanged(query))

    def toggle_series(self, name: str) -> None:
        self.dispatch(SeriesToggled(name))

    def toggle_season(self, series_name: str, number: int) -> None:
        self.dispatch(SeasonToggled(series_name, number))

    def select_profile(self, profile: Profile) -> None:
        self.dispatch(ProfileSelected(profile))

    def show_profile_picker(self) -> None:
        self.dispatch(ProfilePickerShown())

    def dismiss_profile_picker(self) -> None:
        self.dispatch(ProfilePickerDismissed())

    def play(self, path: str, title: str) -> None:
        self.dispatch(PlaybackStarted(path, title))

    def close(self) -> None:
        self.dispatch(PlaybackClosed())

    def toggle_watched(self, path: str) -> None:
        self.dispatch(WatchedToggled(path))

    async def copy_link(self, path: str) -> None:
        self.dispatch(LinkCopyRequested(path))
        await self.drain()

    def copy_failed(self, path: str) -> None:
        """Drop the copied marker when the page could not write the clipboard."""

        self.dispatch(LinkCopyFailed(path))

    async def share_link(self, path: str, title: str) -> None:
        self.dispatch(LinkShareRequested(path, title))
        await self.drain()

    async def video_info(self, path: str) -> VideoInfo | None:
        return await self._api.fetch_video_info(path)

    # Dispatch -------------------------------------------------------------

    def dispatch(self, event: Event) -> None:
        self._queue.append(event)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                current = self._queue.popleft()
                self._state, effects = reduce(self._state, current)
                self._notify()
                for effect in effects:
                    self._run_effect(effect)
        finally:
            self._dispatching = False

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception("State listener %r failed", listener)

    def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, SaveWatchSet):
            self._watch_store.save(effect.profile_id, effect.paths)
        elif isinstance(effect, LoadWatchSet):
            paths = self._watch_store.load(effect.profile_id)
            self.dispatch(WatchSetLoaded(effect.profile_id, paths))
        elif isinstance(effect, PersistActiveProfile):
            self._preferences.remember(effect.profile_id)
        elif isinstance(effect, ScheduleMarkerClear):
            generation = effect.generation
            self._timer.schedule(
                self._settings.copied_marker_seconds,
                lambda: self.dispatch(CopiedMarkerExpired(generation)),
            )
        elif isinstance(effect, CopyToClipboard):
            self._spawn(self._copy(effect.path))
        elif isinstance(effect, ShareLink):
            self._spawn(self._share(effect.path, effect.title))
        else:  # pragma: no cover - exhaustive over Effect
            raise TypeError(f"Unhandled effect: {effect!r}")

    async def _copy(self, path: str) -> None:
        url = absolute_link(self._host.origin, path, self._urls)
        if await self._host.copy(url):
            self.dispatch(LinkCopied(path))

    async def _share(self, path: str, title: str) -> None:
        url = absolute_link(self._host.origin, path, self._urls)
        await self._host.share(title=title, url=url)

    def _spawn(self, coroutine: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight host capability calls to settle."""

        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def shutdown(self) -> None:
        self._timer.cancel()
        for task in list(self._tasks):
            task.cancel()
