"""Client state container and its pure reducer.

Every user action, network completion and timer expiry is an *event*.
``reduce(state, event)`` returns the next state plus a list of *effects*
(storage writes, clipboard/share requests, timer scheduling) that the
runtime executes in order. Nothing here touches I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Literal, Union

from .config import ProfilePickerMode
from .models import Library, Profile
from .navigation import NavigationState

Status = Literal["loading", "error", "ready"]


@dataclass(frozen=True, slots=True)
class PlaybackSession:
    path: str
    title: str


@dataclass(frozen=True, slots=True)
class ClientState:
    picker_mode: ProfilePickerMode = "returning"
    library: Library | None = None
    library_error: str | None = None
    profiles: tuple[Profile, ...] = ()
    profiles_loaded: bool = False
    profiles_error: str | None = None
    active_profile: Profile | None = None
    picker_visible: bool = False
    watched: frozenset[str] = field(default_factory=frozenset)
    navigation: NavigationState = field(default_factory=NavigationState)
    playback: PlaybackSession | None = None
    copied_path: str | None = None
    copy_generation: int = 0

    @classmethod
    def initial(cls, picker_mode: ProfilePickerMode = "returning") -> "ClientState":
        return cls(picker_mode=picker_mode, picker_visible=picker_mode == "returning")

    @property
    def status(self) -> Status:
        if self.library_error or self.profiles_error:
            return "error"
        if self.library is None:
            return "loading"
        return "ready"

    @property
    def error(self) -> str | None:
        return self.library_error or self.profiles_error

    @property
    def active_profile_id(self) -> str | None:
        return self.active_profile.id if self.active_profile else None

    def find_profile(self, profile_id: str) -> Profile | None:
        for profile in self.profiles:
            if profile.id == profile_id:
                return profile
        return None


# Events -------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionStarted:
    pass


@dataclass(frozen=True, slots=True)
class LibraryLoaded:
    library: Library


@dataclass(frozen=True, slots=True)
class LibraryFailed:
    message: str


@dataclass(frozen=True, slots=True)
class ProfilesLoaded:
    profiles: tuple[Profile, ...]
    last_profile_id: str | None = None


@dataclass(frozen=True, slots=True)
class ProfilesFailed:
    message: str


@dataclass(frozen=True, slots=True)
class SearchChanged:
    query: str


@dataclass(frozen=True, slots=True)
class SeriesToggled:
    name: str


@dataclass(frozen=True, slots=True)
class SeasonToggled:
    series_name: str
    number: int


@dataclass(frozen=True, slots=True)
class ProfileSelected:
    profile: Profile


@dataclass(frozen=True, slots=True)
class ProfilePickerShown:
    pass


@dataclass(frozen=True, slots=True)
class ProfilePickerDismissed:
    pass


@dataclass(frozen=True, slots=True)
class WatchSetLoaded:
    profile_id: str | None
    paths: frozenset[str]


@dataclass(frozen=True, slots=True)
class PlaybackStarted:
    path: str
    title: str


@dataclass(frozen=True, slots=True)
class PlaybackClosed:
    pass


@dataclass(frozen=True, slots=True)
class WatchedToggled:
    path: str


@dataclass(frozen=True, slots=True)
class LinkCopyRequested:
    path: str


@dataclass(frozen=True, slots=True)
class LinkCopied:
    path: str


@dataclass(frozen=True, slots=True)
class LinkCopyFailed:
    path: str


@dataclass(frozen=True, slots=True)
class CopiedMarkerExpired:
    generation: int


@dataclass(frozen=True, slots=True)
class LinkShareRequested:
    path: str
    title: str


Event = Union[
    SessionStarted,
    LibraryLoaded,
    LibraryFailed,
    ProfilesLoaded,
    ProfilesFailed,
    SearchChanged,
    SeriesToggled,
    SeasonToggled,
    ProfileSelected,
    ProfilePickerShown,
    ProfilePickerDismissed,
    WatchSetLoaded,
    PlaybackStarted,
    PlaybackClosed,
    WatchedToggled,
    LinkCopyRequested,
    LinkCopied,
    LinkCopyFailed,
    CopiedMarkerExpired,
    LinkShareRequested,
]


# Effects ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SaveWatchSet:
    profile_id: str | None
    paths: frozenset[str]


@dataclass(frozen=True, slots=True)
class LoadWatchSet:
    profile_id: str | None


@dataclass(frozen=True, slots=True)
class PersistActiveProfile:
    profile_id: str


@dataclass(frozen=True, slots=True)
class CopyToClipboard:
    path: str


@dataclass(frozen=True, slots=True)
class ScheduleMarkerClear:
    generation: int


@dataclass(frozen=True, slots=True)
class ShareLink:
    path: str
    title: str


Effect = Union[
    SaveWatchSet,
    LoadWatchSet,
    PersistActiveProfile,
    CopyToClipboard,
    ScheduleMarkerClear,
    ShareLink,
]


# Reducer ------------------------------------------------------------------


def reduce(state: ClientState, event: Event) -> tuple[ClientState, list[Effect]]:
    """Return the state after ``event`` and the effects it requests."""

    if isinstance(event, SessionStarted):
        return state, [LoadWatchSet(state.active_profile_id)]

    if isinstance(event, LibraryLoaded):
        return replace(state, library=event.library, library_error=None), []

    if isinstance(event, LibraryFailed):
        return replace(state, library_error=event.message), []

    if isinstance(event, ProfilesLoaded):
        return _resolve_profiles(state, event)

    if isinstance(event, ProfilesFailed):
        return replace(state, profiles_loaded=True, profiles_error=event.message), []

    if isinstance(event, SearchChanged):
        return replace(state, navigation=state.navigation.with_query(event.query)), []

    if isinstance(event, SeriesToggled):
        return replace(state, navigation=state.navigation.toggle_series(event.name)), []

    if isinstance(event, SeasonToggled):
        navigation = state.navigation.toggle_season(event.series_name, event.number)
        return replace(state, navigation=navigation), []

    if isinstance(event, ProfileSelected):
        return _switch_profile(state, event.profile, picker_visible=False)

    if isinstance(event, ProfilePickerShown):
        return replace(state, picker_visible=True), []

    if isinstance(event, ProfilePickerDismissed):
        # A returning-mode picker keeps gating until some profile is active.
        if state.picker_mode == "returning" and state.active_profile is None:
            return state, []
        return replace(state, picker_visible=False), []

    if isinstance(event, WatchSetLoaded):
        if event.profile_id != state.active_profile_id:
            return state, []
        return replace(state, watched=frozenset(event.paths)), []

    if isinstance(event, PlaybackStarted):
        watched = state.watched | {event.path}
        session = PlaybackSession(path=event.path, title=event.title)
        next_state = replace(state, playback=session, watched=watched)
        return next_state, [SaveWatchSet(state.active_profile_id, watched)]

    if isinstance(event, PlaybackClosed):
        return replace(state, playback=None), []

    if isinstance(event, WatchedToggled):
        if event.path in state.watched:
            watched = state.watched - {event.path}
        else:
            watched = state.watched | {event.path}
        next_state = replace(state, watched=watched)
        return next_state, [SaveWatchSet(state.active_profile_id, watched)]

    if isinstance(event, LinkCopyRequested):
        return state, [CopyToClipboard(event.path)]

    if isinstance(event, LinkCopied):
        generation = state.copy_generation + 1
        next_state = replace(state, copied_path=event.path, copy_generation=generation)
        return next_state, [ScheduleMarkerClear(generation)]

    if isinstance(event, LinkCopyFailed):
        # The browser could not write the clipboard after the marker was set.
        if state.copied_path != event.path:
            return state, []
        generation = state.copy_generation + 1
        return replace(state, copied_path=None, copy_generation=generation), []

    if isinstance(event, CopiedMarkerExpired):
        if event.generation != state.copy_generation:
            return state, []
        return replace(state, copied_path=None), []

    if isinstance(event, LinkShareRequested):
        return state, [ShareLink(event.path, event.title)]

    raise TypeError(f"Unhandled event: {event!r}")


def _switch_profile(
    state: ClientState, profile: Profile, *, picker_visible: bool
) -> tuple[ClientState, list[Effect]]:
    effects: list[Effect] = []
    if state.active_profile is not None:
        effects.append(SaveWatchSet(state.active_profile.id, state.watched))
    effects.append(PersistActiveProfile(profile.id))
    effects.append(LoadWatchSet(profile.id))
    next_state = replace(
        state,
        active_profile=profile,
        watched=frozenset(),
        picker_visible=picker_visible,
    )
    return next_state, effects


def _resolve_profiles(
    state: ClientState, event: ProfilesLoaded
) -> tuple[ClientState, list[Effect]]:
    profiles = tuple(event.profiles)
    state = replace(state, profiles=profiles, profiles_loaded=True, profiles_error=None)

    remembered = None
    if event.last_profile_id:
        remembered = state.find_profile(event.last_profile_id)
    if remembered is not None:
        effects: list[Effect] = []
        if state.active_profile is not None:
            effects.append(SaveWatchSet(state.active_profile.id, state.watched))
        effects.append(LoadWatchSet(remembered.id))
        next_state = replace(
            state, active_profile=remembered, watched=frozenset(), picker_visible=False
        )
        return next_state, effects

    if profiles:
        return _switch_profile(
            state, profiles[0], picker_visible=state.picker_mode == "returning"
        )

    if state.active_profile is not None:
        flush: list[Effect] = [SaveWatchSet(state.active_profile.id, state.watched)]
    else:
        flush = []
    next_state = replace(
        state, active_profile=None, watched=frozenset(), picker_visible=False
    )
    return next_state, [*flush, LoadWatchSet(None)]
