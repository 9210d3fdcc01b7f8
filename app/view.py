"""Pure view model derived from the client state."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

from .config import DeliveryMode
from .models import Library, Movie, Profile, Season, Series, Video
from .navigation import NavigationState, filter_library
from .playback import PlaybackUrls
from .state import ClientState, PlaybackSession, Status


@dataclass(frozen=True, slots=True)
class EpisodeView:
    path: str
    title: str
    label: str | None
    url: str
    download_url: str
    watched: bool
    copied: bool
    playing: bool


@dataclass(frozen=True, slots=True)
class SeasonView:
    number: int
    title: str
    episode_count: int
    expanded: bool
    episodes: tuple[EpisodeView, ...] = ()


@dataclass(frozen=True, slots=True)
class SeriesView:
    name: str
    display_name: str
    season_count: int
    watched_count: int
    expanded: bool
    seasons: tuple[SeasonView, ...] = ()


@dataclass(frozen=True, slots=True)
class MovieView:
    name: str
    path: str
    url: str
    download_url: str
    watched: bool
    copied: bool
    playing: bool


@dataclass(frozen=True, slots=True)
class PlayerView:
    path: str
    title: str
    url: str
    download_url: str
    mode: DeliveryMode


@dataclass(frozen=True, slots=True)
class ProfileView:
    id: str
    name: str
    icon: str
    active: bool


@dataclass(frozen=True, slots=True)
class LibraryView:
    status: Status
    error: str | None = None
    search_query: str = ""
    series: tuple[SeriesView, ...] = ()
    movies: tuple[MovieView, ...] = ()
    no_results: bool = False
    player: PlayerView | None = None
    profiles: tuple[ProfileView, ...] = ()
    active_profile: ProfileView | None = None
    picker_visible: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def render_state(
    state: ClientState, *, mode: DeliveryMode, urls: PlaybackUrls | None = None
) -> LibraryView:
    """Render the whole client state."""

    urls = urls or PlaybackUrls()
    profiles = tuple(
        _profile_view(profile, state.active_profile_id) for profile in state.profiles
    )
    active = None
    if state.active_profile is not None:
        active = _profile_view(state.active_profile, state.active_profile_id)

    common: dict[str, Any] = {
        "search_query": state.navigation.search_query,
        "player": _player_view(state.playback, mode, urls),
        "profiles": profiles,
        "active_profile": active,
        "picker_visible": state.picker_visible,
    }
    if state.status == "error":
        return LibraryView(status="error", error=state.error, **common)
    if state.library is None:
        return LibraryView(status="loading", **common)

    filtered = filter_library(state.library, state.navigation.search_query)
    library_view = render(
        filtered,
        state.navigation,
        state.watched,
        state.playback,
        copied_path=state.copied_path,
        mode=mode,
        urls=urls,
    )
    return LibraryView(
        status="ready",
        series=library_view.series,
        movies=library_view.movies,
        no_results=library_view.no_results,
        **common,
    )


def render(
    filtered: Library,
    navigation: NavigationState,
    watched: frozenset[str],
    playback: PlaybackSession | None,
    *,
    copied_path: str | None = None,
    mode: DeliveryMode = "direct",
    urls: PlaybackUrls | None = None,
) -> LibraryView:
    """Render an already filtered library; no hidden state is consulted."""

    urls = urls or PlaybackUrls()
    playing_path = playback.path if playback else None

    def episode_view(video: Video) -> EpisodeView:
        return EpisodeView(
            path=video.path,
            title=video.filename,
            label=video.label(),
            url=urls.resolve(video.path, mode),
            download_url=urls.download(video.path),
            watched=video.path in watched,
            copied=video.path == copied_path,
            playing=video.path == playing_path,
        )

    def season_view(series: Series, season: Season) -> SeasonView:
        expanded = navigation.is_season_expanded(series.name, season.number)
        return SeasonView(
            number=season.number,
            title=f"Season {season.number}",
            episode_count=len(season.episodes),
            expanded=expanded,
            episodes=tuple(episode_view(video) for video in season.episodes)
            if expanded
            else (),
        )

    def series_view(series: Series) -> SeriesView:
        expanded = navigation.is_series_expanded(series.name)
        watched_count = sum(
            1
            for season in series.seasons
            for video in season.episodes
            if video.path in watched
        )
        return SeriesView(
            name=series.name,
            display_name=series.display_name,
            season_count=len(series.seasons),
            watched_count=watched_count,
            expanded=expanded,
            seasons=tuple(season_view(series, season) for season in series.seasons)
            if expanded
            else (),
        )

    def movie_view(movie: Movie) -> MovieView:
        return MovieView(
            name=movie.name,
            path=movie.path,
            url=urls.resolve(movie.path, mode),
            download_url=urls.download(movie.path),
            watched=movie.path in watched,
            copied=movie.path == copied_path,
            playing=movie.path == playing_path,
        )

    return LibraryView(
        status="ready",
        series=tuple(series_view(series) for series in filtered.series),
        movies=tuple(movie_view(movie) for movie in filtered.movies),
        no_results=filtered.is_empty(),
        player=_player_view(playback, mode, urls),
    )


def _player_view(
    playback: PlaybackSession | None, mode: DeliveryMode, urls: PlaybackUrls
) -> PlayerView | None:
    if playback is None:
        return None
    return PlayerView(
        path=playback.path,
        title=playback.title,
        url=urls.resolve(playback.path, mode),
        download_url=urls.download(playback.path),
        mode=mode,
    )


def _profile_view(profile: Profile, active_id: str | None) -> ProfileView:
    return ProfileView(
        id=profile.id, name=profile.name, icon=profile.icon, active=profile.id == active_id
    )
