"""Search filtering and expand/collapse state for the catalog tree."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .models import Library, SeasonKey
from .utils import normalize_query


@dataclass(frozen=True, slots=True)
class NavigationState:
    """Transient UI state; keys may outlive the catalog entries they name."""

    expanded_series: frozenset[str] = field(default_factory=frozenset)
    expanded_seasons: frozenset[SeasonKey] = field(default_factory=frozenset)
    search_query: str = ""

    def with_query(self, query: str | None) -> "NavigationState":
        return replace(self, search_query=normalize_query(query))

    def toggle_series(self, name: str) -> "NavigationState":
        return replace(self, expanded_series=_flip(self.expanded_series, name))

    def toggle_season(self, series_name: str, number: int) -> "NavigationState":
        key = SeasonKey(series_name, number)
        return replace(self, expanded_seasons=_flip(self.expanded_seasons, key))

    def is_series_expanded(self, name: str) -> bool:
        return name in self.expanded_series

    def is_season_expanded(self, series_name: str, number: int) -> bool:
        return SeasonKey(series_name, number) in self.expanded_seasons


def _flip(members: frozenset, key) -> frozenset:
    if key in members:
        return members - {key}
    return members | {key}


def filter_library(library: Library, query: str) -> Library:
    """Return the series and movies whose names contain ``query``.

    An empty query returns ``library`` itself. Matching series keep every
    season and episode.
    """

    needle = normalize_query(query)
    if not needle:
        return library
    return Library(
        series=tuple(series for series in library.series if series.matches(needle)),
        movies=tuple(movie for movie in library.movies if movie.matches(needle)),
    )
