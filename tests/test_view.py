"""Rendering the catalog tree from state."""

from __future__ import annotations

from dataclasses import replace

import pytest

from app.models import Library, Profile
from app.navigation import NavigationState, filter_library
from app.state import ClientState, PlaybackSession
from app.view import render, render_state


@pytest.fixture
def library(library_payload) -> Library:
    return Library.model_validate(library_payload)


def test_collapsed_series_hides_seasons(library: Library) -> None:
    view = render(library, NavigationState(), frozenset(), None)

    assert view.series[0].expanded is False
    assert view.series[0].seasons == ()
    assert view.series[0].season_count == 1
    assert [movie.path for movie in view.movies] == ["film"]


def test_expanding_series_then_season_reveals_episode(library: Library) -> None:
    navigation = NavigationState().toggle_series("show")
    view = render(library, navigation, frozenset(), None)

    season = view.series[0].seasons[0]
    assert season.title == "Season 1"
    assert season.episode_count == 1
    assert season.episodes == ()

    navigation = navigation.toggle_season("show", 1)
    view = render(library, navigation, frozenset(), None)

    episode = view.series[0].seasons[0].episodes[0]
    assert episode.path == "show/s1e1"
    assert episode.label == "E01"
    assert episode.url == "/video/show/s1e1"


def test_watch_playback_and_copy_flags(library: Library) -> None:
    navigation = NavigationState().toggle_series("show").toggle_season("show", 1)
    view = render(
        library,
        navigation,
        frozenset({"show/s1e1"}),
        PlaybackSession("film", "Film"),
        copied_path="show/s1e1",
    )

    episode = view.series[0].seasons[0].episodes[0]
    assert episode.watched is True
    assert episode.copied is True
    assert episode.playing is False
    assert view.series[0].watched_count == 1
    assert view.movies[0].playing is True
    assert view.player is not None and view.player.url == "/video/film"


def test_search_without_matches_flags_no_results(library: Library) -> None:
    view = render(filter_library(library, "nothing"), NavigationState(), frozenset(), None)

    assert view.no_results is True


def test_render_state_reports_loading_and_error() -> None:
    assert render_state(ClientState.initial(), mode="direct").status == "loading"

    failed = replace(ClientState.initial(), library_error="Failed to fetch /api/library")
    view = render_state(failed, mode="direct")
    assert view.status == "error"
    assert view.error == "Failed to fetch /api/library"
    assert view.series == ()


def test_render_state_filters_and_marks_active_profile(library: Library) -> None:
    alex = Profile(id="a", name="Alex", icon="🦊")
    state = replace(
        ClientState.initial(),
        library=library,
        profiles=(alex, Profile(id="b", name="Blair")),
        active_profile=alex,
        navigation=NavigationState().with_query("the"),
    )

    view = render_state(state, mode="adaptive")

    assert [series.name for series in view.series] == ["show"]
    assert view.movies == ()
    assert view.active_profile is not None and view.active_profile.id == "a"
    assert [profile.active for profile in view.profiles] == [True, False]
    assert view.to_dict()["status"] == "ready"
