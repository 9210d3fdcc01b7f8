"""HTML page rendering for the library browser."""

from __future__ import annotations

import json
import re
from html import escape
from textwrap import dedent

from .config import Settings
from .view import EpisodeView, LibraryView, MovieView, SeasonView, SeriesView


PAGE_TEMPLATE = dedent(
    """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>__APP_NAME__</title>
    <style>
        :root {
            color-scheme: dark;
            font-family: 'Inter', 'Segoe UI', system-ui, -apple-system, sans-serif;
            --surface: #141414;
            --surface-muted: #090909;
            --text-primary: #f5f5f5;
            --text-muted: #a6a6a6;
            --outline: #1c1c1c;
            --accent: #f0f0f0;
            background: #000000;
            color: var(--text-primary);
        }
        body {
            margin: 0;
        }
        main {
            max-width: 960px;
            margin: 0 auto;
            padding: 2rem 1.5rem 4rem;
        }
        header {
            display: flex;
            gap: 1rem;
            align-items: center;
            justify-content: space-between;
            margin-bottom: 2rem;
        }
        .search-bar {
            flex: 1;
            background: var(--surface-muted);
            border: 1px solid var(--outline);
            border-radius: 12px;
            color: var(--text-primary);
            padding: 0.65rem 0.85rem;
            font-size: 1rem;
        }
        .series, .movie {
            background: var(--surface);
            border: 1px solid var(--outline);
            border-radius: 14px;
            margin-bottom: 0.75rem;
            padding: 0.75rem 1rem;
        }
        .series-header, .season-header {
            cursor: pointer;
            display: flex;
            gap: 0.75rem;
        }
        .series-count, .episode-count {
            margin-left: auto;
            color: var(--text-muted);
        }
        .seasons, .episodes {
            padding-left: 1.25rem;
        }
        .episode {
            display: flex;
            gap: 0.5rem;
            align-items: center;
            padding: 0.25rem 0;
        }
        .watched .episode-name, .watched .movie-name {
            color: var(--text-muted);
        }
        .loading, .error, .no-results {
            text-align: center;
            color: var(--text-muted);
            padding: 3rem 0;
        }
        .overlay {
            position: fixed;
            inset: 0;
            background: rgba(0, 0, 0, 0.9);
            display: flex;
            flex-direction: column;
            align-items: center;
            justify-content: center;
        }
        .overlay video {
            max-width: 90vw;
            max-height: 80vh;
        }
        .profiles {
            display: flex;
            gap: 1rem;
            justify-content: center;
            padding: 2rem 0;
        }
        button {
            background: var(--surface-muted);
            border: 1px solid var(--outline);
            border-radius: 10px;
            color: var(--accent);
            cursor: pointer;
        }
    </style>
</head>
<body>
    <main>
        <header>
            <h1>__APP_NAME__</h1>
            <input class="search-bar" type="text" placeholder="Search videos..." value="__QUERY__" />
            __PROFILE_SWITCHER__
        </header>
        __CONTENT__
    </main>
    __PLAYER__
    <script>
        (() => {
            const mediaBase = '__MEDIA_BASE__';
            async function post(path, body) {
                const response = await fetch(path, {
                    method: 'POST',
                    headers: { 'Content-Type': 'application/json' },
                    body: JSON.stringify(body || {}),
                });
                return response.json();
            }
            async function act(path, body) {
                const payload = await post(path, body);
                for (const command of payload.commands || []) {
                    try {
                        if (command.type === 'clipboard') {
                            await navigator.clipboard.writeText(command.text);
                        } else if (command.type === 'share' && navigator.share) {
                            await navigator.share({ title: command.title, text: command.text, url: command.url });
                        }
                    } catch (error) {
                        console.log('Host capability unavailable:', error);
                        if (command.type === 'clipboard') {
                            await post('/copy/failed', body);
                        }
                    }
                }
                window.location.reload();
            }
            document.querySelectorAll('a[data-href]').forEach((link) => {
                link.href = mediaBase + link.dataset.href;
            });
            document.querySelectorAll('[data-action]').forEach((element) => {
                element.addEventListener('click', (event) => {
                    event.preventDefault();
                    act(element.dataset.action, JSON.parse(element.dataset.body || '{}'));
                });
            });
            const search = document.querySelector('.search-bar');
            search.addEventListener('change', () => act('/search', { query: search.value }));
            const video = document.querySelector('.overlay video');
            if (video) {
                const source = mediaBase + video.dataset.src;
                if (video.dataset.mode === 'adaptive' && window.Hls && window.Hls.isSupported()) {
                    const hls = new window.Hls({ backBufferLength: 90, maxBufferLength: 30 });
                    hls.loadSource(source);
                    hls.attachMedia(video);
                    hls.on(window.Hls.Events.ERROR, (_, data) => {
                        if (!data.fatal) {
                            return;
                        }
                        if (data.type === window.Hls.ErrorTypes.NETWORK_ERROR) {
                            hls.startLoad();
                        } else if (data.type === window.Hls.ErrorTypes.MEDIA_ERROR) {
                            hls.recoverMediaError();
                        } else {
                            console.error('Unrecoverable playback error:', data);
                            hls.destroy();
                        }
                    });
                } else {
                    video.src = source;
                }
            }
            const info = document.querySelector('.player-info');
            if (info) {
                post('/video/info', { path: info.dataset.path })
                    .then((payload) => { info.textContent = payload.summary || ''; })
                    .catch((error) => console.log('Video info unavailable:', error));
            }
        })();
    </script>
</body>
</html>
    """
)


HLS_LOADER = '<script src="https://cdn.jsdelivr.net/npm/hls.js@1"></script>'
PLACEHOLDER_PATTERN = re.compile(r"__[A-Z_]+__")


def _attr_json(payload: dict[str, object]) -> str:
    return escape(json.dumps(payload), quote=True)


def _button(label: str, action: str, body: dict[str, object] | None = None) -> str:
    data_body = f' data-body="{_attr_json(body)}"' if body else ""
    return (
        f'<button data-action="{escape(action, quote=True)}"{data_body}>'
        f"{escape(label)}</button>"
    )


def _download_link(url: str) -> str:
    return f'<a class="download" data-href="{escape(url, quote=True)}" download>Download</a>'


def _media_controls(
    path: str, title: str, download_url: str, *, watched: bool, copied: bool
) -> str:
    return " ".join(
        [
            _button("Play", "/play", {"path": path, "title": title}),
            _button("Watched" if watched else "Unwatched", "/watched/toggle", {"path": path}),
            _button("Copied!" if copied else "Copy link", "/copy", {"path": path}),
            _button("Share", "/share", {"path": path, "title": title}),
            _download_link(download_url),
        ]
    )


def render_episode(episode: EpisodeView) -> str:
    classes = "episode watched" if episode.watched else "episode"
    label = (
        f'<span class="episode-number">{escape(episode.label)}</span>'
        if episode.label
        else ""
    )
    controls = _media_controls(
        episode.path,
        episode.title,
        episode.download_url,
        watched=episode.watched,
        copied=episode.copied,
    )
    return (
        f'<div class="{classes}">{label}'
        f'<span class="episode-name">{escape(episode.title)}</span>{controls}</div>'
    )


def render_season(series: SeriesView, season: SeasonView) -> str:
    icon = "▼" if season.expanded else "▶"
    body = _attr_json({"series": series.name, "number": season.number})
    episodes = ""
    if season.expanded:
        episodes = (
            '<div class="episodes">'
            + "".join(render_episode(episode) for episode in season.episodes)
            + "</div>"
        )
    return (
        f'<div class="season"><div class="season-header" data-action="/seasons/toggle" data-body="{body}">'
        f'<span class="expand-icon">{icon}</span>'
        f'<span class="season-name">{escape(season.title)}</span>'
        f'<span class="episode-count">{season.episode_count} episodes</span></div>'
        f"{episodes}</div>"
    )


def render_series(series: SeriesView) -> str:
    icon = "▼" if series.expanded else "▶"
    body = _attr_json({"name": series.name})
    seasons = ""
    if series.expanded:
        seasons = (
            '<div class="seasons">'
            + "".join(render_season(series, season) for season in series.seasons)
            + "</div>"
        )
    return (
        f'<div class="series"><div class="series-header" data-action="/series/toggle" data-body="{body}">'
        f'<span class="expand-icon">{icon}</span>'
        f'<span class="series-name">{escape(series.display_name)}</span>'
        f'<span class="series-count">{series.season_count} seasons</span></div>'
        f"{seasons}</div>"
    )


def render_movie(movie: MovieView) -> str:
    classes = "movie watched" if movie.watched else "movie"
    controls = _media_controls(
        movie.path,
        movie.name,
        movie.download_url,
        watched=movie.watched,
        copied=movie.copied,
    )
    return (
        f'<div class="{classes}"><div class="movie-name">{escape(movie.name)}</div>'
        f"{controls}</div>"
    )


def render_content(view: LibraryView) -> str:
    """Return the main body for the current status."""

    if view.status == "error":
        return f'<div class="error">Error: {escape(view.error or "Unknown error")}</div>'
    if view.picker_visible and view.profiles:
        cards = "".join(
            _button(
                f"{profile.icon} {profile.name}".strip(),
                "/profiles/select",
                {"id": profile.id},
            )
            for profile in view.profiles
        )
        if view.active_profile is not None:
            cards += _button("Cancel", "/profiles/picker/dismiss")
        return f'<section class="profiles"><h2>Who\'s watching?</h2>{cards}</section>'
    if view.status == "loading":
        return '<div class="loading">Loading library...</div>'

    sections: list[str] = []
    if view.series:
        sections.append(
            '<section class="series-section"><h2>TV Series</h2>'
            + "".join(render_series(series) for series in view.series)
            + "</section>"
        )
    if view.movies:
        sections.append(
            '<section class="movies-section"><h2>Movies</h2><div class="movie-list">'
            + "".join(render_movie(movie) for movie in view.movies)
            + "</div></section>"
        )
    if view.no_results:
        sections.append('<div class="no-results">No results found</div>')
    return "".join(sections)


def render_player(view: LibraryView) -> str:
    if view.player is None:
        return ""
    player = view.player
    loader = HLS_LOADER if player.mode == "adaptive" else ""
    return (
        f'{loader}<div class="overlay">'
        f"<h2>{escape(player.title)}</h2>"
        f'<video controls autoplay data-src="{escape(player.url, quote=True)}"'
        f' data-mode="{player.mode}"></video>'
        f'<div class="player-info" data-path="{escape(player.path, quote=True)}"></div>'
        f"{_download_link(player.download_url)} "
        f'{_button("Close", "/close")}</div>'
    )


def render_library_page(settings: Settings, view: LibraryView) -> str:
    """Return the full HTML for the library page."""

    switcher = ""
    if view.active_profile is not None:
        label = f"{view.active_profile.icon} {view.active_profile.name}".strip()
        switcher = _button(label, "/profiles/picker")

    replacements = {
        "__APP_NAME__": escape(settings.app_name),
        "__QUERY__": escape(view.search_query, quote=True),
        "__PROFILE_SWITCHER__": switcher,
        "__CONTENT__": render_content(view),
        "__PLAYER__": render_player(view),
        "__MEDIA_BASE__": settings.media_server_base.replace("'", "%27"),
    }
    return PLACEHOLDER_PATTERN.sub(
        lambda match: replacements.get(match.group(0), match.group(0)), PAGE_TEMPLATE
    )
