"""Pydantic models describing the catalog and profile payloads."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CatalogModel(BaseModel):
    """Base for immutable payload models."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Video(CatalogModel):
    """A single playable episode file."""

    path: str
    filename: str
    episode: int | None = None

    def label(self) -> str | None:
        """Return the short ``E01`` style episode label, if numbered."""

        if self.episode is None:
            return None
        return f"E{self.episode:02d}"


class Season(CatalogModel):
    number: int
    episodes: tuple[Video, ...] = ()


class Series(CatalogModel):
    """A TV series keyed by ``name`` and shown as ``display_name``."""

    name: str
    display_name: str = Field(
        validation_alias=AliasChoices("displayName", "display_name"),
        serialization_alias="displayName",
    )
    seasons: tuple[Season, ...] = ()

    def matches(self, query: str) -> bool:
        """Return ``True`` when either name field contains ``query``."""

        return query in self.name.lower() or query in self.display_name.lower()

    def episode_count(self) -> int:
        return sum(len(season.episodes) for season in self.seasons)


class Movie(CatalogModel):
    name: str
    path: str

    def matches(self, query: str) -> bool:
        return query in self.name.lower()


class Library(CatalogModel):
    """Full catalog snapshot returned by the backend."""

    series: tuple[Series, ...] = ()
    movies: tuple[Movie, ...] = ()

    def is_empty(self) -> bool:
        return not (self.series or self.movies)

    def contains_path(self, path: str) -> bool:
        """Return whether any episode or movie is addressed by ``path``."""

        if any(movie.path == path for movie in self.movies):
            return True
        return any(
            episode.path == path
            for series in self.series
            for season in series.seasons
            for episode in season.episodes
        )


class Profile(CatalogModel):
    """A named viewer identity scoping the watch state."""

    id: str
    name: str
    icon: str = ""


class SeasonKey(NamedTuple):
    """Expansion key for a season within a series."""

    series: str
    number: int


class MediaFormat(CatalogModel):
    """Container details reported by the media server's probe."""

    name: str = ""
    long_name: str = ""
    duration: float = 0.0
    size: int = 0
    bitrate: int = 0


class VideoStream(CatalogModel):
    codec_name: str = ""
    codec_long_name: str = ""
    profile: str = ""
    width: int = 0
    height: int = 0
    fps: float = 0.0
    bitrate: int = 0
    pix_fmt: str = ""
    bit_depth: int = 8


class AudioStream(CatalogModel):
    codec_name: str = ""
    codec_long_name: str = ""
    sample_rate: int = 0
    channels: int = 0
    channel_layout: str = ""
    bitrate: int = 0
    bit_depth: int = 0


class SubtitleStream(CatalogModel):
    codec_name: str = ""
    language: str = ""
    title: str = ""
    forced: bool = False


class Compatibility(CatalogModel):
    is_hls_compatible: bool = False
    needs_video_transcode: bool = False
    needs_audio_transcode: bool = False
    is_legacy_compatible: bool = False


class PlaybackModeInfo(CatalogModel):
    id: str
    name: str = ""
    description: str = ""
    requires_transcoding: bool = False
    format_type: str = ""


class VideoInfo(CatalogModel):
    """Codec and format information for one media file."""

    format: MediaFormat = Field(default_factory=MediaFormat)
    video_streams: tuple[VideoStream, ...] = ()
    audio_streams: tuple[AudioStream, ...] = ()
    subtitle_streams: tuple[SubtitleStream, ...] = ()
    compatibility: Compatibility = Field(default_factory=Compatibility)
    playback_modes: tuple[PlaybackModeInfo, ...] = ()

    def summary(self) -> str:
        """Return a short ``1920x1080 h264 / aac 5.1`` style description."""

        parts: list[str] = []
        if self.video_streams:
            video = self.video_streams[0]
            resolution = f"{video.width}x{video.height} " if video.width else ""
            parts.append(f"{resolution}{video.codec_name}".strip())
        if self.audio_streams:
            audio = self.audio_streams[0]
            parts.append(f"{audio.codec_name} {audio.channel_layout}".strip())
        return " / ".join(part for part in parts if part)
