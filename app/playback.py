"""Playback URL resolution for the two delivery modes."""

from __future__ import annotations

from dataclasses import dataclass

from .config import DeliveryMode, Settings
from .utils import join_url, quote_media_path


@dataclass(frozen=True, slots=True)
class PlaybackUrls:
    """Fixed server prefixes for one deployment."""

    direct_prefix: str = "/video"
    streaming_prefix: str = "/hls"
    manifest_filename: str = "playlist.m3u8"

    @classmethod
    def from_settings(cls, settings: Settings) -> "PlaybackUrls":
        return cls(
            direct_prefix=settings.direct_prefix,
            streaming_prefix=settings.streaming_prefix,
            manifest_filename=settings.manifest_filename,
        )

    def direct(self, path: str) -> str:
        """URL of the raw media file."""

        return join_url(self.direct_prefix, quote_media_path(path))

    def download(self, path: str) -> str:
        """URL offered for saving the original file."""

        return self.direct(path)

    def manifest(self, path: str) -> str:
        """URL of the segmented-streaming manifest for ``path``."""

        return join_url(
            self.streaming_prefix, quote_media_path(path), self.manifest_filename
        )

    def resolve(self, path: str, mode: DeliveryMode) -> str:
        if mode == "adaptive":
            return self.manifest(path)
        if mode == "direct":
            return self.direct(path)
        raise ValueError(f"Unsupported delivery mode: {mode}")


def resolve_playback_url(
    path: str, mode: DeliveryMode, urls: PlaybackUrls | None = None
) -> str:
    """Return the URL a player should load for ``path``."""

    return (urls or PlaybackUrls()).resolve(path, mode)


def absolute_link(origin: str, path: str, urls: PlaybackUrls | None = None) -> str:
    """Return the shareable absolute direct-mode link for ``path``."""

    return f"{origin.rstrip('/')}{(urls or PlaybackUrls()).direct(path)}"
