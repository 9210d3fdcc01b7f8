"""Utility helpers for the MediaShelf client."""

from __future__ import annotations

from urllib.parse import quote


def normalize_query(value: str | None) -> str:
    """Return the search query as stored and compared: lower-cased."""

    return (value or "").lower()


def quote_media_path(path: str) -> str:
    """Percent-encode each ``/`` separated segment of a media path."""

    segments = path.strip("/").split("/")
    return "/".join(quote(segment, safe="") for segment in segments)


def join_url(*parts: str) -> str:
    """Join URL fragments with exactly one slash between them."""

    cleaned = [part.strip("/") for part in parts if part and part.strip("/")]
    return "/" + "/".join(cleaned)
