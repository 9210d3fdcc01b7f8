"""Client for the media server's catalog and profile endpoints."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from ..config import Settings
from ..models import Library, Profile, VideoInfo

logger = logging.getLogger(__name__)

_PROFILE_LIST = TypeAdapter(tuple[Profile, ...])


class FetchError(RuntimeError):
    """Raised when a catalog or profile request fails or cannot be decoded."""


class LibraryApiClient:
    """Thin wrapper around ``GET /api/library`` and ``GET /api/profiles``."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client

    async def fetch_library(self) -> Library:
        """Return the full catalog snapshot."""

        payload = await self._get_json(self._settings.library_endpoint)
        try:
            return Library.model_validate(payload)
        except ValidationError as exc:
            raise FetchError(f"Malformed library payload: {exc}") from exc

    async def fetch_profiles(self) -> tuple[Profile, ...]:
        """Return the ordered list of viewer profiles."""

        payload = await self._get_json(self._settings.profiles_endpoint)
        try:
            return _PROFILE_LIST.validate_python(payload)
        except ValidationError as exc:
            raise FetchError(f"Malformed profile payload: {exc}") from exc

    async def fetch_video_info(self, path: str) -> VideoInfo | None:
        """Return codec and format details for ``path``, or ``None`` on failure.

        The whole path is encoded as one segment, slashes included.
        """

        endpoint = f"{self._settings.video_info_endpoint}/{quote(path, safe='')}"
        try:
            payload = await self._get_json(endpoint)
            return VideoInfo.model_validate(payload)
        except FetchError as exc:
            logger.info("Video info unavailable for %s: %s", path, exc)
            return None
        except ValidationError as exc:
            logger.info("Malformed video info for %s: %s", path, exc)
            return None

    async def _get_json(self, endpoint: str) -> Any:
        try:
            response = await self._client.get(endpoint)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Request to %s failed with status %s",
                endpoint,
                exc.response.status_code,
            )
            raise FetchError(
                f"Failed to fetch {endpoint}: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", endpoint, exc)
            raise FetchError(f"Failed to fetch {endpoint}: {exc}") from exc

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Response from %s was not valid JSON", endpoint)
            raise FetchError(f"Failed to parse {endpoint}: {exc}") from exc
