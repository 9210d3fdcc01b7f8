"""Application configuration models."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DeliveryMode = Literal["direct", "adaptive"]
WatchStateScope = Literal["profile", "global"]
ProfilePickerMode = Literal["returning", "switcher"]


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="MediaShelf", alias="APP_NAME")
    server_host: str = Field(default="127.0.0.1", alias="HOST")
    server_port: int = Field(default=3000, alias="PORT")

    media_server_url: HttpUrl = Field(
        default="http://localhost:8080", alias="MEDIA_SERVER_URL"
    )
    library_endpoint: str = Field(default="/api/library", alias="LIBRARY_ENDPOINT")
    profiles_endpoint: str = Field(
        default="/api/profiles", alias="PROFILES_ENDPOINT"
    )
    video_info_endpoint: str = Field(
        default="/api/video/info", alias="VIDEO_INFO_ENDPOINT"
    )
    request_timeout_seconds: float = Field(
        default=15.0, alias="REQUEST_TIMEOUT_SECONDS", gt=0
    )

    delivery_mode: DeliveryMode = Field(default="direct", alias="DELIVERY_MODE")
    direct_prefix: str = Field(default="/video", alias="DIRECT_PREFIX")
    streaming_prefix: str = Field(default="/hls", alias="STREAMING_PREFIX")
    manifest_filename: str = Field(
        default="playlist.m3u8", alias="MANIFEST_FILENAME"
    )

    watch_state_scope: WatchStateScope = Field(
        default="profile", alias="WATCH_STATE_SCOPE"
    )
    profile_picker: ProfilePickerMode = Field(
        default="returning", alias="PROFILE_PICKER"
    )
    copied_marker_seconds: float = Field(
        default=2.0, alias="COPIED_MARKER_SECONDS", gt=0
    )

    storage_url: str = Field(
        default="sqlite:///./mediashelf.db", alias="STORAGE_URL"
    )
    public_origin: HttpUrl | None = Field(default=None, alias="PUBLIC_ORIGIN")

    environment: Literal["development", "production"] = Field(
        default="development", alias="ENVIRONMENT"
    )

    @field_validator(
        "library_endpoint",
        "profiles_endpoint",
        "video_info_endpoint",
        "direct_prefix",
        "streaming_prefix",
    )
    @classmethod
    def _normalise_prefix(cls, value: str) -> str:
        """Force a single leading slash and strip trailing ones."""

        cleaned = value.strip().strip("/")
        if not cleaned:
            raise ValueError("URL prefixes may not be empty")
        return f"/{cleaned}"

    @field_validator("manifest_filename")
    @classmethod
    def _validate_manifest_filename(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned or "/" in cleaned:
            raise ValueError("MANIFEST_FILENAME must be a bare file name")
        return cleaned

    @property
    def media_server_base(self) -> str:
        """Return the backend base URL without a trailing slash."""

        return str(self.media_server_url).rstrip("/")

    @property
    def link_origin(self) -> str:
        """Origin used when building absolute copy/share links."""

        if self.public_origin is not None:
            return str(self.public_origin).rstrip("/")
        return self.media_server_base

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
