"""Module executed when running ``python -m mediashelf``."""

from __future__ import annotations

import logging

import uvicorn

from app.config import settings

logger = logging.getLogger(__name__)


def main() -> None:
    """Serve the library browser using the configured settings."""

    logger.info(
        "Serving %s against %s (%s playback)",
        settings.app_name,
        settings.media_server_base,
        settings.delivery_mode,
    )
    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
        log_level="info",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
