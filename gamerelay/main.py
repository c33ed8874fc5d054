"""Process entry point: ``gamerelay`` console script."""
from __future__ import annotations

import logging

import uvicorn

from .logger import setup_logging
from .state import settings

logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging(settings.log_level)
    logger.info(
        "listening on http://%s:%d (ws path: /ws, lease %d ms)",
        settings.host,
        settings.port,
        settings.role_lease_ms,
    )
    uvicorn.run(
        "gamerelay.app:app",
        host=settings.host,
        port=settings.port,
        ws_ping_interval=settings.ws_ping_interval,
        ws_ping_timeout=settings.ws_ping_timeout,
        log_config=None,
    )


if __name__ == "__main__":
    main()
