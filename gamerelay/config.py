"""Process configuration read from environment variables."""
from __future__ import annotations

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

from .constants import ROLE_LEASE_MS


class Settings(BaseModel):
    """Runtime knobs for the relay process."""

    role_lease_ms: int = Field(default=ROLE_LEASE_MS, ge=0)
    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=0, le=65535)
    static_dir: str = "static"
    # WebSocket liveness is delegated to the ASGI server's ping/pong.
    ws_ping_interval: float = 30.0
    ws_ping_timeout: float = 30.0
    log_level: str = "INFO"

    @property
    def role_lease_seconds(self) -> float:
        return self.role_lease_ms / 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *environ* (defaults to ``os.environ``).

        Unset or empty variables fall back to the model defaults; malformed
        values raise ``pydantic.ValidationError``.
        """
        env = os.environ if environ is None else environ
        names = {
            "role_lease_ms": "ROLE_LEASE_MS",
            "host": "HOST",
            "port": "PORT",
            "static_dir": "STATIC_DIR",
            "ws_ping_interval": "WS_PING_INTERVAL",
            "ws_ping_timeout": "WS_PING_TIMEOUT",
            "log_level": "LOG_LEVEL",
        }
        values = {field: env[var] for field, var in names.items() if env.get(var)}
        return cls.model_validate(values)


__all__ = ["Settings"]
