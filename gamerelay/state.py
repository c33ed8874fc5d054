"""Centralised in-memory runtime state.

This keeps the singletons that are shared across the whole application so
routers can simply import them without worrying about circular imports.
"""
from __future__ import annotations

from .config import Settings
from .registry import RoomRegistry

settings = Settings.from_env()

rooms = RoomRegistry(lease_ms=settings.role_lease_ms)

__all__ = ["settings", "rooms"]
