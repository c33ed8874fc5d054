from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from .routers import health as health_router
from .routers import websockets as ws_router
from .state import rooms, settings


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # Lease and cleanup timers must not outlive the event loop.
    rooms.shutdown()


# -----------------------------
# FastAPI app instance
# -----------------------------

app = FastAPI(title="Game Relay", lifespan=lifespan)

# Register routers
app.include_router(health_router.router)
app.include_router(ws_router.router)

# -----------------------------
# Static file mounting
# -----------------------------

# Mount the front-end (index.html etc.) at root path, if it is deployed next to us.
if Path(settings.static_dir).is_dir():
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="frontend")

__all__ = ["app"]
