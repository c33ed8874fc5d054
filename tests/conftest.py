import asyncio
import json

import pytest
import pytest_asyncio
from fastapi.websockets import WebSocketState

from gamerelay.handlers import handle_disconnect, handle_ws_message
from gamerelay.registry import RoomRegistry
from gamerelay.session import Session

# Short timers so lease expiry and room cleanup can be observed in tests
LEASE_MS = 50
CLEANUP_DELAY = 0.1


class FakeChannel:
    """Stands in for a WebSocket: records every frame sent to it."""

    def __init__(self):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.sent = []
        self.fail = False
        self.stalled = False

    async def send_text(self, data):
        if self.fail:
            raise RuntimeError("connection reset")
        if self.stalled:
            # Socket buffer full: the write never completes
            await asyncio.Event().wait()
        self.sent.append(json.loads(data))

    def close(self):
        self.client_state = WebSocketState.DISCONNECTED

    def of_type(self, msg_type):
        return [m for m in self.sent if m["type"] == msg_type]

    def clear(self):
        self.sent.clear()


class Client:
    """A session plus convenience helpers for driving the handlers."""

    def __init__(self, registry):
        self.registry = registry
        self.channel = FakeChannel()
        self.session = Session(self.channel)

    @property
    def sent(self):
        return self.channel.sent

    async def send(self, payload):
        raw = payload if isinstance(payload, str) else json.dumps(payload)
        await handle_ws_message(self.registry, self.session, raw)

    async def join(self, room="r1", device_id=""):
        await self.send({"type": "join", "room": room, "deviceId": device_id})
        return self.session.role.index

    async def disconnect(self):
        self.channel.close()
        await handle_disconnect(self.registry, self.session)


@pytest_asyncio.fixture
async def registry():
    reg = RoomRegistry(lease_ms=LEASE_MS, cleanup_delay=CLEANUP_DELAY)
    yield reg
    reg.shutdown()
    await asyncio.sleep(0)


@pytest.fixture
def connect(registry):
    def _connect():
        return Client(registry)

    return _connect


async def wait_for_lease():
    await asyncio.sleep(LEASE_MS / 1000 * 3)
