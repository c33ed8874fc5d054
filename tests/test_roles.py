import pytest

from conftest import wait_for_lease
from gamerelay.lease import Lease, LeaseKind, now_ms
from gamerelay.roles import find_free_slot, find_reclaimable_slot


pytestmark = pytest.mark.asyncio


class TestFreshSeat:
    async def test_first_two_devices_take_the_slots(self, connect):
        a, b = connect(), connect()
        assert await a.join(device_id="d1") == 0
        assert await b.join(device_id="d2") == 1
        assert a.sent == [{"type": "role", "index": 0}]
        assert b.sent == [{"type": "role", "index": 1}]

    async def test_token_records_device_id(self, registry, connect):
        a = connect()
        await a.join(device_id="d1")
        room = registry.get("r1")
        assert room.player_token == ["d1", ""]
        assert room.leases[0].kind is LeaseKind.OCCUPIED
        assert room.slots[0] is a.session

    async def test_empty_device_id_can_still_sit(self, registry, connect):
        a = connect()
        assert await a.join(device_id="") == 0
        assert registry.get("r1").player_token[0] == ""

    async def test_missing_room_defaults_to_room1(self, registry, connect):
        a = connect()
        await a.send({"type": "join", "deviceId": "d1"})
        assert "room1" in registry
        assert a.session.room_id == "room1"

    async def test_snapshot_sent_after_role(self, registry, connect):
        a = connect()
        await a.join(device_id="d1")
        await a.send({"type": "syncState", "state": {"turn": 3}})
        b = connect()
        await b.join(device_id="d2")
        assert b.sent == [
            {"type": "role", "index": 1},
            {"type": "syncState", "state": {"turn": 3}},
        ]

    async def test_other_members_not_notified_of_join(self, connect):
        a, b = connect(), connect()
        await a.join(device_id="d1")
        a.channel.clear()
        await b.join(device_id="d2")
        assert a.sent == []


class TestSpectators:
    async def test_third_device_spectates_with_ordinal_two(self, registry, connect):
        clients = [connect() for _ in range(4)]
        indexes = [await c.join(device_id=f"d{i}") for i, c in enumerate(clients)]
        assert indexes == [0, 1, 2, 3]
        room = registry.get("r1")
        assert list(room.spectators.queue) == ["d2", "d3"]
        assert clients[3].session.role.is_spectator

    async def test_device_queued_once(self, registry, connect):
        await connect().join(device_id="d1")
        await connect().join(device_id="d2")
        for device_id in ("s", "t", "s"):
            await connect().join(device_id=device_id)
        room = registry.get("r1")
        assert list(room.spectators.queue) == ["s", "t"]
        assert len(room.spectators) == 3

    async def test_anonymous_spectator_not_queued(self, registry, connect):
        await connect().join(device_id="d1")
        await connect().join(device_id="d2")
        c = connect()
        assert await c.join(device_id="") == 2
        room = registry.get("r1")
        assert c.session in room.spectators
        assert list(room.spectators.queue) == []

    async def test_repeated_join_is_ignored(self, registry, connect):
        a = connect()
        await a.join(room="r1", device_id="d1")
        await a.join(room="r2", device_id="d1")
        assert "r2" not in registry
        assert a.session.room_id == "r1"
        assert a.sent == [{"type": "role", "index": 0}]


class TestReclaim:
    async def test_same_device_reclaims_within_lease(self, registry, connect):
        a, b = connect(), connect()
        await a.join(device_id="d1")
        await b.join(device_id="d2")
        await a.send({"type": "syncState", "state": {"board": [1, 2]}})
        await a.disconnect()

        again = connect()
        assert await again.join(device_id="d1") == 0
        assert again.sent == [
            {"type": "role", "index": 0},
            {"type": "syncState", "state": {"board": [1, 2]}},
        ]
        room = registry.get("r1")
        assert room.lease_tasks[0] is None
        assert room.leases[0].kind is LeaseKind.OCCUPIED

    async def test_other_device_cannot_take_leased_slot(self, connect):
        a, b = connect(), connect()
        await a.join(device_id="d1")
        await b.join(device_id="d2")
        await a.disconnect()
        c = connect()
        assert await c.join(device_id="intruder") == 2

    async def test_reclaim_prefers_own_slot_over_free_slot(self, registry, connect):
        a, b = connect(), connect()
        await a.join(device_id="d1")
        await b.join(device_id="d2")
        await b.disconnect()
        await a.disconnect()
        # Slot 1's lease expires first so it is no longer protected
        room = registry.get("r1")
        room.leases[0] = Lease.expiring(now_ms() - 1)
        room.leases[1] = Lease.expiring(now_ms() + 60_000)
        c = connect()
        assert await c.join(device_id="d2") == 1

    async def test_expired_lease_allows_fresh_seat_before_timer_fires(self, registry, connect):
        a, b = connect(), connect()
        await a.join(device_id="d1")
        await b.join(device_id="d2")
        await a.disconnect()
        registry.get("r1").leases[0] = Lease.expiring(now_ms() - 1)
        c = connect()
        assert await c.join(device_id="d9") == 0
        assert registry.get("r1").player_token[0] == "d9"

    async def test_expired_token_no_longer_reclaims(self, registry, connect):
        a, b = connect(), connect()
        await a.join(device_id="d1")
        await b.join(device_id="d2")
        await a.disconnect()
        await wait_for_lease()
        room = registry.get("r1")
        assert room.player_token[0] == ""
        assert room.leases[0].kind is LeaseKind.UNSET
        # Anyone may now sit in slot 0
        c = connect()
        assert await c.join(device_id="d7") == 0


class TestSlotLookups:
    async def test_find_reclaimable_slot_requires_matching_token(self, registry):
        room = registry.get_or_create("x")
        room.player_token[1] = "d1"
        room.leases[1] = Lease.expiring(1_000)
        assert find_reclaimable_slot(room, "d1", now=999) == 1
        assert find_reclaimable_slot(room, "d1", now=1_000) is None
        assert find_reclaimable_slot(room, "d2", now=999) is None
        assert find_reclaimable_slot(room, "", now=999) is None

    async def test_find_free_slot_respects_running_lease(self, registry):
        room = registry.get_or_create("x")
        room.leases[0] = Lease.expiring(1_000)
        assert find_free_slot(room, now=999) == 1
        assert find_free_slot(room, now=1_000) == 0
