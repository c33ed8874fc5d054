DEFAULT_ROOM_ID = "room1"

# Two player positions per room; spectator ordinals start right after them.
SLOT_COUNT = 2
FIRST_SPECTATOR_ORDINAL = SLOT_COUNT

ROLE_LEASE_MS = 90_000

# Upper bound on a single outbound frame; a stalled peer counts as a failed delivery.
SEND_TIMEOUT_SECONDS = 5.0

# A room must stay empty this long before it is dropped from the registry.
ROOM_TTL_SECONDS = 15 * 60

# Chat labels shown for each player slot (index 0 -> "P1", index 1 -> "P2").
PLAYER_LABELS: dict[int, str] = {
    0: "P1",
    1: "P2",
}
SPECTATOR_LABEL = "Spectator"

__all__ = [
    "DEFAULT_ROOM_ID",
    "SLOT_COUNT",
    "FIRST_SPECTATOR_ORDINAL",
    "ROLE_LEASE_MS",
    "SEND_TIMEOUT_SECONDS",
    "ROOM_TTL_SECONDS",
    "PLAYER_LABELS",
    "SPECTATOR_LABEL",
]
