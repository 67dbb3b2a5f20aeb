from __future__ import annotations

from enum import Enum
from typing import FrozenSet


class ConnectionState(str, Enum):
    """Lifecycle of the single controller connection."""

    CONNECTING = "CONNECTING"    # open() called, handshake in flight
    OPEN = "OPEN"                # handshake completed, greeting sent from here
    CLOSED = "CLOSED"            # transport reported closure
    ERRORED = "ERRORED"          # transport reported a failure

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES: FrozenSet[ConnectionState] = frozenset(
    {ConnectionState.CLOSED, ConnectionState.ERRORED}
)


class EventType(str, Enum):
    """Lifecycle notifications delivered by the transport."""

    OPENED = "OPENED"
    ERRORED = "ERRORED"
    MESSAGE_RECEIVED = "MESSAGE_RECEIVED"
    CLOSED = "CLOSED"

