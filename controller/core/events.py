"""
Lifecycle events for the controller connection.

The transport pump turns whatever the websocket does into one of these and
queues it; the agent's dispatcher is the only consumer. Events carry data
only.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union

from controller.core.ConnectionState import EventType

# RFC 6455 "abnormal closure": no close frame was exchanged
ABNORMAL_CLOSURE = 1006


class TransportError(Exception):
    """Any failure to establish or keep the controller connection."""

    def __init__(self, description: str) -> None:
        super().__init__(description)
        self.description = description

    @classmethod
    def from_exception(cls, exc: BaseException) -> TransportError:
        detail = str(exc) or exc.__class__.__name__
        error = cls(f"{exc.__class__.__name__}: {detail}")
        error.__cause__ = exc
        return error


@dataclass(frozen=True)
class Opened:
    uri: str
    type: EventType = field(default=EventType.OPENED, init=False)

    def describe(self) -> str:
        return f"Opened(uri={self.uri})"


@dataclass(frozen=True)
class Errored:
    error: TransportError
    type: EventType = field(default=EventType.ERRORED, init=False)

    def describe(self) -> str:
        return f"Errored({self.error.description})"


@dataclass(frozen=True)
class MessageReceived:
    data: Union[str, bytes]
    type: EventType = field(default=EventType.MESSAGE_RECEIVED, init=False)

    def describe(self) -> str:
        return str(self.data) if isinstance(self.data, str) else repr(self.data)


@dataclass(frozen=True)
class Closed:
    code: Optional[int]
    reason: str = ""
    was_clean: bool = True
    type: EventType = field(default=EventType.CLOSED, init=False)

    def describe(self) -> str:
        return f"Closed(code={self.code}, reason={self.reason!r}, clean={self.was_clean})"


TransportEvent = Union[Opened, Errored, MessageReceived, Closed]
