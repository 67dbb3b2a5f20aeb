#!/usr/bin/env python3
"""
Lightrain controller connection agent.

Owns exactly one WebSocket connection to the local lightrain controller,
greets it once the handshake completes and logs every lifecycle event.
There is no retry: a failure or closure is logged and the connection is
released; only another explicit ``open()`` dials again.

Per connection, two tasks run on the event loop:
- the transport pump connects and reads frames, turning each transport
  notification into an event on a queue;
- the dispatcher is the single consumer of that queue and runs the
  handlers one at a time, so no two handlers ever overlap.
"""

from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, Dict, Optional, Set

import websockets

from controller.core.ConnectionLink import ConnectionLink
from controller.core.ConnectionState import ConnectionState, EventType
from controller.core.events import (
    ABNORMAL_CLOSURE,
    Closed,
    Errored,
    MessageReceived,
    Opened,
    TransportError,
    TransportEvent,
)
from shared.config import CONTROLLER_ENDPOINT, GREETING, ControllerEndpoint
from shared.log import get_logger, log_connection_event

logger = get_logger(__name__)


Connector = Callable[[str], Awaitable[websockets.ClientConnection]]
EventHandler = Callable[[ConnectionLink, TransportEvent], Awaitable[None]]


class ConnectionAgent:
    """
    Single-connection client for the lightrain controller endpoint.

    ``connector`` is the transport factory; it is called with the fixed
    controller URI and defaults to ``websockets.connect``.
    """

    def __init__(self, connector: Optional[Connector] = None) -> None:
        self.endpoint: ControllerEndpoint = CONTROLLER_ENDPOINT
        self._connector: Connector = connector or websockets.connect
        self._link: Optional[ConnectionLink] = None
        self._current_id: Optional[str] = None
        self._state: Optional[ConnectionState] = None
        self._closed: Optional[asyncio.Event] = None
        self._background_tasks: Set[asyncio.Task] = set()
        self._handlers: Dict[EventType, EventHandler] = {
            EventType.OPENED: self.on_open,
            EventType.ERRORED: self.on_error,
            EventType.MESSAGE_RECEIVED: self.on_message,
            EventType.CLOSED: self.on_close,
        }

    @property
    def uri(self) -> str:
        return self.endpoint.uri

    @property
    def state(self) -> Optional[ConnectionState]:
        """State of the most recent connection, None before the first open()."""
        return self._state

    @property
    def link(self) -> Optional[ConnectionLink]:
        """The owned connection, or None once it has been released."""
        return self._link

    def _track_background_task(self, task: asyncio.Task) -> None:
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # ========================================
    #           PUBLIC CONTRACT
    # ========================================

    def open(self) -> ConnectionLink:
        """
        Start connecting to the controller and return immediately.

        Must be called with a running event loop. While a connection is
        still owned (connecting or open) no second one is created; the
        existing link is returned instead.
        """
        loop = asyncio.get_running_loop()

        if self._link is not None and not self._link.state.is_terminal:
            logger.warning(f"Connection {self._link.id} to {self.uri} is still {self._link.state.value}; not opening another")
            return self._link

        link = ConnectionLink(self.uri)
        events: asyncio.Queue = asyncio.Queue()
        closed = asyncio.Event()

        self._link = link
        self._current_id = link.id
        self._state = link.state
        self._closed = closed

        log_connection_event(logger, "debug", f"Connecting to {self.uri}",
                             connection_id=link.id, endpoint=self.endpoint.hostport)
        self._track_background_task(loop.create_task(self._run_transport(link, events)))
        self._track_background_task(loop.create_task(self._dispatch(link, events, closed)))
        return link

    async def wait_closed(self) -> None:
        """Wait until the current connection's close event has been handled."""
        if self._closed is not None:
            await self._closed.wait()

    # ========================================
    #           TRANSPORT PUMP
    # ========================================

    async def _run_transport(self, link: ConnectionLink, events: asyncio.Queue) -> None:
        """Connect, then forward every frame and the final closure as events."""
        try:
            websocket = await self._connector(link.uri)
        except Exception as e:
            events.put_nowait(Errored(TransportError.from_exception(e)))
            events.put_nowait(Closed(code=ABNORMAL_CLOSURE, was_clean=False))
            return

        link.attach(websocket)
        events.put_nowait(Opened(link.uri))

        was_clean = True
        try:
            async for message in websocket:
                events.put_nowait(MessageReceived(message))
        except websockets.exceptions.ConnectionClosedError as e:
            # Peer-sent close codes other than 1000/1001 still count as a close handshake
            was_clean = e.rcvd is not None and e.sent is not None
            if e.rcvd is None:
                events.put_nowait(Errored(TransportError.from_exception(e)))
        except asyncio.CancelledError:
            await link.close()
            raise
        except Exception as e:
            logger.error(f"Unexpected failure reading from {link.uri}: {e}", exc_info=True)
            was_clean = False
            events.put_nowait(Errored(TransportError.from_exception(e)))

        code = websocket.close_code
        events.put_nowait(Closed(
            code=code if code is not None else ABNORMAL_CLOSURE,
            reason=websocket.close_reason or "",
            was_clean=was_clean,
        ))

    # ========================================
    #           EVENT DISPATCH
    # ========================================

    async def _dispatch(self, link: ConnectionLink, events: asyncio.Queue, closed: asyncio.Event) -> None:
        """Run handlers for ``link`` in arrival order until its Closed event."""
        try:
            while True:
                event: TransportEvent = await events.get()
                try:
                    await self._handlers[event.type](link, event)
                except Exception as exc:
                    logger.error("Error handling %s on %s: %s", event.type.value, link.id, exc, exc_info=True)
                if event.type is EventType.CLOSED:
                    return
        finally:
            closed.set()

    def _transition(self, link: ConnectionLink, state: ConnectionState) -> None:
        if link.mark(state) and link.id == self._current_id:
            self._state = link.state

    def _release(self, link: ConnectionLink) -> None:
        if self._link is link:
            self._link = None

    def _log(self, level: str, message: str, link: ConnectionLink, event: TransportEvent) -> None:
        log_connection_event(logger, level, message, connection_id=link.id,
                             endpoint=self.endpoint.hostport, event=event.type.value)

    # ========================================
    #           LIFECYCLE HANDLERS
    # ========================================

    async def on_open(self, link: ConnectionLink, event: Opened) -> None:
        self._transition(link, ConnectionState.OPEN)
        self._log("info", f"open: {event.describe()}", link, event)

        await link.send_message(GREETING)

    async def on_error(self, link: ConnectionLink, event: Errored) -> None:
        self._transition(link, ConnectionState.ERRORED)
        self._log("error", f"error: {event.describe()}", link, event)
        self._release(link)

    async def on_message(self, link: ConnectionLink, event: MessageReceived) -> None:
        self._log("info", f"message: {event.describe()}", link, event)

    async def on_close(self, link: ConnectionLink, event: Closed) -> None:
        self._transition(link, ConnectionState.CLOSED)
        self._log("info", f"close: {event.describe()}", link, event)
        self._release(link)
