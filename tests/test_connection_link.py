import logging

import pytest
from websockets.exceptions import ConnectionClosedOK
from websockets.frames import Close

from controller.core.ConnectionLink import ConnectionLink
from controller.core.ConnectionState import ConnectionState, EventType
from controller.core.events import Closed, Errored, MessageReceived, Opened, TransportError
from shared.config import CONTROLLER_URI


class ClosedWebSocket:
    close_code = 1000
    close_reason = "bye"

    async def send(self, data):
        raise ConnectionClosedOK(Close(1000, "bye"), Close(1000, "bye"), True)

    async def close(self, code=1000, reason=None):
        raise RuntimeError("already gone")


def test_new_link_is_connecting():
    link = ConnectionLink(CONTROLLER_URI)

    assert link.state is ConnectionState.CONNECTING
    assert link.websocket is None
    assert len(link.id) == 8
    assert CONTROLLER_URI in repr(link)


def test_terminal_states_are_final():
    link = ConnectionLink(CONTROLLER_URI, connection_id="abc")

    assert link.mark(ConnectionState.OPEN) is True
    assert link.mark(ConnectionState.ERRORED) is True
    assert link.mark(ConnectionState.CLOSED) is False
    assert link.state is ConnectionState.ERRORED


@pytest.mark.asyncio
async def test_send_on_closed_connection_is_dropped(link_logs):
    link = ConnectionLink(CONTROLLER_URI, connection_id="0badf00d")
    link.attach(ClosedWebSocket())
    link.mark(ConnectionState.OPEN)

    assert await link.send_message("Hello Client") is False
    assert (logging.WARNING, "Connection closed while sending on link 0badf00d") in link_logs


@pytest.mark.asyncio
async def test_send_and_close_use_the_websocket(dummy_websocket):
    ws = dummy_websocket()
    link = ConnectionLink(CONTROLLER_URI)
    link.attach(ws)
    link.mark(ConnectionState.OPEN)

    assert await link.send_message("ping") is True
    await link.close()

    assert ws.sent_messages == ["ping"]
    assert ws.closed is True


@pytest.mark.asyncio
async def test_close_errors_are_logged_not_raised():
    link = ConnectionLink(CONTROLLER_URI)
    link.attach(ClosedWebSocket())

    await link.close()


def test_terminal_states():
    assert ConnectionState.CLOSED.is_terminal
    assert ConnectionState.ERRORED.is_terminal
    assert not ConnectionState.CONNECTING.is_terminal
    assert not ConnectionState.OPEN.is_terminal


def test_event_descriptors():
    cause = ConnectionRefusedError(111, "Connection refused")
    error = TransportError.from_exception(cause)

    assert error.__cause__ is cause
    assert Opened(CONTROLLER_URI).describe() == f"Opened(uri={CONTROLLER_URI})"
    assert Errored(error).describe() == "Errored(ConnectionRefusedError: [Errno 111] Connection refused)"
    assert MessageReceived("status:ready").describe() == "status:ready"
    assert Closed(1000, "done").describe() == "Closed(code=1000, reason='done', clean=True)"
    assert Closed(1006, was_clean=False).type is EventType.CLOSED


class LinkLogHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.messages = []

    def emit(self, record):
        self.messages.append((record.levelno, record.getMessage()))


@pytest.fixture
def link_logs():
    handler = LinkLogHandler()
    link_logger = logging.getLogger("controller.core.ConnectionLink")
    link_logger.addHandler(handler)
    yield handler.messages
    link_logger.removeHandler(handler)


@pytest.mark.asyncio
async def test_sent_frames_are_logged_by_kind(dummy_websocket, link_logs):
    link = ConnectionLink(CONTROLLER_URI, connection_id="f00dcafe")
    link.attach(dummy_websocket())

    await link.send_message("Hello Client")
    await link.send_message(b"\x00\x01")

    debug = [m for level, m in link_logs if level == logging.DEBUG]
    assert debug == ["Sent text frame on link f00dcafe", "Sent binary frame on link f00dcafe"]
