import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional, Union

import pytest
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep test runs from writing logs/lightrain.log
os.environ.setdefault("LIGHTRAIN_LOG_FILE", "0")


_ABNORMAL = object()


class DummyWebSocket:
    """Stand-in for a websockets client connection, fed by the test."""

    def __init__(self, order: Optional[list] = None) -> None:
        self.sent_messages: List[Union[str, bytes]] = []
        self.closed = False
        self.close_code: Optional[int] = None
        self.close_reason: Optional[str] = None
        self.order = order if order is not None else []
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, data: Union[str, bytes]) -> None:
        self.order.append(("send", data))
        self.sent_messages.append(data)

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self.closed = True
        self.deliver_close(code, reason)

    def deliver(self, data: Union[str, bytes]) -> None:
        self._inbox.put_nowait(data)

    def deliver_close(self, code: int = 1000, reason: str = "") -> None:
        self._inbox.put_nowait(Close(code, reason))

    def deliver_failure(self) -> None:
        self._inbox.put_nowait(_ABNORMAL)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._inbox.get()
        if item is _ABNORMAL:
            self.close_code, self.close_reason = 1006, ""
            raise ConnectionClosedError(None, None)
        if isinstance(item, Close):
            self.close_code, self.close_reason = item.code, item.reason
            if item.code in (1000, 1001):
                raise StopAsyncIteration
            raise ConnectionClosedError(item, item, True)
        return item


class FakeConnector:
    """Connector that hands out prepared websockets (or raises prepared errors) in order."""

    def __init__(self, *results) -> None:
        self.calls: List[str] = []
        self._results = list(results)

    async def __call__(self, uri: str):
        self.calls.append(uri)
        result = self._results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result


class OrderHandler(logging.Handler):
    def __init__(self, order: list) -> None:
        super().__init__(level=logging.DEBUG)
        self.order = order

    def emit(self, record: logging.LogRecord) -> None:
        self.order.append(("log", record.levelname, record.getMessage()))


@pytest.fixture
def dummy_websocket():
    return DummyWebSocket


@pytest.fixture
def fake_connector():
    return FakeConnector


class RecordingHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    def messages(self, level: Optional[int] = None) -> List[str]:
        return [r.getMessage() for r in self.records if level is None or r.levelno == level]


@pytest.fixture
def agent_logs():
    """Records from the agent logger, which does not propagate to root."""
    import controller.agent  # noqa: F401  configure the logger before attaching

    handler = RecordingHandler()
    agent_logger = logging.getLogger("controller.agent")
    agent_logger.addHandler(handler)
    yield handler
    agent_logger.removeHandler(handler)


@pytest.fixture
def event_order():
    """Shared list recording agent log records and websocket sends in order."""
    import controller.agent  # noqa: F401

    order: list = []
    handler = OrderHandler(order)
    agent_logger = logging.getLogger("controller.agent")
    agent_logger.addHandler(handler)
    yield order
    agent_logger.removeHandler(handler)


async def wait_for(predicate, timeout: float = 2.0) -> bool:
    loop = asyncio.get_running_loop()
    end = loop.time() + timeout
    while loop.time() < end:
        if predicate():
            return True
        await asyncio.sleep(0.01)
    return False


@pytest.fixture
def wait_until():
    return wait_for
