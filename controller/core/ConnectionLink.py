from __future__ import annotations

import uuid
from typing import Optional, Union

import websockets

from controller.core.ConnectionState import ConnectionState
from shared.log import get_logger

logger = get_logger(__name__)


class ConnectionLink:
    """Wrapper around the controller WebSocket with lifecycle metadata"""

    def __init__(self, uri: str, connection_id: Optional[str] = None):
        self.id = connection_id or uuid.uuid4().hex[:8]
        self.uri = uri
        self.websocket: Optional[websockets.ClientConnection] = None
        self.state = ConnectionState.CONNECTING

    def __repr__(self) -> str:
        return f"ConnectionLink(id={self.id!r}, uri={self.uri!r}, state={self.state.value})"

    def attach(self, websocket: websockets.ClientConnection) -> None:
        """Record the negotiated connection. The state moves once the open event is handled."""
        self.websocket = websocket

    def mark(self, state: ConnectionState) -> bool:
        """
        Move to ``state``. Terminal states are final: once CLOSED or ERRORED,
        later transitions are ignored and False is returned.
        """
        if self.state.is_terminal:
            logger.debug(f"Link {self.id} already {self.state.value}; ignoring {state.value}")
            return False
        self.state = state
        return True

    async def send_message(self, data: Union[str, bytes]) -> bool:
        """Send one frame without waiting for any reply. Returns False if it was dropped."""
        if self.websocket is None:
            logger.warning(f"Link {self.id} has no open websocket; dropping outbound frame")
            return False
        try:
            await self.websocket.send(data)
            kind = "text" if isinstance(data, str) else "binary"
            logger.debug(f"Sent {kind} frame on link {self.id}")
            return True
        except websockets.exceptions.ConnectionClosed:
            logger.warning(f"Connection closed while sending on link {self.id}")
            return False

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        """Close the WebSocket connection"""
        if self.websocket is None:
            return
        try:
            await self.websocket.close(code=code, reason=reason or "Controller agent shutting down")
        except Exception as e:
            logger.error(f"Error closing connection: {e}")
