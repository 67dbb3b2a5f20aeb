"""
Small checks the endpoint configuration runs before a URI is ever handed to
the transport, so a typo fails at import time instead of at connect time.
"""

from __future__ import annotations
from typing import Optional
from urllib.parse import urlsplit

# ========================================
#           ENDPOINT VALIDATION HELPERS
# ========================================

_WS_SCHEMES = ("ws", "wss")


def is_ipv4_host(s: str) -> bool:
    """
    Accepts 'A.B.C.D' where every part is a number between 0 and 255.
    """
    parts = s.split('.')
    if len(parts) != 4:
        return False
    return all(p.isdigit() and 0 <= int(p) <= 255 for p in parts)


def is_valid_port(port: int) -> bool:
    return isinstance(port, int) and 0 < port <= 65535


def is_ws_uri(s: str) -> bool:
    """
    True for 'ws://host:port/path' style URIs with an explicit host.
    """
    try:
        parts = urlsplit(s)
        port: Optional[int] = parts.port
    except ValueError:
        return False
    if parts.scheme not in _WS_SCHEMES or not parts.hostname:
        return False
    return port is None or is_valid_port(port)
