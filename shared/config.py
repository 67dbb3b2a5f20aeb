"""
Lightrain controller configuration.

The controller endpoint is fixed: the agent always dials the local
lightrain controller socket and never reads the target from the environment.
Only logging is tunable, through the variables read by ``LogSettings``.
"""

from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import os

from shared.utils import is_ipv4_host, is_valid_port, is_ws_uri


@dataclass(frozen=True)
class ControllerEndpoint:
    host: str
    port: int
    path: str
    scheme: str = "ws"

    def __post_init__(self) -> None:
        if not is_ipv4_host(self.host):
            raise ValueError(f"Controller host must be an IPv4 address: {self.host!r}")
        if not is_valid_port(self.port):
            raise ValueError(f"Controller port out of range: {self.port!r}")
        if not self.path.startswith("/"):
            raise ValueError(f"Controller path must be absolute: {self.path!r}")
        if not is_ws_uri(self.uri):
            raise ValueError(f"Not a WebSocket URI: {self.uri!r}")

    @property
    def hostport(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def uri(self) -> str:
        return f"{self.scheme}://{self.hostport}{self.path}"


CONTROLLER_ENDPOINT = ControllerEndpoint(
    host="127.0.0.1",
    port=5776,
    path="/**lightrain_controller**/",
)
CONTROLLER_URI = CONTROLLER_ENDPOINT.uri

# Sent once, right after the handshake completes
GREETING = "Hello Client"


@dataclass(frozen=True)
class LogSettings:
    """Logging knobs, resolved from the environment at logger setup time."""

    level: Optional[str] = None
    log_dir: Path = Path("logs")
    log_to_file: bool = True
    environment: str = ""

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("dev", "development")

    @classmethod
    def from_env(cls) -> "LogSettings":
        return cls(
            level=os.getenv("LIGHTRAIN_LOG_LEVEL") or None,
            log_dir=Path(os.getenv("LIGHTRAIN_LOG_DIR", "logs")),
            log_to_file=os.getenv("LIGHTRAIN_LOG_FILE", "1").strip().lower() not in ("0", "false", "no", "off"),
            environment=os.getenv("PYTHON_ENV", ""),
        )
