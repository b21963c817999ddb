from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

SocketAddress = tuple[str, int]

DEFAULT_TIMEOUT = 2.0


@dataclass(frozen=True)
class ConnectResult(Generic[T]):
    connected: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def succeeded(cls, value: T) -> ConnectResult[T]:
        return cls(connected=True, value=value)

    @classmethod
    def failed(cls, error: str) -> ConnectResult[Any]:
        return cls(connected=False, error=error)


class SocketConnector:
    """Connection failures come back as a failed ``ConnectResult``; errors from ``work`` propagate."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        if timeout <= 0:
            raise ValueError("Connect timeout must be positive")
        self.timeout = timeout

    def try_connect(self, address: SocketAddress, work: Callable[[socket.socket], T]) -> ConnectResult[T]:
        host, port = address
        try:
            sock = socket.create_connection((host, port), timeout=self.timeout)
        except OSError as exc:
            logger.debug("Connection to %s:%s failed: %s", host, port, exc)
            return ConnectResult.failed(str(exc) or exc.__class__.__name__)

        with sock:
            sock.settimeout(self.timeout)
            return ConnectResult.succeeded(work(sock))
