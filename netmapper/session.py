from __future__ import annotations

import socket
from typing import Callable, Protocol


class ProtocolError(RuntimeError):
    """Raised when a peer answers with data the protocol cannot parse."""


class ProtocolSession(Protocol):
    def supports_protocol(self) -> bool: ...


class Message(Protocol):
    def to_bytes(self) -> bytes: ...


ProtocolFactory = Callable[[socket.socket], ProtocolSession]


def recv_exactly(sock: socket.socket, size: int) -> bytes:
    """Read ``size`` bytes, returning fewer only if the peer closes first."""
    chunks: list[bytes] = []
    remaining = size
    while remaining > 0:
        chunk = sock.recv(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)
