from __future__ import annotations

import socket

MAX_LINE_LENGTH = 255
# Servers may send other lines before the identification string.
MAX_GREETING_BYTES = 8192


class SshProtocol:
    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def _read_line(self, limit: int) -> bytes:
        line = bytearray()
        while len(line) < limit:
            chunk = self._sock.recv(1)
            if not chunk:
                break
            line += chunk
            if chunk == b"\n":
                break
        return bytes(line)

    def supports_protocol(self) -> bool:
        received = 0
        while received < MAX_GREETING_BYTES:
            line = self._read_line(min(MAX_LINE_LENGTH, MAX_GREETING_BYTES - received))
            if not line:
                return False
            if line.startswith(b"SSH-"):
                return True
            received += len(line)
        return False
