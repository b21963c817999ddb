from __future__ import annotations

import socket
import struct
from dataclasses import dataclass

from netmapper.session import ProtocolError, recv_exactly

CNXN = 0x4E584E43
AUTH = 0x48545541
STLS = 0x534C5453

ADB_VERSION = 0x01000000
MAX_DATA = 4096
HEADER_SIZE = 24

_HEADER = struct.Struct("<6I")


def _checksum(payload: bytes) -> int:
    return sum(payload) & 0xFFFFFFFF


@dataclass(frozen=True)
class AdbMessage:
    command: int
    arg0: int
    arg1: int
    payload: bytes = b""

    @property
    def magic(self) -> int:
        return self.command ^ 0xFFFFFFFF

    def to_bytes(self) -> bytes:
        header = _HEADER.pack(
            self.command,
            self.arg0,
            self.arg1,
            len(self.payload),
            _checksum(self.payload),
            self.magic,
        )
        return header + self.payload

    @classmethod
    def connect(cls, system_identity: str = "host::") -> AdbMessage:
        return cls(CNXN, ADB_VERSION, MAX_DATA, system_identity.encode() + b"\0")


@dataclass(frozen=True)
class AdbHeader:
    command: int
    arg0: int
    arg1: int
    data_length: int
    data_checksum: int

    @classmethod
    def parse(cls, raw: bytes) -> AdbHeader:
        if len(raw) != HEADER_SIZE:
            raise ProtocolError(f"ADB header must be {HEADER_SIZE} bytes, got {len(raw)}")
        command, arg0, arg1, data_length, data_checksum, magic = _HEADER.unpack(raw)
        if magic != command ^ 0xFFFFFFFF:
            raise ProtocolError(f"ADB header magic mismatch for command {command:#010x}")
        return cls(command, arg0, arg1, data_length, data_checksum)


class AdbProtocol:
    """A device answers CNXN with CNXN, with AUTH when keys are required, or with STLS for TLS pairing."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock = sock

    def supports_protocol(self) -> bool:
        self._sock.sendall(AdbMessage.connect().to_bytes())
        raw = recv_exactly(self._sock, HEADER_SIZE)
        if len(raw) < HEADER_SIZE:
            return False
        header = AdbHeader.parse(raw)
        return header.command in (CNXN, AUTH, STLS)
