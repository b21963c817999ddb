from __future__ import annotations

from dataclasses import dataclass

from netmapper.adb import AdbProtocol
from netmapper.session import ProtocolFactory
from netmapper.ssh import SshProtocol


@dataclass(frozen=True)
class ProtocolEntry:
    name: str
    default_port: int
    factory: ProtocolFactory


PROTOCOLS: dict[str, ProtocolEntry] = {
    "adb": ProtocolEntry(name="adb", default_port=5555, factory=AdbProtocol),
    "ssh": ProtocolEntry(name="ssh", default_port=22, factory=SshProtocol),
}


def get_protocol(name: str) -> ProtocolEntry:
    try:
        return PROTOCOLS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown protocol: {name}") from exc
