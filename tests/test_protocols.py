from __future__ import annotations

import socket
import struct

import pytest

from netmapper.adb import AUTH, CNXN, HEADER_SIZE, STLS, AdbHeader, AdbMessage, AdbProtocol
from netmapper.protocols import PROTOCOLS, get_protocol
from netmapper.session import ProtocolError
from netmapper.ssh import SshProtocol

OKAY = 0x59414B4F


@pytest.fixture
def socket_pair():
    local, peer = socket.socketpair()
    local.settimeout(1.0)
    peer.settimeout(1.0)
    yield local, peer
    local.close()
    peer.close()


def test_connect_message_layout() -> None:
    raw = AdbMessage.connect().to_bytes()
    command, arg0, arg1, length, checksum, magic = struct.unpack('<6I', raw[:HEADER_SIZE])
    payload = raw[HEADER_SIZE:]

    assert command == CNXN
    assert arg0 == 0x01000000
    assert arg1 == 4096
    assert payload == b'host::\x00'
    assert length == len(payload)
    assert checksum == sum(payload)
    assert magic == CNXN ^ 0xFFFFFFFF


def test_header_rejects_bad_magic() -> None:
    raw = struct.pack('<6I', CNXN, 0, 0, 0, 0, 0)
    with pytest.raises(ProtocolError):
        AdbHeader.parse(raw)


def test_header_rejects_short_input() -> None:
    with pytest.raises(ProtocolError):
        AdbHeader.parse(b'\x00' * 10)


@pytest.mark.parametrize('command', [CNXN, AUTH, STLS])
def test_adb_device_answers_handshake(socket_pair, command: int) -> None:
    local, peer = socket_pair
    peer.sendall(AdbMessage(command, 1, 4096, b'device::ro.product.name=test;').to_bytes())

    assert AdbProtocol(local).supports_protocol() is True
    sent = peer.recv(1024)
    assert sent == AdbMessage.connect().to_bytes()


def test_adb_other_command_is_unsupported(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(AdbMessage(OKAY, 0, 0).to_bytes())
    assert AdbProtocol(local).supports_protocol() is False


def test_adb_peer_closing_early_is_unsupported(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(b'HTTP/1.1')
    peer.shutdown(socket.SHUT_WR)
    assert AdbProtocol(local).supports_protocol() is False


def test_adb_garbage_reply_raises(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(b'HTTP/1.1 400 Bad Request\r\n\r\n')
    with pytest.raises(ProtocolError):
        AdbProtocol(local).supports_protocol()


def test_ssh_banner_detected(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(b'SSH-2.0-OpenSSH_9.6\r\n')
    assert SshProtocol(local).supports_protocol() is True


def test_ssh_banner_after_greeting_lines(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(b'Welcome to host\r\nAuthorized use only\r\nSSH-2.0-OpenSSH_9.6\r\n')
    assert SshProtocol(local).supports_protocol() is True


def test_ssh_other_banner_rejected(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(b'220 ftp.example.com FTP server ready\r\n')
    peer.shutdown(socket.SHUT_WR)
    assert SshProtocol(local).supports_protocol() is False


def test_ssh_endless_greeting_is_capped(socket_pair) -> None:
    local, peer = socket_pair
    peer.sendall(b'* still not ssh *\r\n' * 1000)
    assert SshProtocol(local).supports_protocol() is False


def test_ssh_silent_close_rejected(socket_pair) -> None:
    local, peer = socket_pair
    peer.shutdown(socket.SHUT_WR)
    assert SshProtocol(local).supports_protocol() is False


def test_protocol_registry() -> None:
    assert get_protocol('adb').default_port == 5555
    assert get_protocol('ssh').factory is SshProtocol
    assert set(PROTOCOLS) == {'adb', 'ssh'}
    with pytest.raises(ValueError):
        get_protocol('telnet')
