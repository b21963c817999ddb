from __future__ import annotations

import logging
import socket
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Hashable, Iterable, Protocol, TypeVar

from netmapper.session import ProtocolError, ProtocolFactory

logger = logging.getLogger(__name__)

A = TypeVar("A", bound=Hashable)

DEFAULT_MAX_WORKERS = 128


class ConnectionOutcome(Protocol):
    connected: bool
    value: Any
    error: str | None


class ConnectionProvider(Protocol):
    def try_connect(self, address: Any, work: Callable[[socket.socket], Any]) -> ConnectionOutcome: ...


class ProbeOutcome(str, Enum):
    UNREACHABLE = "unreachable"
    UNSUPPORTED = "unsupported"
    ERROR = "error"
    SUPPORTED = "supported"


@dataclass(frozen=True)
class ProbeResult(Generic[A]):
    address: A
    outcome: ProbeOutcome
    detail: str | None = None

    @property
    def supported(self) -> bool:
        return self.outcome is ProbeOutcome.SUPPORTED


class NetworkMapper(Generic[A]):
    """Finds the hosts in a set of addresses that speak one protocol."""

    def __init__(
        self,
        connector: ConnectionProvider,
        protocol_factory: ProtocolFactory,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.connector = connector
        self.protocol_factory = protocol_factory
        self.max_workers = max_workers

    def _check(self, sock: socket.socket) -> bool:
        return bool(self.protocol_factory(sock).supports_protocol())

    def probe(self, address: A) -> ProbeResult[A]:
        """Probe one address and report how it ended. Never raises for network or protocol failures."""
        try:
            connection = self.connector.try_connect(address, self._check)
        except (OSError, ProtocolError) as exc:
            logger.debug("Protocol check against %s failed: %s", address, exc)
            return ProbeResult(address, ProbeOutcome.ERROR, str(exc) or exc.__class__.__name__)
        except Exception as exc:
            logger.warning("Unexpected error probing %s: %r", address, exc)
            return ProbeResult(address, ProbeOutcome.ERROR, str(exc) or exc.__class__.__name__)

        if not connection.connected:
            return ProbeResult(address, ProbeOutcome.UNREACHABLE, connection.error)
        if connection.value:
            logger.debug("%s supports the protocol", address)
            return ProbeResult(address, ProbeOutcome.SUPPORTED)
        return ProbeResult(address, ProbeOutcome.UNSUPPORTED)

    def ping(self, address: A) -> bool:
        return self.probe(address).supported

    def probe_all(
        self,
        addresses: Iterable[A],
        on_result: Callable[[ProbeResult[A]], None] | None = None,
    ) -> list[ProbeResult[A]]:
        # Results arrive in completion order; on_result runs on the calling thread.
        targets = list(dict.fromkeys(addresses))
        if not targets:
            return []

        results: list[ProbeResult[A]] = []
        workers = min(self.max_workers, len(targets))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="netmapper-probe") as executor:
            futures = [executor.submit(self.probe, address) for address in targets]
            for future in as_completed(futures):
                result = future.result()
                if on_result is not None:
                    on_result(result)
                results.append(result)
        return results

    def scan(
        self,
        addresses: Iterable[A],
        on_result: Callable[[ProbeResult[A]], None] | None = None,
    ) -> list[A]:
        results = self.probe_all(addresses, on_result=on_result)
        found = [result.address for result in results if result.supported]
        if results:
            logger.info("Scanned %d addresses, %d support the protocol", len(results), len(found))
        return found
