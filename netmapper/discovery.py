from __future__ import annotations

import ipaddress

from netmapper.connector import SocketAddress

MAX_SUBNET_ADDRESSES = 4096


def validate_subnet(value: str) -> ipaddress.IPv4Network:
    try:
        network = ipaddress.ip_network(value, strict=False)
    except ValueError as exc:
        raise ValueError("Invalid subnet format") from exc
    if not isinstance(network, ipaddress.IPv4Network):
        raise ValueError("Only IPv4 subnets are supported")
    if network.num_addresses > MAX_SUBNET_ADDRESSES:
        raise ValueError(f"Subnet too large; max {MAX_SUBNET_ADDRESSES} addresses")
    return network


def validate_port(port: int) -> int:
    if not 1 <= port <= 65535:
        raise ValueError("Port must be between 1 and 65535")
    return port


def network_addresses(subnet: str, port: int) -> list[SocketAddress]:
    network = validate_subnet(subnet)
    validate_port(port)
    return [(str(ip), port) for ip in network.hosts()]
