from __future__ import annotations

import pytest

from netmapper.discovery import network_addresses, validate_subnet


def test_validate_subnet() -> None:
    network = validate_subnet('192.168.1.0/24')
    assert str(network.network_address) == '192.168.1.0'


def test_validate_subnet_normalises_host_bits() -> None:
    assert str(validate_subnet('192.168.1.77/24')) == '192.168.1.0/24'


@pytest.mark.parametrize('value', ['garbage', 'fe80::/64', '10.0.0.0/16'])
def test_validate_subnet_rejects(value: str) -> None:
    with pytest.raises(ValueError):
        validate_subnet(value)


def test_network_addresses_pairs_hosts_with_port() -> None:
    assert network_addresses('192.168.1.0/30', 5555) == [('192.168.1.1', 5555), ('192.168.1.2', 5555)]


@pytest.mark.parametrize('port', [0, 70000])
def test_network_addresses_rejects_bad_port(port: int) -> None:
    with pytest.raises(ValueError):
        network_addresses('192.168.1.0/30', port)
