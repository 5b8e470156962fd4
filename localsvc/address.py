from __future__ import annotations

import ipaddress
import logging
import socket

import psutil

from .errors import AddressResolutionError
from .events import log_event
from .settings import Settings

logger = logging.getLogger(__name__)


def _ipv4_addresses(addrs) -> list[str]:
    return [a.address for a in addrs if a.family == socket.AF_INET and a.address]


def _usable(address: str) -> bool:
    ip = ipaddress.ip_address(address)
    return not (ip.is_loopback or ip.is_link_local or ip.is_unspecified)


def address_of_interface(name: str) -> str:
    """Return the first IPv4 address bound to interface ``name``."""
    interfaces = psutil.net_if_addrs()
    if name not in interfaces:
        raise AddressResolutionError(f"Network interface {name!r} not found")
    addresses = _ipv4_addresses(interfaces[name])
    if not addresses:
        raise AddressResolutionError(f"Network interface {name!r} has no IPv4 address")
    return addresses[0]


def guess_address() -> str:
    """Pick a non-loopback IPv4 address of this host, private ranges first."""
    candidates: list[str] = []
    for name, addrs in psutil.net_if_addrs().items():
        for address in _ipv4_addresses(addrs):
            if _usable(address):
                candidates.append(address)
    if not candidates:
        raise AddressResolutionError("No non-loopback IPv4 address found on this host")
    private = [a for a in candidates if ipaddress.ip_address(a).is_private]
    return (private or candidates)[0]


def resolve_address(settings: Settings) -> str:
    """Address every registration is advertised under.

    Order: explicit address, then explicit interface, then the heuristic.
    """
    if settings.advertise_address:
        # Hostnames are accepted as-is; Consul stores whatever we send.
        return settings.advertise_address

    if settings.iface:
        address = address_of_interface(settings.iface)
        log_event("DEBUG", f"Using address of interface {settings.iface}", logger, address=address)
        return address

    address = guess_address()
    log_event("DEBUG", "Guessed host address", logger, address=address)
    return address
