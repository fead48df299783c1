"""
Network interface enumeration.

Finds the IPv4 addresses other devices on the LAN can use to reach this
host: interfaces that are up and not loopback.
"""

import ipaddress
import socket

import psutil

from lanexpose.exceptions import NoInterfaceError
from lanexpose.models.exposure import NetworkInterface
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)


def _is_loopback_interface(stats) -> bool:
    # ``flags`` is only reported by psutil >= 5.9.3
    flags = getattr(stats, "flags", "") or ""
    return "loopback" in flags.split(",")


def _is_usable_ipv4(address: str) -> bool:
    try:
        ip = ipaddress.ip_address(address)
    except ValueError:
        return False
    return ip.version == 4 and not ip.is_loopback


def scan_interfaces() -> list[NetworkInterface]:
    """
    Enumerate candidate IPv4 addresses on up, non-loopback interfaces.

    Returns:
        Addresses in interface enumeration order, without duplicates.

    Raises:
        NoInterfaceError: If no usable address exists on this host.
    """
    addrs_by_iface = psutil.net_if_addrs()
    stats_by_iface = psutil.net_if_stats()

    interfaces: list[NetworkInterface] = []
    seen: set[str] = set()

    for name, addrs in addrs_by_iface.items():
        stats = stats_by_iface.get(name)
        if stats is None or not stats.isup:
            logger.debug(f"Skipping interface {name}: down")
            continue
        if _is_loopback_interface(stats):
            logger.debug(f"Skipping interface {name}: loopback")
            continue

        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if not _is_usable_ipv4(addr.address) or addr.address in seen:
                continue
            seen.add(addr.address)
            interfaces.append(NetworkInterface(address=addr.address, name=name))

    if not interfaces:
        raise NoInterfaceError()

    logger.debug(
        f"Found {len(interfaces)} non-localhost IP(s): "
        + ", ".join(f"{i.address} ({i.name})" for i in interfaces)
    )
    return interfaces
