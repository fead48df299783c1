"""
Port negotiation.

Finds a single TCP port that can be bound on every candidate address at
once. The probe releases each socket immediately, so another process may
still take the port before the real listeners bind; the session treats
that real bind as authoritative.
"""

import os
import socket
from collections.abc import Callable, Sequence

from lanexpose.exceptions import PortExhaustedError
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_START_PORT = 10000
DEFAULT_MAX_ATTEMPTS = 100
MAX_PORT = 65535

ProbeFunc = Callable[[str, int], None]


def probe_bind(address: str, port: int) -> None:
    """
    Bind and listen on ``address:port``, then release it.

    Uses the same socket options as ``asyncio.start_server`` so the probe
    agrees with the real listener.

    Raises:
        OSError: If the port cannot be bound on this address.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        if os.name == "posix":
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((address, port))
        sock.listen(1)


def find_available_port(
    addresses: Sequence[str],
    start_port: int = DEFAULT_START_PORT,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    probe: ProbeFunc = probe_bind,
) -> int:
    """
    Find the first port at or above ``start_port`` free on all addresses.

    Args:
        addresses: Candidate addresses; every one must accept the port.
        start_port: First port to try.
        max_attempts: Number of consecutive ports to try.
        probe: Bind check raising OSError when a port is unavailable.

    Returns:
        The negotiated port.

    Raises:
        PortExhaustedError: If no port within the budget is free everywhere.
        ValueError: If no addresses are given.
    """
    if not addresses:
        raise ValueError("at least one address is required")

    for port in range(start_port, start_port + max_attempts):
        if port > MAX_PORT:
            break

        available = True
        for address in addresses:
            try:
                probe(address, port)
            except OSError as e:
                logger.debug(f"Port {port} unavailable on {address}: {e}")
                available = False
                break

        if available:
            logger.debug(f"Found available port: {port}")
            return port

    raise PortExhaustedError(start_port, max_attempts)
