"""Host network discovery: candidate interfaces and port negotiation."""

from lanexpose.network.interfaces import scan_interfaces
from lanexpose.network.ports import find_available_port, probe_bind

__all__ = ["find_available_port", "probe_bind", "scan_interfaces"]
