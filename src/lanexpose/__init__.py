"""
lanexpose: expose a local container service on every LAN interface.

Listens on all non-loopback IPv4 addresses at one negotiated port and relays
raw TCP streams to the resolved target for the lifetime of one command.
"""

__version__ = "0.1.0"
