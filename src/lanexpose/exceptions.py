"""
Exception classes for lanexpose.

Fatal errors (discovery, negotiation, target resolution, listen) abort the
whole session. RelayError is per connection and never escalated.
"""


class ExposeError(Exception):
    """Base exception for exposure sessions."""

    pass


# =============================================================================
# Fatal Errors
# =============================================================================


class DiscoveryError(ExposeError):
    """No usable network interface could be found."""

    pass


class NoInterfaceError(DiscoveryError):
    """The host has no up, non-loopback IPv4 address."""

    def __init__(self, message: str = "no non-localhost network interfaces found"):
        super().__init__(message)


class NegotiationError(ExposeError):
    """No port is free on every candidate address."""

    pass


class PortExhaustedError(NegotiationError):
    """Attempt budget exhausted while searching for a common free port."""

    def __init__(self, start_port: int, attempts: int):
        self.start_port = start_port
        self.attempts = attempts
        super().__init__(
            f"no available port found after {attempts} attempts "
            f"starting from {start_port}"
        )


class TargetResolutionError(ExposeError):
    """The upstream target could not be determined."""

    pass


class TargetUnavailableError(TargetResolutionError):
    """Container not running or its port signal is missing."""

    pass


class ListenError(ExposeError):
    """Binding the real listener failed after negotiation succeeded."""

    def __init__(self, address: str, port: int, reason: Exception | str):
        self.address = address
        self.port = port
        self.reason = reason
        super().__init__(f"failed to listen on {address}:{port}: {reason}")


# =============================================================================
# Non-Fatal Errors
# =============================================================================


class RelayError(ExposeError):
    """A single connection could not be relayed."""

    def __init__(self, peer: str, message: str):
        self.peer = peer
        super().__init__(f"[{peer}] {message}")
