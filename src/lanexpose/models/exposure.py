"""
Data model for one exposure session.

Every object here is transient: built once per command invocation and
discarded when the session stops.
"""

from dataclasses import dataclass, field

LOOPBACK_HOST = "127.0.0.1"
MANAGEMENT_PORT = 22


@dataclass(frozen=True)
class NetworkInterface:
    """A candidate IPv4 address on a host interface."""

    address: str
    name: str

    @property
    def friendly_name(self) -> str:
        """Human-friendly label for the interface (``Wi-Fi``, ``Ethernet``...)."""
        if self.name.startswith(("en", "wl")):
            return "Wi-Fi"
        if self.name.startswith("eth"):
            return "Ethernet"
        return self.name


@dataclass(frozen=True)
class ExposureTarget:
    """The single upstream every relay in a session forwards to."""

    host: str
    port: int

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def scheme(self) -> str:
        """URL scheme clients should use to reach this target."""
        return "ssh" if self.port == MANAGEMENT_PORT else "http"


@dataclass(frozen=True)
class ProxyInstance:
    """One listener bound on one interface address."""

    listen_address: str
    listen_port: int
    target: ExposureTarget

    @property
    def url(self) -> str:
        return f"{self.target.scheme}://{self.listen_address}:{self.listen_port}"


@dataclass
class RelayOutcome:
    """
    Result of relaying one client connection.

    Attributes:
        peer: Client address as reported by the transport.
        bytes_to_target: Bytes copied client -> target.
        bytes_to_client: Bytes copied target -> client.
        error: The RelayError that ended the relay early, if any.
        cleanup_errors: Non-fatal errors raised while closing sockets.
    """

    peer: str
    bytes_to_target: int = 0
    bytes_to_client: int = 0
    error: Exception | None = None
    cleanup_errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None
