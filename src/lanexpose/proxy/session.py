"""
Exposure session.

Owns one listener per candidate interface, all bound to the same negotiated
port and forwarding to the same target, and one relay task per accepted
connection.

Lifecycle:
    IDLE -> NEGOTIATING -> RUNNING -> SHUTTING_DOWN -> STOPPED

A session is either fully bound on every interface or never reaches
RUNNING. A fatal listener error or an operator interrupt shuts the whole
session down; per-connection relay failures are only logged.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable

from lanexpose.exceptions import ListenError
from lanexpose.models.enums import SessionState
from lanexpose.models.exposure import (
    ExposureTarget,
    NetworkInterface,
    ProxyInstance,
    RelayOutcome,
)
from lanexpose.network.interfaces import scan_interfaces
from lanexpose.network.ports import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_START_PORT,
    ProbeFunc,
    find_available_port,
    probe_bind,
)
from lanexpose.proxy.bind_connection import DEFAULT_CHUNK_SIZE
from lanexpose.proxy.relay import ConnectionRelay, DialFunc
from lanexpose.proxy.target import TargetResolver
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)

ClientCallback = Callable[[asyncio.StreamReader, asyncio.StreamWriter], None]
ListenFunc = Callable[[ClientCallback, str, int], Awaitable[asyncio.AbstractServer]]

MAX_RECORDED_OUTCOMES = 256


class ExposureSession:
    """
    One LAN exposure for the lifetime of a single command invocation.

    Usage:
        session = ExposureSession(ExplicitPortResolver(3000))
        await session.start()
        for proxy in session.proxies:
            print(proxy.url)
        await session.wait()  # until request_shutdown() or a listener fails
    """

    def __init__(
        self,
        resolver: TargetResolver,
        scanner: Callable[[], list[NetworkInterface]] = scan_interfaces,
        *,
        start_port: int = DEFAULT_START_PORT,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        probe: ProbeFunc = probe_bind,
        listen: ListenFunc | None = None,
        dial: DialFunc | None = None,
        dial_timeout: float = 10.0,
        close_timeout: float = 1.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Initialize the session. Nothing is scanned or bound until start().

        Args:
            resolver: Determines the upstream target.
            scanner: Returns candidate interfaces.
            start_port: First port tried during negotiation.
            max_attempts: Ports tried before negotiation gives up.
            probe: Bind check used during negotiation.
            listen: Listener factory, ``asyncio.start_server`` by default.
            dial: Upstream connection factory used by every relay.
            dial_timeout: Seconds each relay may spend connecting upstream.
            close_timeout: Seconds allowed for each socket close.
            chunk_size: Maximum bytes copied per read.
        """
        self._resolver = resolver
        self._scanner = scanner
        self._start_port = start_port
        self._max_attempts = max_attempts
        self._probe = probe
        self._listen = listen or asyncio.start_server
        self._dial = dial
        self._dial_timeout = dial_timeout
        self._close_timeout = close_timeout
        self._chunk_size = chunk_size

        self._state = SessionState.IDLE
        self._interfaces: list[NetworkInterface] = []
        self._port: int | None = None
        self._target: ExposureTarget | None = None
        self._proxies: list[ProxyInstance] = []
        self._servers: list[asyncio.AbstractServer] = []
        self._listener_tasks: list[asyncio.Task] = []
        self._relay_tasks: set[asyncio.Task] = set()

        # Seen by every relay; set once when shutdown begins
        self._cancelled = asyncio.Event()
        # Set by an interrupt or the first fatal listener error
        self._stop_requested = asyncio.Event()
        self._teardown_task: asyncio.Task | None = None

        self._fatal_error: Exception | None = None
        self._outcomes: deque[RelayOutcome] = deque(maxlen=MAX_RECORDED_OUTCOMES)
        self._cleanup_errors: list[Exception] = []
        self.connections_total = 0
        self.relay_failures = 0

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def interfaces(self) -> list[NetworkInterface]:
        return list(self._interfaces)

    @property
    def port(self) -> int | None:
        return self._port

    @property
    def target(self) -> ExposureTarget | None:
        return self._target

    @property
    def proxies(self) -> list[ProxyInstance]:
        return list(self._proxies)

    @property
    def outcomes(self) -> list[RelayOutcome]:
        """Most recent relay outcomes, oldest first."""
        return list(self._outcomes)

    @property
    def active_connections(self) -> int:
        return len(self._relay_tasks)

    @property
    def fatal_error(self) -> Exception | None:
        return self._fatal_error

    @property
    def cleanup_errors(self) -> list[Exception]:
        """Non-fatal errors raised while closing listeners."""
        return list(self._cleanup_errors)

    def _set_state(self, state: SessionState) -> None:
        logger.debug(f"Session state: {self._state.value} -> {state.value}")
        self._state = state

    # =========================================================================
    # Start
    # =========================================================================

    async def start(self) -> None:
        """
        Discover interfaces, negotiate the port, resolve the target and bind.

        Raises:
            DiscoveryError, NegotiationError, TargetResolutionError,
            ListenError: The session moves straight to STOPPED.
            RuntimeError: If the session was already started.
        """
        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"session cannot start from state {self._state.value}")
        self._set_state(SessionState.NEGOTIATING)

        try:
            logger.debug("Scanning network interfaces...")
            self._interfaces = list(self._scanner())
            addresses = [iface.address for iface in self._interfaces]

            logger.debug(
                f"Searching for available port starting from {self._start_port}..."
            )
            self._port = find_available_port(
                addresses,
                start_port=self._start_port,
                max_attempts=self._max_attempts,
                probe=self._probe,
            )

            logger.debug(f"Resolving target via {self._resolver.describe()}...")
            self._target = await asyncio.to_thread(self._resolver.resolve)

            await self._bind_all()
        except Exception as e:
            self._fatal_error = e
            self._stop_requested.set()
            self._set_state(SessionState.STOPPED)
            raise

        if self._stop_requested.is_set():
            logger.debug("Shutdown requested while negotiating, releasing listeners")
            for server in self._servers:
                server.close()
            self._servers.clear()
            self._proxies.clear()
            self._set_state(SessionState.STOPPED)
            return

        for proxy, server in zip(self._proxies, self._servers):
            task = asyncio.create_task(
                self._serve(proxy, server), name=f"listener-{proxy.listen_address}"
            )
            self._listener_tasks.append(task)

        self._set_state(SessionState.RUNNING)
        logger.info(
            f"Exposing {self._target.address} on port {self._port} "
            f"across {len(self._proxies)} interface(s)"
        )

    async def _bind_all(self) -> None:
        """Bind every interface or none; the real bind is authoritative."""
        bound: list[tuple[ProxyInstance, asyncio.AbstractServer]] = []
        try:
            for iface in self._interfaces:
                logger.debug(f"Starting proxy on {iface.address}:{self._port}")
                try:
                    server = await self._listen(
                        self._on_client, iface.address, self._port
                    )
                except OSError as e:
                    raise ListenError(iface.address, self._port, e) from e
                proxy = ProxyInstance(iface.address, self._port, self._target)
                bound.append((proxy, server))
        except BaseException:
            for _, server in bound:
                server.close()
            raise

        self._proxies = [proxy for proxy, _ in bound]
        self._servers = [server for _, server in bound]

    # =========================================================================
    # Listeners and Relays
    # =========================================================================

    async def _serve(self, proxy: ProxyInstance, server: asyncio.AbstractServer):
        """Run one listener until the session closes it."""
        log_prefix = f"[Listener {proxy.listen_address}:{proxy.listen_port}]"
        try:
            await server.serve_forever()
        except asyncio.CancelledError:
            if self._cancelled.is_set():
                logger.debug(f"{log_prefix} Closed for shutdown.")
                return
            raise
        except Exception as e:
            if self._cancelled.is_set():
                logger.debug(f"{log_prefix} Closed for shutdown: {e!r}")
                return
            error = ListenError(proxy.listen_address, proxy.listen_port, e)
            logger.error(f"{log_prefix} Listener failed: {e}")
            if self._fatal_error is None:
                self._fatal_error = error
            self.request_shutdown()

    def _on_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        """Accept callback: hand the connection to a new relay task."""
        if self._cancelled.is_set():
            writer.close()
            return

        self.connections_total += 1
        relay = ConnectionRelay(
            self._target,
            self._cancelled,
            dial=self._dial,
            dial_timeout=self._dial_timeout,
            close_timeout=self._close_timeout,
            chunk_size=self._chunk_size,
        )
        task = asyncio.create_task(self._run_relay(relay, reader, writer))
        self._relay_tasks.add(task)
        task.add_done_callback(self._relay_tasks.discard)

    async def _run_relay(
        self,
        relay: ConnectionRelay,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        try:
            outcome = await relay.run(reader, writer)
        except Exception as e:
            # Isolated: one broken connection never affects the session
            logger.exception(f"Unexpected error in relay: {e}")
            self.relay_failures += 1
            return

        self._outcomes.append(outcome)
        if not outcome.ok:
            self.relay_failures += 1
            logger.debug(f"Relay failed: {outcome.error}")

    # =========================================================================
    # Shutdown
    # =========================================================================

    def request_shutdown(self) -> None:
        """Ask the session to stop. Safe to call from a signal handler."""
        self._stop_requested.set()

    async def wait(self) -> None:
        """
        Block until shutdown is requested, then shut down completely.

        Raises:
            ListenError: If a listener failed while running.
        """
        await self._stop_requested.wait()
        await self.shutdown()
        if isinstance(self._fatal_error, ListenError):
            raise self._fatal_error

    async def shutdown(self) -> None:
        """Stop every listener and relay. Idempotent."""
        if self._teardown_task is None:
            self._teardown_task = asyncio.create_task(self._teardown())
        await asyncio.shield(self._teardown_task)

    async def _teardown(self) -> None:
        self._stop_requested.set()
        if self._state in (SessionState.IDLE, SessionState.STOPPED):
            self._state = SessionState.STOPPED
            return

        self._set_state(SessionState.SHUTTING_DOWN)
        self._cancelled.set()

        for server in self._servers:
            server.close()
        for task in self._listener_tasks:
            task.cancel()
        await asyncio.gather(*self._listener_tasks, return_exceptions=True)

        # Relays unblock promptly once cancellation closes their sockets
        while self._relay_tasks:
            await asyncio.gather(*list(self._relay_tasks), return_exceptions=True)

        for server in self._servers:
            try:
                await server.wait_closed()
            except OSError as e:
                self._cleanup_errors.append(e)
                logger.debug(f"Error while closing listener: {e!r}")

        self._servers.clear()
        self._listener_tasks.clear()
        self._proxies.clear()
        self._set_state(SessionState.STOPPED)
        logger.info(
            f"Session stopped after {self.connections_total} connection(s), "
            f"{self.relay_failures} failed"
        )

    # =========================================================================
    # Context Manager
    # =========================================================================

    async def __aenter__(self) -> "ExposureSession":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()
