"""
Connection relay.

Relays one accepted client connection to the session target, copying bytes
in both directions until either side closes or the session is cancelled.
"""

import asyncio
from collections.abc import Awaitable, Callable

from lanexpose.exceptions import RelayError
from lanexpose.models.exposure import ExposureTarget, RelayOutcome
from lanexpose.proxy.bind_connection import (
    DEFAULT_CHUNK_SIZE,
    bind_reader_writer,
    close_writer,
)
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)

DialFunc = Callable[
    [str, int], Awaitable[tuple[asyncio.StreamReader, asyncio.StreamWriter]]
]


def format_peer(peername) -> str:
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername)


class ConnectionRelay:
    """Full-duplex relay between one client and the session target."""

    def __init__(
        self,
        target: ExposureTarget,
        cancelled: asyncio.Event,
        dial: DialFunc | None = None,
        dial_timeout: float = 10.0,
        close_timeout: float = 1.0,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Initialize the relay.

        Args:
            target: Upstream every byte is forwarded to.
            cancelled: Session-wide cancellation signal.
            dial: Connection factory, ``asyncio.open_connection`` by default.
            dial_timeout: Seconds allowed for connecting to the target.
            close_timeout: Seconds allowed for each socket to finish closing.
            chunk_size: Maximum bytes copied per read.
        """
        self.target = target
        self.cancelled = cancelled
        self.dial = dial or asyncio.open_connection
        self.dial_timeout = dial_timeout
        self.close_timeout = close_timeout
        self.chunk_size = chunk_size

    async def run(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> RelayOutcome:
        """
        Relay the connection until it ends, then close both sides.

        Dial failures are returned in the outcome, never raised.
        """
        peer = format_peer(writer.get_extra_info("peername"))
        log_prefix = f"[Client {peer}]"
        outcome = RelayOutcome(peer=peer)

        upstream_writer = None
        tasks: list[asyncio.Task] = []

        try:
            try:
                upstream_reader, upstream_writer = await asyncio.wait_for(
                    self.dial(self.target.host, self.target.port),
                    timeout=self.dial_timeout,
                )
            except (OSError, asyncio.TimeoutError) as e:
                outcome.error = RelayError(
                    peer, f"dial {self.target.address} failed: {e!r}"
                )
                logger.debug(f"{log_prefix} {outcome.error}")
                return outcome

            logger.debug(f"{log_prefix} Connected to {self.target.address}")

            def count_up(n: int) -> None:
                outcome.bytes_to_target += n

            def count_down(n: int) -> None:
                outcome.bytes_to_client += n

            tasks = [
                asyncio.create_task(
                    bind_reader_writer(
                        reader, upstream_writer, count_up, self.chunk_size
                    )
                ),
                asyncio.create_task(
                    bind_reader_writer(
                        upstream_reader, writer, count_down, self.chunk_size
                    )
                ),
                asyncio.create_task(self.cancelled.wait()),
            ]
            await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

            if tasks[2].done():
                logger.debug(f"{log_prefix} Relay cancelled by session shutdown")
            else:
                logger.debug(
                    f"{log_prefix} Forwarding ended "
                    f"({outcome.bytes_to_target} B up, "
                    f"{outcome.bytes_to_client} B down)"
                )

        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            if tasks:
                await asyncio.gather(*tasks, return_exceptions=True)

            for w in (writer, upstream_writer):
                if w is None:
                    continue
                error = await close_writer(w, self.close_timeout)
                if error is not None:
                    logger.debug(f"{log_prefix} Error while closing socket: {error!r}")
                    outcome.cleanup_errors.append(error)

        return outcome
