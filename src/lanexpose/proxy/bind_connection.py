"""Bidirectional stream binding utilities."""

import asyncio
from collections.abc import Callable

DEFAULT_CHUNK_SIZE = 64 * 1024


async def bind_reader_writer(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    on_data: Callable[[int], None] | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """
    Pipe data from reader to writer until EOF or error.

    Args:
        reader: AsyncIO stream reader.
        writer: AsyncIO stream writer.
        on_data: Called with the size of every chunk written.
        chunk_size: Maximum bytes read per iteration.
    """
    while True:
        try:
            data = await reader.read(chunk_size)
            if not data:
                break
            writer.write(data)
            if on_data is not None:
                on_data(len(data))
            await writer.drain()
        except OSError:
            break


async def close_writer(
    writer: asyncio.StreamWriter, timeout: float = 1.0
) -> Exception | None:
    """
    Close a stream writer and wait briefly for the transport to finish.

    Safe to call more than once on the same writer.

    Returns:
        The error raised while closing, or None on a clean close.
    """
    writer.close()
    try:
        await asyncio.wait_for(writer.wait_closed(), timeout=timeout)
    except (OSError, asyncio.TimeoutError) as e:
        return e
    return None
