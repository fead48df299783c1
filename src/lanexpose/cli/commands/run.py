"""
Run command: start a local service and expose it for as long as it runs.

Example:
    lanexpose run --port 3000 -- npm run dev
"""

import asyncio
from typing import Annotated

import typer

from lanexpose.cli.commands.expose import (
    apply_cli_options,
    build_session,
    install_signal_handlers,
    remove_signal_handlers,
)
from lanexpose.cli.output import console, print_error, print_exposure
from lanexpose.exceptions import ExposeError
from lanexpose.proxy.session import ExposureSession
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)

TERMINATE_TIMEOUT_SECONDS = 10.0


async def _stop_process(process: asyncio.subprocess.Process) -> None:
    """Terminate the service, killing it if it ignores SIGTERM."""
    if process.returncode is not None:
        return
    process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=TERMINATE_TIMEOUT_SECONDS)
    except asyncio.TimeoutError:
        logger.warning(f"Service pid {process.pid} ignored SIGTERM, killing")
        process.kill()
        await process.wait()


async def _run_with_service(session: ExposureSession, command: list[str]) -> int:
    """
    Expose the service while its process runs.

    Returns:
        The service's exit code if it exited on its own, else 0.
    """
    await session.start()

    try:
        process = await asyncio.create_subprocess_exec(*command)
    except OSError:
        await session.shutdown()
        raise
    logger.debug(f"Started service pid {process.pid}: {' '.join(command)}")

    print_exposure(session.proxies, session.interfaces)

    loop = asyncio.get_running_loop()
    signals = install_signal_handlers(loop, session.request_shutdown)

    session_task = asyncio.create_task(session.wait())
    process_task = asyncio.create_task(process.wait())
    try:
        done, _ = await asyncio.wait(
            {session_task, process_task}, return_when=asyncio.FIRST_COMPLETED
        )

        if process_task in done:
            returncode = process_task.result()
            console.print(f"[dim]Service exited with code {returncode}.[/dim]")
            session.request_shutdown()
            await session_task
            return returncode

        console.print("Stopping...")
        await _stop_process(process)
        session_task.result()
        return 0
    finally:
        remove_signal_handlers(loop, signals)
        await _stop_process(process)
        await session.shutdown()
        for task in (session_task, process_task):
            if not task.done():
                task.cancel()
        await asyncio.gather(session_task, process_task, return_exceptions=True)


def run(
    command: Annotated[
        list[str],
        typer.Argument(help="Service command to run, after '--'"),
    ],
    port: Annotated[
        int,
        typer.Option("--port", "-p", help="Port the service listens on locally"),
    ],
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed debugging information"),
    ] = False,
    start_port: Annotated[
        int | None,
        typer.Option("--start-port", help="First port to try on the host"),
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("--config", help="Path to a YAML config file"),
    ] = None,
):
    """
    Run a local service and expose it on the LAN until it exits.

    The service is stopped when you press Ctrl+C; if it exits on its own the
    exposure ends too and its exit code is returned.
    """
    try:
        cfg = apply_cli_options(
            verbose, start_port=start_port, config_file=config_file
        )
        session = build_session(cfg, port_override=port)
        returncode = asyncio.run(_run_with_service(session, command))
    except FileNotFoundError:
        print_error(f"Command not found: {command[0]}")
        raise typer.Exit(127)
    except (ExposeError, ValueError, OSError) as e:
        print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
        returncode = 0

    raise typer.Exit(returncode)
