"""
Expose command: make the container reachable from other LAN devices.

Listens on every non-loopback IPv4 interface at one negotiated port and
relays raw TCP to the container service until interrupted.

Example:
    # Expose the configured container's service port
    lanexpose expose

    # Expose a port already published on localhost
    lanexpose expose --port 9292
"""

import asyncio
import signal
from collections.abc import Callable
from typing import Annotated

import typer

from lanexpose.cli.output import console, print_error, print_exposure
from lanexpose.config import ExposeConfig, config, load_config_file
from lanexpose.docker.exceptions import DockerError
from lanexpose.docker.inspector import ContainerInspector, DockerInspector
from lanexpose.exceptions import ExposeError
from lanexpose.models.enums import LogLevel, TargetStrategy
from lanexpose.proxy.session import ExposureSession
from lanexpose.proxy.target import (
    ContainerEnvResolver,
    ContainerIPResolver,
    ExplicitPortResolver,
    TargetResolver,
)
from lanexpose.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


# =============================================================================
# Session Assembly
# =============================================================================


def build_resolver(
    cfg: ExposeConfig,
    port_override: int | None = None,
    inspector: ContainerInspector | None = None,
) -> TargetResolver:
    """Pick the target resolver for the given options."""
    if port_override:
        return ExplicitPortResolver(port_override)

    inspector = inspector or DockerInspector()
    if cfg.TARGET_STRATEGY == TargetStrategy.ENV:
        return ContainerEnvResolver(inspector, cfg.CONTAINER_NAME, cfg.PORT_ENV_VAR)
    return ContainerIPResolver(inspector, cfg.CONTAINER_NAME, cfg.CONTAINER_PORT)


def build_session(
    cfg: ExposeConfig = config,
    port_override: int | None = None,
    inspector: ContainerInspector | None = None,
) -> ExposureSession:
    """
    Assemble the full exposure object graph from configuration.

    Args:
        cfg: Settings to build from.
        port_override: Target ``127.0.0.1:<port>`` instead of the container.
        inspector: Container inspector (docker-py by default).

    Raises:
        DockerConnectionError: If discovery needs Docker and it is unreachable.
    """
    resolver = build_resolver(cfg, port_override, inspector)
    return ExposureSession(
        resolver,
        start_port=cfg.START_PORT,
        max_attempts=cfg.MAX_PORT_ATTEMPTS,
        dial_timeout=cfg.DIAL_TIMEOUT_SECONDS,
        close_timeout=cfg.CLOSE_TIMEOUT_SECONDS,
        chunk_size=cfg.READ_CHUNK_SIZE,
    )


def apply_cli_options(
    verbose: bool = False,
    container: str | None = None,
    strategy: TargetStrategy | None = None,
    start_port: int | None = None,
    max_attempts: int | None = None,
    config_file: str | None = None,
) -> ExposeConfig:
    """Load the config file, overlay CLI options and configure logging."""
    load_config_file(config_file)
    if container:
        config.CONTAINER_NAME = container
    if strategy:
        config.TARGET_STRATEGY = strategy
    if start_port:
        config.START_PORT = start_port
    if max_attempts:
        config.MAX_PORT_ATTEMPTS = max_attempts
    if verbose:
        config.LOG_LEVEL = LogLevel.DEBUG

    configure_logging(config.LOG_LEVEL, config.LOG_FILE or None)
    return config


# =============================================================================
# Signal Handling
# =============================================================================


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop, callback: Callable[[], None]
) -> list[signal.Signals]:
    """Route SIGINT/SIGTERM to ``callback``. Returns the signals installed."""
    installed = []
    for sig in INTERRUPT_SIGNALS:
        try:
            loop.add_signal_handler(sig, callback)
        except (NotImplementedError, RuntimeError):
            # Windows: fall back to KeyboardInterrupt
            continue
        installed.append(sig)
    return installed


def remove_signal_handlers(
    loop: asyncio.AbstractEventLoop, signals: list[signal.Signals]
) -> None:
    for sig in signals:
        loop.remove_signal_handler(sig)


async def _run_session(session: ExposureSession) -> None:
    """Start the session, print the URLs and block until interrupted."""
    await session.start()
    print_exposure(session.proxies, session.interfaces)

    loop = asyncio.get_running_loop()

    def on_interrupt() -> None:
        console.print()
        console.print("Stopping...")
        session.request_shutdown()

    signals = install_signal_handlers(loop, on_interrupt)
    try:
        await session.wait()
    finally:
        remove_signal_handlers(loop, signals)
        await session.shutdown()


# =============================================================================
# Command
# =============================================================================


def expose(
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            "-p",
            help="Port on localhost to expose (default: the container's service)",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show detailed debugging information"),
    ] = False,
    container: Annotated[
        str | None,
        typer.Option(
            "--container",
            "-c",
            help="Container to expose",
            envvar="LANEXPOSE_CONTAINER",
        ),
    ] = None,
    strategy: Annotated[
        TargetStrategy | None,
        typer.Option("--strategy", help="Target discovery: ip|env"),
    ] = None,
    start_port: Annotated[
        int | None,
        typer.Option("--start-port", help="First port to try on the host"),
    ] = None,
    max_attempts: Annotated[
        int | None,
        typer.Option("--max-attempts", help="Ports to try before giving up"),
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("--config", help="Path to a YAML config file"),
    ] = None,
):
    """
    Expose the container on all non-localhost network interfaces.

    Lets other devices on your local network (e.g. a phone) reach the
    container. Press Ctrl+C to stop exposing.
    """
    try:
        cfg = apply_cli_options(
            verbose, container, strategy, start_port, max_attempts, config_file
        )
        session = build_session(cfg, port_override=port)
        asyncio.run(_run_session(session))
    except (ExposeError, DockerError, ValueError) as e:
        print_error(str(e))
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped.[/dim]")
