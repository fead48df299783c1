"""
Target resolution.

Decides the single upstream address an exposure session forwards to, either
from an explicit port on the local host or by asking the container runtime.
"""

from typing import Protocol

from lanexpose.docker.exceptions import DockerError
from lanexpose.docker.inspector import ContainerInspector
from lanexpose.exceptions import TargetUnavailableError
from lanexpose.models.exposure import LOOPBACK_HOST, ExposureTarget
from lanexpose.utils.logger import get_logger

logger = get_logger(__name__)


class TargetResolver(Protocol):
    def resolve(self) -> ExposureTarget: ...

    def describe(self) -> str: ...


def _parse_port(raw: str) -> int | None:
    try:
        port = int(raw.strip())
    except ValueError:
        return None
    if 0 < port <= 65535:
        return port
    return None


# =============================================================================
# Resolvers
# =============================================================================


class ExplicitPortResolver:
    """Target a port on the local loopback host, ignoring container state."""

    def __init__(self, port: int, host: str = LOOPBACK_HOST):
        if not 0 < port <= 65535:
            raise ValueError(f"invalid port: {port}")
        self.port = port
        self.host = host

    def describe(self) -> str:
        return f"explicit port {self.port}"

    def resolve(self) -> ExposureTarget:
        target = ExposureTarget(self.host, self.port)
        logger.debug(f"Using port override, target: {target.address}")
        return target


class _ContainerResolver:
    def __init__(self, inspector: ContainerInspector, name: str):
        self.inspector = inspector
        self.name = name

    def _require_running(self) -> None:
        try:
            running = self.inspector.is_running(self.name)
        except DockerError as e:
            raise TargetUnavailableError(
                f"cannot inspect container '{self.name}': {e}"
            ) from e
        if not running:
            raise TargetUnavailableError(f"container '{self.name}' is not running")
        logger.debug(f"Container '{self.name}' is running")


class ContainerIPResolver(_ContainerResolver):
    """
    Target the container's own network address at a known service port.

    This is the default discovery strategy.
    """

    def __init__(self, inspector: ContainerInspector, name: str, container_port: int):
        super().__init__(inspector, name)
        self.container_port = container_port

    def describe(self) -> str:
        return f"container '{self.name}' port {self.container_port}"

    def resolve(self) -> ExposureTarget:
        self._require_running()
        try:
            ip = self.inspector.inspect_ip(self.name)
        except DockerError as e:
            raise TargetUnavailableError(
                f"failed to get IP of container '{self.name}': {e}"
            ) from e

        target = ExposureTarget(ip.strip(), self.container_port)
        logger.debug(f"Will proxy to {target.address}")
        return target


class ContainerEnvResolver(_ContainerResolver):
    """
    Target the local host at a port named by a variable inside the container.

    The variable holds the host-side port the container publishes.
    """

    def __init__(
        self,
        inspector: ContainerInspector,
        name: str,
        env_var: str,
        host: str = LOOPBACK_HOST,
    ):
        super().__init__(inspector, name)
        self.env_var = env_var
        self.host = host

    def describe(self) -> str:
        return f"container '{self.name}' ${self.env_var}"

    def resolve(self) -> ExposureTarget:
        self._require_running()
        try:
            output = self.inspector.exec_capture(self.name, ["printenv", self.env_var])
        except DockerError as e:
            raise TargetUnavailableError(
                f"failed to read {self.env_var} in container '{self.name}': {e}"
            ) from e

        port = _parse_port(output)
        if port is None:
            raise TargetUnavailableError(
                f"{self.env_var} in container '{self.name}' is not a valid port: "
                f"{output.strip()!r}"
            )

        target = ExposureTarget(self.host, port)
        logger.debug(f"{self.env_var}={port}, will proxy to {target.address}")
        return target
