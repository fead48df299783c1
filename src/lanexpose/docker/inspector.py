"""
Container inspector using docker-py SDK.

Exposes the three narrow capabilities target resolution needs: whether a
container is running, its network address, and the output of a command run
inside it.
"""

from typing import Protocol

import docker
from docker.errors import APIError, NotFound
from docker.models.containers import Container

from lanexpose.docker.exceptions import DockerConnectionError, InspectionError
from lanexpose.utils.logger import get_logger

log = get_logger(__name__)


class ContainerInspector(Protocol):
    """Capabilities target resolution consumes from the container runtime."""

    def is_running(self, name: str) -> bool: ...

    def inspect_ip(self, name: str) -> str: ...

    def exec_capture(self, name: str, command: list[str]) -> str: ...


# =============================================================================
# DockerInspector Class
# =============================================================================


class DockerInspector:
    """
    ContainerInspector implementation talking to the local Docker daemon.

    Attributes:
        client: The docker-py client instance.
    """

    def __init__(self, timeout: int | None = None, client=None):
        """
        Initialize Docker client.

        Args:
            timeout: Request timeout in seconds. None means no timeout.
            client: Pre-built docker-py client (skips connecting).

        Raises:
            DockerConnectionError: If connection to Docker daemon fails.
        """
        if client is not None:
            self.client = client
            return
        try:
            self.client = docker.from_env(timeout=timeout)
            self.client.ping()
            log.debug("Docker client initialized successfully")
        except Exception as e:
            log.error(f"Failed to connect to Docker daemon: {e}")
            raise DockerConnectionError(f"Failed to connect to Docker: {e}") from e

    def _get_container(self, name: str) -> Container:
        try:
            return self.client.containers.get(name)
        except NotFound:
            raise InspectionError(name, "not found")
        except APIError as e:
            raise InspectionError(name, str(e)) from e

    def is_running(self, name: str) -> bool:
        """
        Check if a container exists and is running.

        Args:
            name: Container name.

        Returns:
            True if running, False if stopped or missing.

        Raises:
            InspectionError: If the daemon fails to answer.
        """
        try:
            container = self.client.containers.get(name)
        except NotFound:
            return False
        except APIError as e:
            raise InspectionError(name, str(e)) from e
        return container.status == "running"

    def inspect_ip(self, name: str) -> str:
        """
        Get the container's IP address on its first attached network.

        Raises:
            InspectionError: If the container is missing or has no address.
        """
        container = self._get_container(name)
        networks = container.attrs.get("NetworkSettings", {}).get("Networks") or {}
        for network_name, settings in networks.items():
            ip = (settings or {}).get("IPAddress")
            if ip:
                log.debug(f"Container {name} has IP {ip} on {network_name}")
                return ip
        raise InspectionError(name, "container has no IP address")

    def exec_capture(self, name: str, command: list[str]) -> str:
        """
        Run a command inside the container and return its combined output.

        Raises:
            InspectionError: If the command cannot run or exits non-zero.
        """
        container = self._get_container(name)
        try:
            exit_code, output = container.exec_run(command)
        except APIError as e:
            raise InspectionError(name, f"exec failed: {e}") from e

        text = (output or b"").decode("utf-8", errors="replace")
        if exit_code != 0:
            raise InspectionError(
                name, f"{' '.join(command)} exited with {exit_code}: {text.strip()}"
            )
        return text
