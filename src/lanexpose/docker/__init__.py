"""Container inspection backed by the docker-py SDK."""

from lanexpose.docker.exceptions import (
    DockerConnectionError,
    DockerError,
    InspectionError,
)
from lanexpose.docker.inspector import ContainerInspector, DockerInspector

__all__ = [
    "ContainerInspector",
    "DockerConnectionError",
    "DockerError",
    "DockerInspector",
    "InspectionError",
]
