"""Docker-related exception classes."""


class DockerError(Exception):
    """Base exception for Docker operations."""

    pass


class DockerConnectionError(DockerError):
    """Failed to connect to the Docker daemon."""

    pass


class InspectionError(DockerError):
    """A container could not be inspected or a command in it failed."""

    def __init__(self, name: str, message: str):
        self.name = name
        super().__init__(f"container '{name}': {message}")
