"""
Pytest fixtures for lanexpose tests.

All tests run against loopback sockets or injected fakes; no Docker daemon
or real LAN interface is needed.
"""

import asyncio
import contextlib
import dataclasses
import socket
import sys

import pytest
import pytest_asyncio
from loguru import logger

from lanexpose.config import config
from lanexpose.docker.exceptions import InspectionError
from lanexpose.models.exposure import ExposureTarget, NetworkInterface

LOOPBACK = "127.0.0.1"


# =============================================================================
# Config Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def restore_config(monkeypatch, tmp_path):
    """Keep the global config, config file lookup and log sinks test-local."""
    snapshot = dataclasses.replace(config)
    monkeypatch.setenv("LANEXPOSE_CONFIG", str(tmp_path / "missing.yaml"))
    yield
    # CLI tests point loguru at CliRunner streams that are closed afterwards
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
    for field in dataclasses.fields(config):
        setattr(config, field.name, getattr(snapshot, field.name))


# =============================================================================
# Network Fixtures
# =============================================================================


async def _echo(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
    try:
        while True:
            data = await reader.read(65536)
            if not data:
                break
            writer.write(data)
            await writer.drain()
    except OSError:
        pass
    finally:
        writer.close()


@pytest_asyncio.fixture
async def echo_target():
    """A loopback TCP echo server, yielded as an ExposureTarget."""
    server = await asyncio.start_server(_echo, LOOPBACK, 0)
    port = server.sockets[0].getsockname()[1]
    yield ExposureTarget(LOOPBACK, port)
    server.close()
    with contextlib.suppress(asyncio.TimeoutError):
        await asyncio.wait_for(server.wait_closed(), timeout=2.0)


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((LOOPBACK, 0))
        return sock.getsockname()[1]


@pytest.fixture
def loopback_scanner():
    """Scanner that reports the loopback address as the only interface."""

    def scan() -> list[NetworkInterface]:
        return [NetworkInterface(LOOPBACK, "test0")]

    return scan


# =============================================================================
# Container Fakes
# =============================================================================


class FakeInspector:
    """In-memory ContainerInspector."""

    def __init__(
        self,
        running: bool = True,
        ip: str = "172.17.0.2",
        env: dict[str, str] | None = None,
    ):
        self.running = running
        self.ip = ip
        self.env = env or {}
        self.calls: list[tuple] = []

    def is_running(self, name: str) -> bool:
        self.calls.append(("is_running", name))
        return self.running

    def inspect_ip(self, name: str) -> str:
        self.calls.append(("inspect_ip", name))
        if not self.ip:
            raise InspectionError(name, "container has no IP address")
        return self.ip

    def exec_capture(self, name: str, command: list[str]) -> str:
        self.calls.append(("exec_capture", name, tuple(command)))
        if command[:1] == ["printenv"] and command[1] in self.env:
            return self.env[command[1]] + "\n"
        raise InspectionError(name, f"{' '.join(command)} exited with 1")


@pytest.fixture
def fake_inspector():
    return FakeInspector()


# =============================================================================
# Listener Fakes
# =============================================================================


class FakeServer:
    """Stands in for asyncio.Server on addresses the test host lacks."""

    def __init__(self, host: str, port: int, fail_with: Exception | None = None):
        self.host = host
        self.port = port
        self.fail_with = fail_with
        self.closed = False
        self._closed_event = asyncio.Event()

    def close(self):
        self.closed = True
        self._closed_event.set()

    async def wait_closed(self):
        await self._closed_event.wait()

    async def serve_forever(self):
        if self.fail_with is not None:
            raise self.fail_with
        await self._closed_event.wait()
        raise asyncio.CancelledError()


class FakeListenerFactory:
    """Records every bind and returns FakeServers."""

    def __init__(self, refuse: set[str] | None = None, fail_serving: set[str] | None = None):
        self.refuse = refuse or set()
        self.fail_serving = fail_serving or set()
        self.servers: list[FakeServer] = []

    @property
    def bound(self) -> list[tuple[str, int]]:
        return [(s.host, s.port) for s in self.servers]

    async def __call__(self, callback, host: str, port: int) -> FakeServer:
        if host in self.refuse:
            raise OSError(98, "Address already in use")
        fail = OSError("listener broke") if host in self.fail_serving else None
        server = FakeServer(host, port, fail_with=fail)
        self.servers.append(server)
        return server


@pytest.fixture
def fake_listen():
    return FakeListenerFactory()
