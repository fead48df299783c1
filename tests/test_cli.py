"""Tests for the typer CLI."""

import asyncio
import sys

import pytest
from typer.testing import CliRunner

from lanexpose.cli.commands import expose as expose_cmd
from lanexpose.cli.commands.expose import build_resolver, build_session
from lanexpose.cli.commands.run import _run_with_service
from lanexpose.cli.main import app
from lanexpose.config import ExposeConfig, config
from lanexpose.exceptions import NoInterfaceError
from lanexpose.models.enums import SessionState, TargetStrategy
from lanexpose.models.exposure import NetworkInterface
from lanexpose.network import interfaces as network_interfaces
from lanexpose.proxy.session import ExposureSession
from lanexpose.proxy.target import (
    ContainerEnvResolver,
    ContainerIPResolver,
    ExplicitPortResolver,
)

runner = CliRunner()


# =============================================================================
# Session Assembly
# =============================================================================


def test_port_override_uses_explicit_resolver(fake_inspector):
    resolver = build_resolver(ExposeConfig(), port_override=9292, inspector=fake_inspector)

    assert isinstance(resolver, ExplicitPortResolver)
    assert resolver.resolve().address == "127.0.0.1:9292"


def test_default_strategy_is_container_ip(fake_inspector):
    resolver = build_resolver(ExposeConfig(), inspector=fake_inspector)

    assert isinstance(resolver, ContainerIPResolver)
    assert resolver.container_port == 4200


def test_env_strategy_selected_from_config(fake_inspector):
    cfg = ExposeConfig(TARGET_STRATEGY=TargetStrategy.ENV, PORT_ENV_VAR="APP_PORT")

    resolver = build_resolver(cfg, inspector=fake_inspector)

    assert isinstance(resolver, ContainerEnvResolver)
    assert resolver.env_var == "APP_PORT"


def test_build_session_is_idle():
    session = build_session(ExposeConfig(START_PORT=15000), port_override=8080)

    assert isinstance(session, ExposureSession)
    assert session.state is SessionState.IDLE


# =============================================================================
# Commands
# =============================================================================


def test_version():
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "lanexpose v" in result.output


def test_interfaces_lists_addresses(monkeypatch):
    monkeypatch.setattr(
        network_interfaces,
        "scan_interfaces",
        lambda: [NetworkInterface("192.168.1.20", "eth0")],
    )

    result = runner.invoke(app, ["interfaces"])

    assert result.exit_code == 0
    assert "192.168.1.20" in result.output


def test_interfaces_without_lan_fails(monkeypatch):
    def no_interfaces():
        raise NoInterfaceError()

    monkeypatch.setattr(network_interfaces, "scan_interfaces", no_interfaces)

    result = runner.invoke(app, ["interfaces"])

    assert result.exit_code == 1


def test_expose_fatal_error_exits_non_zero(monkeypatch):
    def no_interfaces():
        raise NoInterfaceError()

    monkeypatch.setattr(
        expose_cmd,
        "build_session",
        lambda cfg, port_override=None: ExposureSession(
            ExplicitPortResolver(port_override), no_interfaces
        ),
    )

    result = runner.invoke(app, ["expose", "--port", "9292"])

    assert result.exit_code == 1


def test_expose_options_override_config(monkeypatch):
    seen = {}

    def fake_build(cfg, port_override=None):
        seen["container"] = cfg.CONTAINER_NAME
        seen["start_port"] = cfg.START_PORT
        raise NoInterfaceError()

    monkeypatch.setattr(expose_cmd, "build_session", fake_build)

    result = runner.invoke(
        app, ["expose", "--container", "web", "--start-port", "12000"]
    )

    assert result.exit_code == 1
    assert seen == {"container": "web", "start_port": 12000}
    assert config.CONTAINER_NAME == "web"


@pytest.mark.parametrize(
    "contents",
    [
        "start_port: [unclosed\n",
        "- just\n- a list\n",
        "target_strategy: bogus\n",
        "start_port: abc\n",
    ],
    ids=["invalid-yaml", "not-a-mapping", "bad-strategy", "non-integer-port"],
)
def test_expose_bad_config_file_exits_cleanly(tmp_path, contents):
    path = tmp_path / "config.yaml"
    path.write_text(contents)

    result = runner.invoke(app, ["expose", "--port", "9292", "--config", str(path)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_run_bad_config_file_exits_cleanly(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("max_port_attempts: many\n")

    result = runner.invoke(
        app, ["run", "--port", "3000", "--config", str(path), "--", "true"]
    )

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


# =============================================================================
# Service Subprocess Variant
# =============================================================================


@pytest.mark.asyncio
async def test_run_exits_when_service_exits(loopback_scanner, echo_target):
    session = ExposureSession(
        ExplicitPortResolver(echo_target.port),
        loopback_scanner,
        start_port=43000,
        max_attempts=500,
    )

    returncode = await asyncio.wait_for(
        _run_with_service(session, [sys.executable, "-c", "import sys; sys.exit(3)"]),
        timeout=10.0,
    )

    assert returncode == 3
    assert session.state is SessionState.STOPPED


@pytest.mark.asyncio
async def test_run_stops_service_on_interrupt(loopback_scanner, echo_target):
    session = ExposureSession(
        ExplicitPortResolver(echo_target.port),
        loopback_scanner,
        start_port=43000,
        max_attempts=500,
    )

    task = asyncio.create_task(
        _run_with_service(
            session, [sys.executable, "-c", "import time; time.sleep(30)"]
        )
    )
    for _ in range(100):
        if session.state is SessionState.RUNNING:
            break
        await asyncio.sleep(0.02)
    session.request_shutdown()

    returncode = await asyncio.wait_for(task, timeout=10.0)

    assert returncode == 0
    assert session.state is SessionState.STOPPED
