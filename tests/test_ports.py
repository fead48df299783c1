"""Tests for port negotiation."""

import socket

import pytest

from lanexpose.exceptions import NegotiationError, PortExhaustedError
from lanexpose.network.ports import find_available_port, probe_bind


def _probe_occupied(occupied: set[tuple[str, int]], calls: list | None = None):
    def probe(address: str, port: int) -> None:
        if calls is not None:
            calls.append((address, port))
        if (address, port) in occupied:
            raise OSError(98, "Address already in use")

    return probe


def test_skips_ports_taken_on_any_address():
    occupied = {("10.0.0.5", 10000), ("10.0.0.8", 10001)}

    port = find_available_port(
        ["10.0.0.5", "10.0.0.8"], 10000, probe=_probe_occupied(occupied)
    )

    assert port == 10002


def test_never_returns_port_free_on_subset_only():
    occupied = {("10.0.0.8", p) for p in range(10000, 10005)}

    port = find_available_port(
        ["10.0.0.5", "10.0.0.8"], 10000, probe=_probe_occupied(occupied)
    )

    assert port == 10005


def test_stops_probing_port_after_first_failure():
    calls = []
    occupied = {("10.0.0.5", 10000)}

    find_available_port(
        ["10.0.0.5", "10.0.0.8"], 10000, probe=_probe_occupied(occupied, calls)
    )

    assert calls == [("10.0.0.5", 10000), ("10.0.0.5", 10001), ("10.0.0.8", 10001)]


def test_exhausts_after_exact_attempt_budget():
    calls = []

    def probe(address, port):
        calls.append(port)
        raise OSError(98, "Address already in use")

    with pytest.raises(PortExhaustedError) as exc_info:
        find_available_port(["10.0.0.5"], 20000, max_attempts=7, probe=probe)

    assert calls == list(range(20000, 20007))
    assert exc_info.value.attempts == 7
    assert exc_info.value.start_port == 20000
    assert isinstance(exc_info.value, NegotiationError)


def test_does_not_probe_past_max_port():
    calls = []

    def probe(address, port):
        calls.append(port)
        raise OSError(98, "Address already in use")

    with pytest.raises(PortExhaustedError):
        find_available_port(["10.0.0.5"], 65534, max_attempts=10, probe=probe)

    assert calls == [65534, 65535]


def test_requires_addresses():
    with pytest.raises(ValueError):
        find_available_port([], 10000)


def test_real_probe_detects_listening_socket():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as holder:
        holder.bind(("127.0.0.1", 0))
        holder.listen(1)
        taken = holder.getsockname()[1]

        with pytest.raises(OSError):
            probe_bind("127.0.0.1", taken)

        port = find_available_port(["127.0.0.1"], taken, max_attempts=50)

    assert port > taken
