"""Interfaces command: list the addresses an exposure would bind."""

import typer

from lanexpose.cli.output import console, format_interface_table, print_error
from lanexpose.exceptions import DiscoveryError
from lanexpose.network import interfaces as network_interfaces


def interfaces():
    """List non-localhost IPv4 addresses usable for exposure."""
    try:
        found = network_interfaces.scan_interfaces()
    except DiscoveryError as e:
        print_error(str(e))
        raise typer.Exit(1)

    console.print(format_interface_table(found))
