"""Console output helpers shared by CLI commands."""

from rich.console import Console
from rich.table import Table

from lanexpose.models.exposure import NetworkInterface, ProxyInstance

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def print_error(message: str) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {message}")


def print_success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def format_interface_table(interfaces: list[NetworkInterface]) -> Table:
    """Build a table of candidate interfaces."""
    table = Table(title="LAN Interfaces", show_header=True, header_style="bold")
    table.add_column("Address", style="cyan")
    table.add_column("Interface")
    table.add_column("Type", style="dim")
    for iface in interfaces:
        table.add_row(iface.address, iface.name, iface.friendly_name)
    return table


def print_exposure(
    proxies: list[ProxyInstance], interfaces: list[NetworkInterface]
) -> None:
    """Print one reachable URL per bound interface."""
    names = {iface.address: iface.friendly_name for iface in interfaces}

    print_success("Service exposed on local network")
    console.print()
    console.print("  From your device, visit:")
    for proxy in proxies:
        line = f"  [bold cyan]{proxy.url}[/bold cyan]"
        name = names.get(proxy.listen_address)
        if name:
            line += f" [dim]({name})[/dim]"
        console.print(line)
    console.print()
    console.print("  [dim]Press Ctrl+C to stop[/dim]")
