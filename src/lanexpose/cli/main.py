"""
lanexpose CLI entry point.

Usage:
    lanexpose [OPTIONS] COMMAND [ARGS]...

Commands:
    expose      Expose the container on every LAN interface
    run         Run a local service and expose it while it runs
    interfaces  List candidate LAN addresses
    version     Show version information
"""

import typer

from lanexpose.cli.commands import expose, interfaces, run
from lanexpose.cli.output import console

app = typer.Typer(
    name="lanexpose",
    help="Expose local container services to devices on your LAN",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("expose")(expose.expose)
app.command("run")(run.run)
app.command("interfaces")(interfaces.interfaces)


@app.command("version")
def version():
    """Show version information."""
    from lanexpose import __version__

    console.print(f"lanexpose v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
