"""Version command."""

import click
from rich.console import Console

from ... import __version__

console = Console()


@click.command()
def version() -> None:
    """Show dashboard cache version.

    Examples:

        dashcache version
    """
    console.print(f"[bold]Dashboard Cache[/bold] v{__version__}")
