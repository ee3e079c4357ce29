"""TTL resolution command."""

import click
from rich.console import Console
from rich.table import Table

from ..app import load_config

console = Console()


@click.command()
@click.argument("keys", nargs=-1)
@click.option("--table", "show_table", is_flag=True, help="Also print the resolution table")
@click.pass_context
def ttl(ctx: click.Context, keys: tuple, show_table: bool) -> None:
    """Show how long entries for KEYS would live.

    Keys are matched against the TTL table in order; the first domain
    contained in the key wins, otherwise the default applies.

    Examples:

        dashcache ttl org:acme:employees:all org:acme:reports

        dashcache ttl --table
    """
    policy = load_config(ctx).ttl_policy()

    if keys:
        results = Table(title="Resolved TTL")
        results.add_column("Key", style="cyan")
        results.add_column("Seconds", justify="right")
        results.add_column("Matched")
        for key in keys:
            matched = next((name for name, _ in policy.entries() if name in key), None)
            results.add_row(key, f"{policy.resolve(key):g}", matched or "[dim]default[/dim]")
        console.print(results)

    if show_table or not keys:
        table = Table(title="TTL table (first match wins)")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Domain", style="cyan")
        table.add_column("Seconds", justify="right")
        for i, (name, seconds) in enumerate(policy.entries(), start=1):
            table.add_row(str(i), name, f"{seconds:g}")
        table.add_row("", "[dim]default[/dim]", f"{policy.default:g}")
        console.print(table)
