"""Progressive dashboard load command."""

import asyncio
import json

import click
from rich.console import Console
from rich.table import Table

from ...datasource import InMemoryDataSource
from ...events import DashboardEvent, DomainFailedEvent, DomainLoadedEvent, SetupErrorEvent, ShellReadyEvent
from ...loader import DashboardLoader
from ...service import CacheService
from ...state import DashboardState
from ...types import DataDomain, OrganizationContext, UserContext
from ..app import load_config

console = Console()

_DOMAIN_NAMES = [d.value for d in DataDomain]


@click.command()
@click.option("--data", "-d", "data_path", type=click.Path(exists=True, dir_okay=False), required=True,
              help="YAML file with organization documents")
@click.option("--org", "-o", "organization_id", required=True, help="Organization ID")
@click.option("--user", "-u", "user_id", required=True, help="User ID")
@click.option("--role", "-r", default=None, help="Dashboard role (team-lead, hr, business-owner, super-admin)")
@click.option("--user-role", default=None, help="The user's actual role (default: --role)")
@click.option("--skip", multiple=True, type=click.Choice(_DOMAIN_NAMES), help="Domain to skip (repeatable)")
@click.option("--latency", type=float, default=0.0, help="Artificial latency per fetch in seconds")
@click.option("--twice", is_flag=True, help="Refresh after the first load and load again")
@click.option("--json", "as_json", is_flag=True, help="Print final state as JSON")
@click.pass_context
def load(
    ctx: click.Context,
    data_path: str,
    organization_id: str,
    user_id: str,
    role: str,
    user_role: str,
    skip: tuple,
    latency: float,
    twice: bool,
    as_json: bool,
) -> None:
    """Run a progressive dashboard load against a YAML data file.

    Examples:

        dashcache load -d fixtures.yaml -o acme -u u1 -r team-lead

        dashcache load -d fixtures.yaml -o acme -u u1 -r hr --skip reports --json
    """
    asyncio.run(_load_async(
        ctx, data_path, organization_id, user_id, role, user_role,
        skip, latency, twice, as_json,
    ))


async def _load_async(
    ctx: click.Context,
    data_path: str,
    organization_id: str,
    user_id: str,
    role: str,
    user_role: str,
    skip: tuple,
    latency: float,
    twice: bool,
    as_json: bool,
) -> None:
    cache = CacheService(load_config(ctx))
    source = InMemoryDataSource.from_yaml(data_path, latency=latency)
    loader = DashboardLoader(
        cache,
        source,
        organization=OrganizationContext(id=organization_id),
        user=UserContext(id=user_id, organization_id=organization_id, role=user_role or role),
        role=role,
        skip_domains=[DataDomain(name) for name in skip],
    )

    if ctx.obj.get("verbose") and not as_json:
        loader.on_any(_print_event)

    try:
        await loader.load()
        state = await loader.wait()
        if twice:
            await loader.refresh()
            state = await loader.wait()
    finally:
        await loader.close()

    if as_json:
        snapshot = state.snapshot()
        snapshot["stats"] = cache.get_stats().to_dict()
        click.echo(json.dumps(snapshot, indent=2, default=str))
        if state.error:
            raise SystemExit(1)
        return

    if state.error:
        console.print(f"[red]Error: {state.error}[/red]")
        raise SystemExit(1)

    console.print(_state_table(state, source))
    stats = cache.get_stats()
    console.print(
        f"[dim]cache: {stats.size} entries, {stats.hits} hits, "
        f"{stats.misses} misses, hit rate {stats.hit_rate:.0%}[/dim]"
    )


def _state_table(state: DashboardState, source: InMemoryDataSource) -> Table:
    table = Table(title=f"Dashboard ({state.organization.id if state.organization else '?'})")
    table.add_column("Domain", style="cyan")
    table.add_column("Status")
    table.add_column("Items", justify="right")
    for domain in state.required:
        data = state[domain]
        status = "[yellow]loading[/yellow]" if state.loading[domain] else "[green]✓[/green]"
        table.add_row(domain.value, status, str(len(data)))
    table.caption = f"{source.call_count()} fetches"
    return table


def _print_event(event: DashboardEvent) -> None:
    if isinstance(event, ShellReadyEvent):
        names = ", ".join(d.value for d in event.required_domains)
        console.print(f"[dim]shell ready ({event.role}): {names}[/dim]")
    elif isinstance(event, DomainLoadedEvent) and event.domain is not None:
        console.print(f"[green]✓[/green] {event.domain.value}")
    elif isinstance(event, DomainFailedEvent) and event.domain is not None:
        console.print(f"[red]✗[/red] {event.domain.value}: {event.error}")
    elif isinstance(event, SetupErrorEvent):
        console.print(f"[red]setup failed: {event.error}[/red]")
