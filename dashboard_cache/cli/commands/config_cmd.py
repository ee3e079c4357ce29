"""Configuration commands."""

import os

import click
import yaml
from rich.console import Console
from rich.syntax import Syntax

from ...config import CacheConfig
from ..app import load_config

console = Console()


@click.group()
def config() -> None:
    """Inspect and create configuration files."""


@config.command("show")
@click.pass_context
def config_show(ctx: click.Context) -> None:
    """Print the effective configuration as YAML."""
    text = yaml.dump(load_config(ctx).to_dict(), default_flow_style=False, sort_keys=False)
    console.print(Syntax(text, "yaml"))


@config.command("init")
@click.argument("path", type=click.Path(dir_okay=False))
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def config_init(path: str, force: bool) -> None:
    """Write a default configuration to PATH."""
    if os.path.exists(path) and not force:
        console.print(f"[red]{path} already exists (use --force)[/red]")
        raise SystemExit(1)
    CacheConfig().save(path)
    console.print(f"[green]✓ Wrote {path}[/green]")
