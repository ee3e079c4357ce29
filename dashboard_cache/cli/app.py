"""Dashboard cache CLI application."""

import logging
import os
from pathlib import Path

import click
from rich.console import Console

from .. import __version__
from ..config import CacheConfig
from ..utils.logging import setup_logging, setup_logging_from_dict

console = Console()


def find_config() -> str | None:
    """
    Find config file using standard priority order:

    1. DASHCACHE_CONFIG environment variable
    2. .dashcache.yaml in current directory (project config)
    3. ~/.config/dashboard-cache/config.yaml (user config)

    Returns None if no config found.
    """
    # 1. Environment variable (highest priority)
    env_config = os.environ.get("DASHCACHE_CONFIG")
    if env_config:
        path = Path(env_config)
        if path.exists():
            return str(path)

    # 2. Project config in current directory
    project_config = Path.cwd() / ".dashcache.yaml"
    if project_config.exists():
        return str(project_config)

    # 3. User config in ~/.config/dashboard-cache/
    user_config = Path.home() / ".config" / "dashboard-cache" / "config.yaml"
    if user_config.exists():
        return str(user_config)

    return None


def load_config(ctx: click.Context) -> CacheConfig:
    """CacheConfig from the file selected by the root command, or defaults."""
    path = ctx.obj.get("config") if ctx.obj else None
    return CacheConfig.load(path) if path else CacheConfig()


@click.group()
@click.version_option(version=__version__, prog_name="dashcache")
@click.option("--config", "-c", type=click.Path(exists=True), help="Config file path")
@click.option("--no-config", is_flag=True, help="Disable config auto-loading")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--debug", is_flag=True, help="Debug logging")
@click.pass_context
def cli(ctx: click.Context, config: str, no_config: bool, verbose: bool, debug: bool) -> None:
    """Dashboard cache: TTL/LRU cache and progressive dashboard loading.

    Config file locations (in priority order):

        1. -c/--config PATH (explicit)

        2. DASHCACHE_CONFIG env var

        3. .dashcache.yaml (project config)

        4. ~/.config/dashboard-cache/config.yaml (user config)

    Examples:

        dashcache ttl org:acme:employees:all

        dashcache load --data fixtures.yaml --org acme --user u1 --role hr
    """
    ctx.ensure_object(dict)

    if no_config:
        config = None
    elif config is None:
        config = find_config()
        if config and verbose:
            console.print(f"[dim]Using config: {config}[/dim]")

    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug

    if debug:
        setup_logging_from_dict({"level": "DEBUG"})
    elif config:
        setup_logging(CacheConfig.load(config))
    else:
        logging.getLogger().setLevel(logging.WARNING)


# Import and register commands
from .commands import config_cmd, load, ttl, version

cli.add_command(config_cmd.config)
cli.add_command(load.load)
cli.add_command(ttl.ttl)
cli.add_command(version.version)
