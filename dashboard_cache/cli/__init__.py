"""Dashboard cache command-line interface."""

from .app import cli


def main() -> None:
    cli(obj={})


__all__ = ["cli", "main"]
