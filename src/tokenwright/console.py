"""Operator-facing output helpers shared by the commands."""

from __future__ import annotations

from typing import Optional

import click

VERSION = "0.3.0"


def print_banner(network: Optional[str] = None) -> None:
    """Print the single-line banner shown at the top of each command."""
    line = (
        click.style("  ◆ ", fg="cyan")
        + click.style("T O K E N W R I G H T", fg="bright_white", bold=True)
        + click.style(f"  v{VERSION}", dim=True)
    )
    if network:
        line += click.style(f"  [{network}]", fg="cyan")
    click.echo(line)
    click.echo()


def section(title: str) -> None:
    click.echo()
    click.secho(f"  {title} " + "─" * max(4, 40 - len(title)), fg="cyan")


def field(label: str, value: object, width: int = 14) -> None:
    click.echo(click.style(f"  {label + ':':<{width}}", dim=True) + f"{value}")


def warn(message: str) -> None:
    click.secho(f"  ! {message}", fg="yellow")


def ok(message: str) -> None:
    click.secho(f"  ✓ {message}", fg="green")
