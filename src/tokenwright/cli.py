"""
tokenwright CLI

Deploy, fund, drive and reconcile a MyToken contract on an EVM network.

Commands:
  accounts  - Show configured accounts and their balances
  deploy    - Deploy MyToken and write deployments/<network>.json
  fund      - Top up secondary accounts from the primary account
  interact  - Run the mint / transfer / burn script, then reconcile
  scan      - Rebuild balances from the contract's event logs
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click

from .config import DEFAULT_NETWORK, NETWORKS, load_settings
from .console import VERSION, print_banner
from .errors import TokenwrightError
from .log import configure_logging
from .runtime import fail


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="tokenwright")
@click.option(
    "--network",
    "-n",
    envvar="TOKENWRIGHT_NETWORK",
    default=DEFAULT_NETWORK,
    show_default=True,
    type=click.Choice(sorted(NETWORKS)),
    help="Target network",
)
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to a .env file (default: ./.env)",
)
@click.option(
    "--log-level",
    envvar="TOKENWRIGHT_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Diagnostic log level (default: WARNING)",
)
@click.pass_context
def cli(ctx: click.Context, network: str, env_file: Optional[Path], log_level: Optional[str]) -> None:
    """tokenwright - MyToken deployment and reconciliation toolkit."""
    configure_logging(log_level)
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        try:
            obj["settings"] = load_settings(network, env_file=env_file)
        except TokenwrightError as exc:
            fail(exc)

    if ctx.invoked_subcommand is None:
        print_banner()
        click.echo(ctx.get_help())


# ============ Commands ============

from .commands.accounts import accounts
from .commands.deploy import deploy
from .commands.fund import fund
from .commands.interact import interact
from .commands.scan import scan

cli.add_command(accounts)
cli.add_command(deploy)
cli.add_command(fund)
cli.add_command(interact)
cli.add_command(scan)


# ============ Entry Points ============


def main() -> None:
    """tokenwright CLI entry point."""
    # Ensure UTF-8 output on Windows (for the box-drawing banner)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass
    cli()


if __name__ == "__main__":
    main()
