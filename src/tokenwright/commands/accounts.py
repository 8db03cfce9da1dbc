"""
accounts - show every configured signer and whether it can pay for gas.

Read-only.  Ends with advice for the number of accounts configured and,
on public test networks, where to get test ETH.
"""

from __future__ import annotations

import click

from ..console import field, ok, print_banner, section, warn
from ..errors import TokenwrightError
from ..runtime import fail, runtime_from_context
from ..utils import format_units


@click.command()
@click.pass_context
def accounts(ctx: click.Context) -> None:
    """Show configured accounts and their balances."""
    runtime = runtime_from_context(ctx)
    network = runtime.network
    print_banner(network.name)
    field("Network", network.name)
    field("Chain ID", network.chain_id)

    try:
        configured = runtime.registry.list_accounts()
        balances = [runtime.registry.balance_of(account) for account in configured]
    except TokenwrightError as exc:
        fail(exc)

    section(f"Accounts ({len(configured)})")
    for account, balance in zip(configured, balances):
        click.echo()
        click.secho(f"  [{account.label}]", bold=True)
        field("Address", account.address)
        field("Balance", f"{format_units(balance)} ETH")
        if balance == 0:
            warn("balance is 0; this account cannot pay for gas")
        elif balance < runtime.settings.low_balance_warning:
            warn("balance is low; top it up")
        else:
            ok("balance sufficient")

    section("Summary")
    field("Accounts", len(configured))
    field("Total", f"{format_units(sum(balances))} ETH")
    click.echo()

    if len(configured) == 1:
        click.echo("  Single-account mode: deploy works, the interaction script does not.")
        click.echo("  Add PRIVATE_KEY_USER1 and PRIVATE_KEY_USER2 to .env, fund them,")
        click.echo("  then run this command again.")
    elif len(configured) == 2:
        click.echo("  Two-account mode: transfers can be tested.")
        click.echo("  Add PRIVATE_KEY_USER2 to .env to run the full interaction script.")
    else:
        ok("Multi-account mode: mint, transfer and burn are all available.")
        click.echo(f"  Next: tokenwright --network {network.name} interact")

    if network.faucets:
        section("Faucets")
        for url in network.faucets:
            click.echo(f"  - {url}")
