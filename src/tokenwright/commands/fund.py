"""fund - top up secondary accounts that have fallen below the gas floor."""

from __future__ import annotations

import click

from ..console import field, ok, print_banner, section, warn
from ..engine.funding import FundingAction, FundingStateMachine
from ..errors import TokenwrightError
from ..runtime import fail, runtime_from_context
from ..utils import format_units


@click.command()
@click.pass_context
def fund(ctx: click.Context) -> None:
    """
    Top up secondary accounts from the primary account.

    An account at or above MIN_BALANCE is skipped; one below it receives
    FUND_AMOUNT.  Running it again right after a successful run sends
    nothing.
    """
    runtime = runtime_from_context(ctx)
    settings = runtime.settings
    print_banner(runtime.network.name)

    try:
        secondaries = runtime.registry.secondaries
    except TokenwrightError as exc:
        fail(exc)

    if not secondaries:
        click.echo("  Only one account configured; nothing to fund.")
        click.echo("  Add PRIVATE_KEY_USER1 and PRIVATE_KEY_USER2 to .env.")
        return

    machine = FundingStateMachine(
        runtime.registry,
        runtime.executor,
        fund_amount=settings.fund_amount,
        min_balance=settings.min_balance,
        min_funder_balance=settings.min_funder_balance,
    )
    try:
        report = machine.run(secondaries)
    except TokenwrightError as exc:
        fail(exc)

    section(f"Funder ({report.funder.label})")
    field("Address", report.funder.address)
    field("Balance", f"{format_units(report.funder_balance)} ETH")

    for result in report.results:
        decision = result.decision
        section(decision.account.label)
        field("Address", decision.account.address)
        field("Balance", f"{format_units(decision.current_balance)} ETH")
        if decision.action is FundingAction.SKIP:
            ok("balance sufficient, skipped")
        elif result.funded:
            field("Tx hash", result.outcome.transaction_hash)
            ok(f"sent {format_units(decision.amount)} ETH")
        else:
            warn(f"top-up reverted (tx {result.outcome.transaction_hash})")

    section("Balances")
    try:
        for account in runtime.registry.list_accounts():
            balance = runtime.registry.balance_of(account)
            field(account.label, f"{format_units(balance)} ETH")
    except TokenwrightError as exc:
        fail(exc)

    click.echo()
    if report.reverted:
        fail(TokenwrightError(f"{len(report.reverted)} top-up(s) reverted"))
    ok(f"Funding complete ({report.transfers} transfer(s))")
