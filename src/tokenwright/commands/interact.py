"""
interact - drive the deployed token through the standard script.

Needs three accounts (owner plus two users) and an existing deployment
record for the selected network.  After the script the contract's event
history is scanned and reconciled.
"""

from __future__ import annotations

import click

from ..chain.contract import TokenContract
from ..console import field, ok, print_banner, section
from ..engine.scenario import StepResult, run_interaction
from ..errors import TokenwrightError
from ..runtime import fail, runtime_from_context
from ..utils import format_units
from .scan import reconcile_deployment


@click.command()
@click.option("--skip-scan", is_flag=True, help="Do not reconcile event logs afterwards")
@click.pass_context
def interact(ctx: click.Context, skip_scan: bool) -> None:
    """Mint, transfer and burn MyToken, then reconcile its event logs."""
    runtime = runtime_from_context(ctx)
    network = runtime.network
    print_banner(network.name)

    try:
        accounts = runtime.registry.require(3, "The interaction script")
        record = runtime.recorder.load(network.name)
    except TokenwrightError as exc:
        fail(exc)

    info = record.contract_info
    field("Contract", record.contract_address)
    for account in accounts:
        field(account.label, account.address)

    token = TokenContract(runtime.backend, record.contract_address)

    def report_step(step: StepResult) -> None:
        section(step.outcome.label)
        field("Tx hash", step.outcome.transaction_hash)
        field("Block", step.outcome.block_number)
        for label, balance in step.balances.items():
            field(label, f"{format_units(balance, info.decimals)} {info.symbol}")

    try:
        result = run_interaction(token, runtime.executor, accounts, on_step=report_step)
    except TokenwrightError as exc:
        fail(exc)

    section("Final state")
    for label, balance in result.balances.items():
        field(label, f"{format_units(balance, info.decimals)} {info.symbol}")
    field("Total supply", f"{format_units(result.total_supply, info.decimals)} {info.symbol}")
    click.echo()
    ok("Interaction complete")

    if not skip_scan:
        reconcile_deployment(runtime)
