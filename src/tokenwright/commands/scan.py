"""scan - rebuild token balances from the contract's event logs."""

from __future__ import annotations

from typing import Optional

import click

from ..console import field, print_banner, section, warn
from ..engine.reconcile import ReconciliationReport, reconcile
from ..errors import NoAccountsConfigured, TokenwrightError
from ..runtime import Runtime, fail, runtime_from_context
from ..utils import format_units


def print_report(report: ReconciliationReport, decimals: int, symbol: str, labels: dict[str, str]) -> None:
    """Echo a reconciliation: event counts, per-address deltas, supply."""
    section("Events")
    field("Blocks", f"{report.from_block}-{report.to_block}")
    for name, count in sorted(report.summary.counts.items()):
        field(name, count)
    if report.summary.malformed:
        warn(f"{len(report.summary.malformed)} malformed log(s) skipped")

    section("Net changes")
    tally = report.tally
    if not tally.deltas:
        click.echo("  (no balance changes)")
    for address, delta in sorted(tally.deltas.items()):
        name = labels.get(address, address)
        sign = "+" if delta >= 0 else "-"
        field(name, f"{sign}{format_units(abs(delta), decimals)} {symbol}", width=46)
    click.echo()
    field("Minted", f"{format_units(tally.minted, decimals)} {symbol}")
    field("Burned", f"{format_units(tally.burned, decimals)} {symbol}")
    field("Net supply", f"{format_units(tally.net_supply, decimals)} {symbol}")


def reconcile_deployment(
    runtime: Runtime,
    from_block: Optional[int] = None,
    to_block: Optional[int] = None,
) -> None:
    settings = runtime.settings
    try:
        record = runtime.recorder.load(runtime.network.name)
        report = reconcile(
            runtime.backend,
            record,
            runtime.scanner,
            max_chunk=settings.chunk_size,
            confirmations=settings.confirmations,
            from_block=from_block,
            to_block=to_block,
        )
    except TokenwrightError as exc:
        fail(exc)

    try:
        labels = {a.address.lower(): a.label for a in runtime.registry.list_accounts()}
    except NoAccountsConfigured:
        labels = {}

    info = record.contract_info
    print_report(report, info.decimals, info.symbol, labels)


@click.command()
@click.option("--from-block", type=int, default=None, help="First block (default: deployment block)")
@click.option("--to-block", type=int, default=None, help="Last block (default: head - CONFIRMATIONS)")
@click.pass_context
def scan(ctx: click.Context, from_block: Optional[int], to_block: Optional[int]) -> None:
    """Rebuild balances from the deployed contract's event logs."""
    runtime = runtime_from_context(ctx)
    print_banner(runtime.network.name)
    reconcile_deployment(runtime, from_block, to_block)
