"""deploy - deploy MyToken and record where it went."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from ..chain.abi import load_artifact
from ..console import field, ok, print_banner, section
from ..engine.deploy import deploy_token
from ..errors import TokenwrightError
from ..runtime import fail, runtime_from_context
from ..utils import format_units


@click.command()
@click.option("--contract", default="MyToken", show_default=True, help="Contract name in the build artifacts")
@click.option(
    "--artifacts-dir",
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    default=None,
    help="Hardhat/Foundry build output (default: ARTIFACTS_DIR or search upward)",
)
@click.pass_context
def deploy(ctx: click.Context, contract: str, artifacts_dir: Optional[Path]) -> None:
    """
    Deploy MyToken from the primary account.

    Writes deployments/<network>.json, replacing any earlier record for
    the same network.
    """
    runtime = runtime_from_context(ctx)
    network = runtime.network
    print_banner(network.name)

    try:
        deployer = runtime.registry.primary
        balance = runtime.registry.balance_of(deployer)
        field("Deployer", deployer.address)
        field("Balance", f"{format_units(balance)} ETH")

        artifact = load_artifact(contract, artifacts_dir or runtime.settings.artifacts_dir)
        click.echo(f"\n  Deploying {artifact.name}...")

        result = deploy_token(
            runtime.executor,
            runtime.backend,
            deployer,
            artifact,
            network,
            runtime.recorder,
        )
    except ValueError as exc:
        fail(TokenwrightError(str(exc)))
    except TokenwrightError as exc:
        fail(exc)

    record = result.record
    ok(f"{artifact.name} deployed to {record.contract_address}")
    field("Tx hash", record.transaction_hash)
    field("Block", record.block_number)
    field("Gas used", record.gas_used)

    section("Contract")
    info = record.contract_info
    field("Name", info.name)
    field("Symbol", info.symbol)
    field("Decimals", info.decimals)
    field("Owner", info.owner)

    click.echo()
    field("Record", result.path)

    if not network.is_local:
        section("Verify")
        click.echo("  Wait a few blocks, then verify the source:")
        click.echo(f"  npx hardhat verify --network {network.name} {record.contract_address}")
        if network.explorer_url:
            click.echo(f"  {network.explorer_url}/address/{record.contract_address}")

    click.echo()
    click.echo(f"  Next: tokenwright --network {network.name} interact")
