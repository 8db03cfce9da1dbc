"""Deploy MyToken and write its deployment record."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from ..chain.abi import ContractArtifact
from ..chain.backend import ChainBackend
from ..chain.contract import TokenContract, deploy_descriptor
from ..chain.tx import TransactionExecutor, TransactionOutcome
from ..config import NetworkConfig
from ..errors import TokenwrightError
from ..records.deployment import ContractMetadata, DeploymentRecord, DeploymentRecorder
from ..wallet.registry import Account

LOGGER = logging.getLogger("tokenwright.deploy")


@dataclass(frozen=True)
class DeploymentResult:
    record: DeploymentRecord
    path: Path
    outcome: TransactionOutcome


def read_metadata(token: TokenContract) -> ContractMetadata:
    return ContractMetadata(
        name=token.name(),
        symbol=token.symbol(),
        decimals=token.decimals(),
        owner=token.owner(),
    )


def deploy_token(
    executor: TransactionExecutor,
    backend: ChainBackend,
    deployer: Account,
    artifact: ContractArtifact,
    network: NetworkConfig,
    recorder: DeploymentRecorder,
) -> DeploymentResult:
    """
    Deploy ``artifact`` from ``deployer`` and persist the record.

    Raises:
        SubmissionFailed: The deployment was rejected or never confirmed
        TransactionReverted: The constructor reverted
        TokenwrightError: The receipt carried no contract address
    """
    outcome = executor.submit(deploy_descriptor(artifact), deployer).require_confirmed()
    if not outcome.contract_address:
        raise TokenwrightError(
            f"Deployment {outcome.transaction_hash} confirmed but the receipt has no contract address"
        )

    token = TokenContract(backend, outcome.contract_address)
    metadata = read_metadata(token)
    record = recorder.record(
        outcome,
        contract_address=outcome.contract_address,
        network=network.name,
        chain_id=network.chain_id,
        metadata=metadata,
        deployer_address=deployer.address,
    )
    path = recorder.persist(record)
    LOGGER.info("%s deployed on %s at %s", artifact.name, network.name, outcome.contract_address)
    return DeploymentResult(record=record, path=path, outcome=outcome)
