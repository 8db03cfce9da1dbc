"""
Deployment Recorder - the one durable artifact tokenwright writes.

One JSON file per network (``deployments/<network>.json``).  A new
deployment on the same network replaces the previous record; interaction
and reconciliation always read the current one and refuse to guess an
address when it is missing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from ..chain.tx import TransactionOutcome
from ..errors import DeploymentNotFound, DeploymentRecordInvalid
from ..utils import atomic_write, parse_rfc3339, to_rfc3339, utc_now

LOGGER = logging.getLogger("tokenwright.records")

SCHEMA_PATH = Path(__file__).resolve().parent / "deployment.schema.json"


@lru_cache(maxsize=1)
def _record_validator() -> Draft202012Validator:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def record_errors(payload: Any) -> list[str]:
    """
    Schema violations in a deployment record payload.

    Returns:
        ``"<json path>: <message>"`` strings ordered by location; empty
        when the payload is a valid record
    """
    errors = sorted(
        _record_validator().iter_errors(payload),
        key=lambda error: [str(part) for part in error.absolute_path],
    )
    return [
        f"{'/'.join(str(part) for part in error.absolute_path) or '<root>'}: {error.message}"
        for error in errors
    ]


@dataclass(frozen=True)
class ContractMetadata:
    name: str
    symbol: str
    decimals: int
    owner: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "owner": self.owner,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "ContractMetadata":
        return cls(
            name=payload["name"],
            symbol=payload["symbol"],
            decimals=int(payload["decimals"]),
            owner=payload["owner"],
        )


@dataclass(frozen=True)
class DeploymentRecord:
    """
    What was deployed where.

    Attributes:
        network: Network name; also the record's key on disk
        chain_id: EIP-155 chain id
        contract_address: Deployed contract address
        deployer_address: Account that signed the deployment
        transaction_hash: Deployment transaction hash
        block_number: Block that confirmed the deployment
        gas_used: Gas consumed by the deployment
        created_at: When the record was made (UTC)
        contract_info: Metadata read back from the contract
    """
    network: str
    chain_id: int
    contract_address: str
    deployer_address: str
    transaction_hash: str
    block_number: int
    gas_used: int
    contract_info: ContractMetadata
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "network": self.network,
            "chainId": self.chain_id,
            "contractAddress": self.contract_address,
            "deployerAddress": self.deployer_address,
            "transactionHash": self.transaction_hash,
            "blockNumber": self.block_number,
            "gasUsed": str(self.gas_used),
            "timestamp": to_rfc3339(self.created_at),
            "contractInfo": self.contract_info.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "DeploymentRecord":
        return cls(
            network=payload["network"],
            chain_id=int(payload["chainId"]),
            contract_address=payload["contractAddress"],
            deployer_address=payload["deployerAddress"],
            transaction_hash=payload["transactionHash"],
            block_number=int(payload["blockNumber"]),
            gas_used=int(payload["gasUsed"]),
            created_at=parse_rfc3339(payload["timestamp"]),
            contract_info=ContractMetadata.from_dict(payload["contractInfo"]),
        )


class DeploymentRecorder:
    """
    Builds, writes and reads deployment records.

    Args:
        directory: Where ``<network>.json`` files live
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def path_for(self, network: str) -> Path:
        return self.directory / f"{network}.json"

    def exists(self, network: str) -> bool:
        return self.path_for(network).is_file()

    @staticmethod
    def record(
        outcome: TransactionOutcome,
        contract_address: str,
        network: str,
        chain_id: int,
        metadata: ContractMetadata,
        deployer_address: str,
    ) -> DeploymentRecord:
        """
        Build the record for a confirmed deployment.

        Raises:
            ValueError: If the outcome is not confirmed, or its confirmation
                block precedes the block seen at submission
        """
        if not outcome.confirmed:
            raise ValueError(f"Cannot record a {outcome.status.value} deployment ({outcome.transaction_hash})")
        if outcome.submitted_block is not None and outcome.block_number < outcome.submitted_block:
            raise ValueError(
                f"Deployment {outcome.transaction_hash} confirmed in block {outcome.block_number}, "
                f"before it was submitted (block {outcome.submitted_block})"
            )
        return DeploymentRecord(
            network=network,
            chain_id=chain_id,
            contract_address=contract_address,
            deployer_address=deployer_address,
            transaction_hash=outcome.transaction_hash,
            block_number=outcome.block_number,
            gas_used=outcome.gas_used,
            contract_info=metadata,
        )

    def persist(self, record: DeploymentRecord) -> Path:
        """Write the record, replacing any earlier one for the same network."""
        path = self.path_for(record.network)
        payload = json.dumps(record.to_dict(), indent=2) + "\n"
        atomic_write(path, payload.encode("utf-8"))
        LOGGER.info("deployment record for %s written to %s", record.network, path)
        return path

    def load(self, network: str) -> DeploymentRecord:
        """
        Read the current record for ``network``.

        Raises:
            DeploymentNotFound: If nothing was deployed on that network yet
            DeploymentRecordInvalid: If the file is unreadable or malformed
        """
        path = self.path_for(network)
        if not path.is_file():
            raise DeploymentNotFound(network, path)

        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise DeploymentRecordInvalid(network, [str(exc)]) from exc

        errors = record_errors(payload)
        if errors:
            raise DeploymentRecordInvalid(network, errors)

        try:
            return DeploymentRecord.from_dict(payload)
        except ValueError as exc:
            raise DeploymentRecordInvalid(network, [str(exc)]) from exc
