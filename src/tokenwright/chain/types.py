"""Plain data carried across the chain boundary."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class LogRecord:
    address: str
    block_number: int
    transaction_hash: str
    log_index: int
    topics: tuple[str, ...]
    data: bytes

    @property
    def primary_topic(self) -> Optional[str]:
        return self.topics[0].lower() if self.topics else None

    @property
    def position(self) -> tuple[int, int]:
        return (self.block_number, self.log_index)


@dataclass(frozen=True)
class Receipt:
    transaction_hash: str
    block_number: int
    gas_used: int
    status: int
    contract_address: Optional[str] = None
    logs: tuple[LogRecord, ...] = ()


@dataclass(frozen=True)
class CallDescriptor:
    """
    One state-changing call, not yet signed.

    Attributes:
        to: Target address; None creates a contract from ``data``
        data: 0x-prefixed calldata or init code
        value: Wei sent with the call
        gas_limit: Gas limit for the transaction
        label: Human-readable description used in logs and errors
    """
    to: Optional[str]
    data: str = "0x"
    value: int = 0
    gas_limit: int = 200_000
    label: str = "transaction"

    @property
    def is_deployment(self) -> bool:
        return self.to is None
