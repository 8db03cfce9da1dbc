"""
Transaction Executor - submit one state-changing call and wait for it.

Every write in tokenwright goes through :meth:`TransactionExecutor.submit`:
hand the call to the node, get a hash, block until the receipt arrives.
Writes are never retried here; a rejected or unconfirmed call surfaces to
the caller, who knows whether the sequence it belongs to can go on.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

import httpx

from .backend import ChainBackend
from .rpc import RpcError
from .types import CallDescriptor, LogRecord
from ..errors import ConfirmationTimeout, SubmissionFailed, TransactionReverted

if TYPE_CHECKING:
    from ..wallet.registry import Account

LOGGER = logging.getLogger("tokenwright.tx")

NATIVE_TRANSFER_GAS = 21_000

# Failures raised before the node has accepted the transaction.
_SUBMISSION_ERRORS = (RpcError, httpx.HTTPError, ValueError, TypeError)


class TxStatus(str, Enum):
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


@dataclass(frozen=True)
class TransactionOutcome:
    transaction_hash: str
    block_number: int
    gas_used: int
    status: TxStatus
    label: str = "transaction"
    submitted_block: Optional[int] = None
    contract_address: Optional[str] = None
    logs: tuple[LogRecord, ...] = ()

    @property
    def confirmed(self) -> bool:
        return self.status is TxStatus.CONFIRMED

    def require_confirmed(self) -> "TransactionOutcome":
        """Return self, or raise TransactionReverted for a reverted call."""
        if not self.confirmed:
            raise TransactionReverted(self.label, self.transaction_hash, self.block_number)
        return self


def native_transfer(to: str, amount: int, label: Optional[str] = None) -> CallDescriptor:
    return CallDescriptor(
        to=to,
        value=amount,
        gas_limit=NATIVE_TRANSFER_GAS,
        label=label or f"transfer of {amount} wei to {to}",
    )


class TransactionExecutor:
    """
    Serializes writes per signer and normalizes receipts.

    At most one call per signer is in flight: the signer's lock is held from
    nonce lookup until the receipt arrives, so back-to-back submissions from
    one account are mined in submission order.
    """

    def __init__(self, backend: ChainBackend) -> None:
        self.backend = backend
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, address: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(address.lower(), threading.Lock())

    def submit(self, descriptor: CallDescriptor, signer: "Account") -> TransactionOutcome:
        """
        Submit one call and block until it is mined.

        Args:
            descriptor: The call to make
            signer: Account that signs and pays gas

        Returns:
            TransactionOutcome with status CONFIRMED or REVERTED

        Raises:
            SubmissionFailed: The node rejected the call before execution
            ConfirmationTimeout: A hash was assigned but no receipt came back
        """
        with self._lock_for(signer.address):
            try:
                submitted_block = self.backend.get_block_number()
                tx_hash = self.backend.send_transaction(descriptor, signer)
            except _SUBMISSION_ERRORS as exc:
                raise SubmissionFailed(
                    f"{descriptor.label} from {signer.label} ({signer.address}) "
                    f"was rejected: {exc}",
                    signer=signer.address,
                ) from exc

            LOGGER.info("submitted %s tx=%s signer=%s", descriptor.label, tx_hash, signer.address)

            try:
                receipt = self.backend.wait_for_receipt(tx_hash)
            except TimeoutError as exc:
                raise ConfirmationTimeout(tx_hash, str(exc), signer=signer.address) from exc
            except (RpcError, httpx.HTTPError) as exc:
                raise ConfirmationTimeout(
                    tx_hash, f"receipt lookup failed ({exc})", signer=signer.address
                ) from exc

        status = TxStatus.CONFIRMED if receipt.status == 1 else TxStatus.REVERTED
        if status is TxStatus.CONFIRMED:
            LOGGER.info(
                "confirmed %s tx=%s block=%d gas=%d",
                descriptor.label, tx_hash, receipt.block_number, receipt.gas_used,
            )
        else:
            LOGGER.warning("reverted %s tx=%s block=%d", descriptor.label, tx_hash, receipt.block_number)

        return TransactionOutcome(
            transaction_hash=receipt.transaction_hash or tx_hash,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
            status=status,
            label=descriptor.label,
            submitted_block=submitted_block,
            contract_address=receipt.contract_address,
            logs=receipt.logs,
        )
