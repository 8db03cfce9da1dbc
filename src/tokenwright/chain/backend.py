"""
Chain boundary.

``ChainBackend`` is everything the engine needs from a node.  The production
implementation, :class:`RpcChainBackend`, signs locally with eth-account and
talks JSON-RPC through :class:`~tokenwright.chain.rpc.JsonRpcClient`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Protocol

from .rpc import JsonRpcClient
from .types import CallDescriptor, LogRecord, Receipt
from ..utils import to_checksum_address

if TYPE_CHECKING:
    from ..wallet.registry import Account

LOGGER = logging.getLogger("tokenwright.backend")


class ChainBackend(Protocol):
    def get_balance(self, address: str) -> int:
        ...

    def get_block_number(self) -> int:
        ...

    def send_transaction(self, descriptor: CallDescriptor, signer: "Account") -> str:
        ...

    def wait_for_receipt(self, tx_hash: str) -> Receipt:
        ...

    def get_logs(self, address: str, from_block: int, to_block: int) -> list[LogRecord]:
        ...

    def call(self, to: str, data: str) -> str:
        ...


class RpcChainBackend:
    """
    ChainBackend over JSON-RPC.

    Args:
        client: JSON-RPC client bound to the network endpoint
        chain_id: EIP-155 chain id used when signing
        gas_price: Fixed gas price in wei; None asks the node per transaction
        receipt_timeout: Seconds to wait for a receipt
        poll_interval: Seconds between receipt polls
    """

    def __init__(
        self,
        client: JsonRpcClient,
        chain_id: int,
        gas_price: Optional[int] = None,
        receipt_timeout: float = 120.0,
        poll_interval: float = 2.0,
    ) -> None:
        self.client = client
        self.chain_id = chain_id
        self.gas_price = gas_price
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval

    def get_balance(self, address: str) -> int:
        return self.client.get_balance(address)

    def get_block_number(self) -> int:
        return self.client.get_block_number()

    def call(self, to: str, data: str) -> str:
        return self.client.eth_call(to, data)

    def get_logs(self, address: str, from_block: int, to_block: int) -> list[LogRecord]:
        return self.client.get_logs(address, from_block, to_block)

    def build_transaction(self, descriptor: CallDescriptor, sender: str) -> dict[str, Any]:
        """Unsigned transaction dict for ``descriptor`` sent by ``sender``."""
        tx: dict[str, Any] = {
            "data": descriptor.data,
            "value": descriptor.value,
            "nonce": self.client.get_nonce(sender, "pending"),
            "gas": descriptor.gas_limit,
            "gasPrice": self.gas_price if self.gas_price is not None else self.client.get_gas_price(),
            "chainId": self.chain_id,
        }
        if descriptor.to is not None:
            tx["to"] = to_checksum_address(descriptor.to)
        return tx

    def send_transaction(self, descriptor: CallDescriptor, signer: "Account") -> str:
        tx = self.build_transaction(descriptor, signer.address)
        signed = signer.signer.sign_transaction(tx)
        raw_tx = signed.raw_transaction.hex()
        if not raw_tx.startswith("0x"):
            raw_tx = "0x" + raw_tx
        LOGGER.debug("sending %s nonce=%s from %s", descriptor.label, tx["nonce"], signer.address)
        return self.client.send_raw_transaction(raw_tx)

    def wait_for_receipt(self, tx_hash: str) -> Receipt:
        return self.client.wait_for_receipt(
            tx_hash,
            timeout=self.receipt_timeout,
            poll_interval=self.poll_interval,
        )
