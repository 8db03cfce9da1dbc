"""
JSON-RPC Client for EVM nodes.

Lightweight alternative to web3.py: uses httpx for HTTP.
Supports balance and nonce queries, raw transaction submission, receipt
polling and ``eth_getLogs``.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Any, Optional

import httpx

from .types import LogRecord, Receipt
from ..utils import hex_to_int

LOGGER = logging.getLogger("tokenwright.rpc")


class RpcError(RuntimeError):
    """Error object returned by the node in a JSON-RPC response."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data


# Failures a read against the node can surface; ValueError covers
# undecodable fields such as bad hex quantities or log data.
READ_ERRORS = (RpcError, httpx.HTTPError, OSError, ValueError)


class JsonRpcClient:
    """
    Minimal JSON-RPC 2.0 client over one pooled httpx connection.

    Args:
        rpc_url: Node endpoint URL
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._client = httpx.Client(timeout=timeout, transport=transport)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "JsonRpcClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def call(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the node answers with an error object or a body
                that is not a JSON-RPC response
            httpx.HTTPError: On transport failure or non-2xx status
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": next(self._ids),
        }
        response = self._client.post(self.rpc_url, json=payload)
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError as exc:
            # e.g. a provider's HTML rate-limit page served with status 200
            raise RpcError(-32700, f"invalid JSON in {method} response: {exc}") from exc
        if not isinstance(data, dict):
            raise RpcError(-32700, f"unexpected {method} response: {type(data).__name__}")

        if "error" in data and data["error"] is not None:
            error = data["error"]
            if isinstance(error, dict):
                raise RpcError(
                    int(error.get("code", -1)),
                    str(error.get("message", "unknown error")),
                    error.get("data"),
                )
            raise RpcError(-1, str(error))

        return data.get("result")

    # ---- Reads ----

    def chain_id(self) -> int:
        return hex_to_int(self.call("eth_chainId", []))

    def get_block_number(self) -> int:
        return hex_to_int(self.call("eth_blockNumber", []))

    def get_balance(self, address: str, block: str = "latest") -> int:
        """Balance in wei."""
        return hex_to_int(self.call("eth_getBalance", [address, block]))

    def get_nonce(self, address: str, block: str = "pending") -> int:
        """Transaction count, including transactions still in the pool."""
        return hex_to_int(self.call("eth_getTransactionCount", [address, block]))

    def get_gas_price(self) -> int:
        return hex_to_int(self.call("eth_gasPrice", []))

    def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        result = self.call("eth_call", [{"to": to, "data": data}, block])
        return result or "0x"

    def get_logs(self, address: str, from_block: int, to_block: int) -> list[LogRecord]:
        raw_logs = self.call(
            "eth_getLogs",
            [{"address": address, "fromBlock": hex(from_block), "toBlock": hex(to_block)}],
        )
        logs = [parse_log(entry) for entry in raw_logs or []]
        logs.sort(key=lambda log: log.position)
        return logs

    # ---- Writes ----

    def send_raw_transaction(self, raw_tx: str) -> str:
        """
        Send a signed raw transaction.

        Args:
            raw_tx: 0x-prefixed hex encoded signed transaction

        Returns:
            Transaction hash (0x-prefixed hex)
        """
        return self.call("eth_sendRawTransaction", [raw_tx])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Receipt]:
        raw = self.call("eth_getTransactionReceipt", [tx_hash])
        if raw is None:
            return None
        return parse_receipt(raw)

    def wait_for_receipt(
        self,
        tx_hash: str,
        timeout: float = 120,
        poll_interval: float = 2.0,
    ) -> Receipt:
        """
        Wait for a transaction receipt.

        Args:
            tx_hash: Transaction hash
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            Parsed receipt

        Raises:
            TimeoutError: If receipt not found within timeout
        """
        start = time.monotonic()
        while True:
            receipt = self.get_transaction_receipt(tx_hash)
            if receipt is not None:
                return receipt
            if time.monotonic() - start >= timeout:
                break
            LOGGER.debug("receipt for %s not available yet", tx_hash)
            time.sleep(poll_interval)

        raise TimeoutError(f"Transaction {tx_hash} not confirmed within {timeout}s")


def parse_log(raw: dict[str, Any]) -> LogRecord:
    data = raw.get("data") or "0x"
    return LogRecord(
        address=raw.get("address", ""),
        block_number=hex_to_int(raw.get("blockNumber")),
        transaction_hash=raw.get("transactionHash", ""),
        log_index=hex_to_int(raw.get("logIndex")),
        topics=tuple(raw.get("topics") or ()),
        data=bytes.fromhex(data[2:] if data.startswith("0x") else data),
    )


def parse_receipt(raw: dict[str, Any]) -> Receipt:
    return Receipt(
        transaction_hash=raw.get("transactionHash", ""),
        block_number=hex_to_int(raw.get("blockNumber")),
        gas_used=hex_to_int(raw.get("gasUsed")),
        status=hex_to_int(raw.get("status", "0x0")),
        contract_address=raw.get("contractAddress"),
        logs=tuple(parse_log(entry) for entry in raw.get("logs") or ()),
    )
