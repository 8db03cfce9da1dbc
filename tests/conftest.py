"""
Shared fixtures: an in-memory chain that speaks the ChainBackend protocol.

``FakeChain`` mines one block per transaction and emulates MyToken well
enough for the engine: owner-only mint, holder burn, transfer, the
standard Transfer event plus TokenMinted/TokenBurned, and the view calls.
Reverts leave state untouched and produce a status-0 receipt.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import pytest
from eth_abi import decode, encode

from tokenwright.chain.abi import MY_TOKEN_ABI, event_topic, function_selector
from tokenwright.chain.rpc import RpcError
from tokenwright.chain.types import CallDescriptor, LogRecord, Receipt
from tokenwright.config import NETWORKS, Settings
from tokenwright.utils import ZERO_ADDRESS, address_to_topic, keccak256, to_checksum_address, to_wei
from tokenwright.wallet.registry import Account, AccountRegistry

OWNER_KEY = "0x" + "11" * 32
USER1_KEY = "0x" + "22" * 32
USER2_KEY = "0x" + "33" * 32

TRANSFER_TOPIC = event_topic("Transfer(address,address,uint256)")
MINTED_TOPIC = event_topic("TokenMinted(address,uint256,uint256)")
BURNED_TOPIC = event_topic("TokenBurned(address,uint256,uint256)")

_SELECTORS = {
    function_selector(sig).hex(): sig
    for sig in (
        "name()",
        "symbol()",
        "decimals()",
        "owner()",
        "totalSupply()",
        "balanceOf(address)",
        "mint(address,uint256)",
        "transfer(address,uint256)",
        "burn(uint256)",
    )
}


@dataclass
class FakeToken:
    address: str
    owner: str
    name: str = "MyToken"
    symbol: str = "MTK"
    decimals: int = 18
    total_supply: int = 0

    def __post_init__(self) -> None:
        self.balances: dict[str, int] = {}

    def balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)


class FakeChain:
    """
    In-memory ChainBackend.

    Args:
        balances: Initial native balances (wei) by address
        max_log_range: Largest ``to - from`` a single get_logs accepts
        timestamp: Block timestamp reported in mint/burn events
    """

    def __init__(
        self,
        balances: Optional[dict[str, int]] = None,
        max_log_range: Optional[int] = None,
        timestamp: int = 1_700_000_000,
    ) -> None:
        self.balances: dict[str, int] = {k.lower(): v for k, v in (balances or {}).items()}
        self.max_log_range = max_log_range
        self.timestamp = timestamp
        self.block_number = 1
        self.nonces: dict[str, int] = {}
        self.sent: list[tuple[str, int, str]] = []  # (sender, nonce, label)
        self.receipts: dict[str, Receipt] = {}
        self.tokens: dict[str, FakeToken] = {}
        self.logs: list[LogRecord] = []
        self.log_queries: list[tuple[int, int]] = []
        self.fail_log_query: Optional[int] = None
        self.fail_reads: Optional[Exception] = None
        self.reject_next: Optional[Exception] = None
        self.timeout_next = False
        self.revert_next = False

    # ---- ChainBackend ----

    def get_balance(self, address: str) -> int:
        self._check_reads()
        return self.balances.get(address.lower(), 0)

    def get_block_number(self) -> int:
        self._check_reads()
        return self.block_number

    def send_transaction(self, descriptor: CallDescriptor, signer: Account) -> str:
        if self.reject_next is not None:
            exc, self.reject_next = self.reject_next, None
            raise exc

        sender = signer.address
        nonce = self.nonces.get(sender.lower(), 0)
        self.nonces[sender.lower()] = nonce + 1
        self.sent.append((sender, nonce, descriptor.label))
        tx_hash = "0x" + keccak256(f"{sender.lower()}:{nonce}".encode()).hex()

        self.block_number += 1
        block = self.block_number
        revert, self.revert_next = self.revert_next, False
        contract_address = None
        logs: list[LogRecord] = []

        if not revert:
            try:
                if descriptor.to is None:
                    contract_address = self._deploy(sender, nonce)
                else:
                    logs = self._execute(sender, descriptor, tx_hash, block)
            except _Revert:
                revert = True
                logs = []

        self.logs.extend(logs)
        self.receipts[tx_hash] = Receipt(
            transaction_hash=tx_hash,
            block_number=block,
            gas_used=21_000 if not descriptor.data or descriptor.data == "0x" else 50_000,
            status=0 if revert else 1,
            contract_address=contract_address,
            logs=tuple(logs),
        )
        return tx_hash

    def wait_for_receipt(self, tx_hash: str) -> Receipt:
        if self.timeout_next:
            self.timeout_next = False
            raise TimeoutError(f"Transaction {tx_hash} not confirmed within 0s")
        return self.receipts[tx_hash]

    def get_logs(self, address: str, from_block: int, to_block: int) -> list[LogRecord]:
        query = len(self.log_queries)
        self.log_queries.append((from_block, to_block))
        if self.fail_log_query is not None and query == self.fail_log_query:
            raise RpcError(-32005, "query failed")
        if self.max_log_range is not None and to_block - from_block > self.max_log_range:
            raise RpcError(-32600, f"block range exceeds {self.max_log_range}")
        return [
            log for log in self.logs
            if log.address.lower() == address.lower() and from_block <= log.block_number <= to_block
        ]

    def call(self, to: str, data: str) -> str:
        self._check_reads()
        token = self.tokens.get(to.lower())
        if token is None:
            return "0x"
        signature, args = _split_call(data)
        if signature == "name()":
            out = encode(["string"], [token.name])
        elif signature == "symbol()":
            out = encode(["string"], [token.symbol])
        elif signature == "decimals()":
            out = encode(["uint8"], [token.decimals])
        elif signature == "owner()":
            out = encode(["address"], [token.owner])
        elif signature == "totalSupply()":
            out = encode(["uint256"], [token.total_supply])
        elif signature == "balanceOf(address)":
            (holder,) = decode(["address"], args)
            out = encode(["uint256"], [token.balance(holder)])
        else:
            return "0x"
        return "0x" + out.hex()

    # ---- Helpers ----

    def _check_reads(self) -> None:
        if self.fail_reads is not None:
            raise self.fail_reads

    def mine(self, blocks: int = 1) -> None:
        self.block_number += blocks

    def add_log(self, log: LogRecord) -> None:
        self.logs.append(log)

    def token(self, address: str) -> FakeToken:
        return self.tokens[address.lower()]

    def _deploy(self, sender: str, nonce: int) -> str:
        address = to_checksum_address("0x" + keccak256(f"create:{sender.lower()}:{nonce}".encode())[-20:].hex())
        self.tokens[address.lower()] = FakeToken(address=address, owner=sender)
        return address

    def _execute(self, sender: str, descriptor: CallDescriptor, tx_hash: str, block: int) -> list[LogRecord]:
        if descriptor.value:
            if self.get_balance(sender) < descriptor.value:
                raise _Revert()
            self.balances[sender.lower()] = self.get_balance(sender) - descriptor.value
            self.balances[descriptor.to.lower()] = self.get_balance(descriptor.to) + descriptor.value

        token = self.tokens.get(descriptor.to.lower())
        if token is None or not descriptor.data or descriptor.data == "0x":
            return []

        signature, args = _split_call(descriptor.data)
        emit = _Emitter(token.address, tx_hash, block)
        if signature == "mint(address,uint256)":
            to, amount = decode(["address", "uint256"], args)
            if sender.lower() != token.owner.lower():
                raise _Revert()
            token.balances[to.lower()] = token.balance(to) + amount
            token.total_supply += amount
            emit(TRANSFER_TOPIC, [ZERO_ADDRESS, to], ["uint256"], [amount])
            emit(MINTED_TOPIC, [to], ["uint256", "uint256"], [amount, self.timestamp])
        elif signature == "transfer(address,uint256)":
            to, amount = decode(["address", "uint256"], args)
            if token.balance(sender) < amount:
                raise _Revert()
            token.balances[sender.lower()] = token.balance(sender) - amount
            token.balances[to.lower()] = token.balance(to) + amount
            emit(TRANSFER_TOPIC, [sender, to], ["uint256"], [amount])
        elif signature == "burn(uint256)":
            (amount,) = decode(["uint256"], args)
            if token.balance(sender) < amount:
                raise _Revert()
            token.balances[sender.lower()] = token.balance(sender) - amount
            token.total_supply -= amount
            emit(TRANSFER_TOPIC, [sender, ZERO_ADDRESS], ["uint256"], [amount])
            emit(BURNED_TOPIC, [sender], ["uint256", "uint256"], [amount, self.timestamp])
        else:
            raise _Revert()
        return emit.logs


class _Revert(Exception):
    pass


class _Emitter:
    def __init__(self, address: str, tx_hash: str, block: int) -> None:
        self.address = address
        self.tx_hash = tx_hash
        self.block = block
        self.logs: list[LogRecord] = []

    def __call__(self, topic: str, indexed: list[str], types: list[str], values: list[Any]) -> None:
        self.logs.append(
            LogRecord(
                address=self.address,
                block_number=self.block,
                transaction_hash=self.tx_hash,
                log_index=len(self.logs),
                topics=(topic, *(address_to_topic(a) for a in indexed)),
                data=encode(types, values),
            )
        )


def _split_call(data: str) -> tuple[str, bytes]:
    raw = bytes.fromhex(data[2:] if data.startswith("0x") else data)
    return _SELECTORS.get(raw[:4].hex(), ""), raw[4:]


def make_log(block: int, index: int = 0, address: str = "0x" + "ab" * 20, topic: str = "0x" + "ee" * 32) -> LogRecord:
    return LogRecord(
        address=address,
        block_number=block,
        transaction_hash="0x" + f"{block:064x}",
        log_index=index,
        topics=(topic,),
        data=b"",
    )


@pytest.fixture()
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def registry(chain: FakeChain) -> AccountRegistry:
    return AccountRegistry.from_keys(
        [("PRIVATE_KEY", 0, OWNER_KEY), ("PRIVATE_KEY_USER1", 1, USER1_KEY), ("PRIVATE_KEY_USER2", 2, USER2_KEY)],
        chain,
    )


@pytest.fixture()
def funded_chain(chain: FakeChain, registry: AccountRegistry) -> FakeChain:
    """Owner holds 10 ETH; the users hold nothing."""
    chain.balances[registry.primary.address.lower()] = to_wei("10")
    return chain


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        network=NETWORKS["localhost"],
        primary_key=OWNER_KEY,
        secondary_keys=((1, USER1_KEY), (2, USER2_KEY)),
        chunk_delay=0.0,
        deployments_dir=tmp_path / "deployments",
    )


@pytest.fixture()
def artifacts_dir(tmp_path: Path) -> Path:
    """A Hardhat-style artifact tree for MyToken."""
    target = tmp_path / "artifacts" / "contracts" / "MyToken.sol"
    target.mkdir(parents=True)
    (target / "MyToken.json").write_text(
        json.dumps({"contractName": "MyToken", "abi": MY_TOKEN_ABI, "bytecode": "0x6080604052"}),
        encoding="utf-8",
    )
    return tmp_path / "artifacts"
