"""
Reconciliation - rebuild the token's history from its event logs.

Scans from the deployment block to the chain head (minus an optional
confirmation depth), decodes every log and tallies net balance changes per
address.  Minted/Burned events carry mint and burn; the zero-address
Transfer events the token also emits for them are mirrors and are not
counted again.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from .events import Burned, DecodedEvent, DispatchSummary, EventDispatcher, Minted, Transfer
from .scanner import DEFAULT_CHUNK_SIZE, LogScanner
from ..chain.backend import ChainBackend
from ..chain.rpc import READ_ERRORS
from ..errors import ChainReadFailed
from ..records.deployment import DeploymentRecord
from ..utils import ZERO_ADDRESS, same_address

LOGGER = logging.getLogger("tokenwright.reconcile")


@dataclass
class BalanceTally:
    deltas: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    minted: int = 0
    burned: int = 0
    transfers: int = 0

    @property
    def net_supply(self) -> int:
        return self.minted - self.burned

    def balance(self, address: str) -> int:
        return self.deltas.get(address.lower(), 0)

    def on_minted(self, event: Minted) -> None:
        self.minted += event.amount
        self.deltas[event.to_address.lower()] += event.amount

    def on_burned(self, event: Burned) -> None:
        self.burned += event.amount
        self.deltas[event.from_address.lower()] -= event.amount

    def on_transfer(self, event: Transfer) -> None:
        if same_address(event.from_address, ZERO_ADDRESS) or same_address(event.to_address, ZERO_ADDRESS):
            return
        self.transfers += 1
        self.deltas[event.from_address.lower()] -= event.amount
        self.deltas[event.to_address.lower()] += event.amount

    def attach(self, dispatcher: EventDispatcher) -> None:
        dispatcher.on(Minted, self.on_minted)
        dispatcher.on(Burned, self.on_burned)
        dispatcher.on(Transfer, self.on_transfer)


@dataclass
class ReconciliationReport:
    contract_address: str
    from_block: int
    to_block: int
    events: list[DecodedEvent]
    summary: DispatchSummary
    tally: BalanceTally


def scan_bounds(
    backend: ChainBackend,
    record: DeploymentRecord,
    confirmations: int = 0,
    from_block: Optional[int] = None,
    to_block: Optional[int] = None,
) -> tuple[int, int]:
    start = record.block_number if from_block is None else from_block
    if to_block is None:
        try:
            to_block = backend.get_block_number() - confirmations
        except READ_ERRORS as exc:
            raise ChainReadFailed("the latest block number", exc) from exc
    return start, to_block


def reconcile(
    backend: ChainBackend,
    record: DeploymentRecord,
    scanner: LogScanner,
    max_chunk: int = DEFAULT_CHUNK_SIZE,
    confirmations: int = 0,
    from_block: Optional[int] = None,
    to_block: Optional[int] = None,
    dispatcher: Optional[EventDispatcher] = None,
) -> ReconciliationReport:
    """
    Scan the deployed contract's logs and tally them.

    Args:
        backend: Chain to read from
        record: Deployment record naming the contract and its first block
        scanner: Chunked log scanner
        max_chunk: Block range per retrieval
        confirmations: Blocks behind head to stop at
        from_block: Override the start block (default: deployment block)
        to_block: Override the end block (default: head - confirmations)
        dispatcher: Dispatcher to reuse; extra handlers registered on it
            see every event

    Raises:
        RetrievalFailed: A chunk could not be fetched
    """
    start, end = scan_bounds(backend, record, confirmations, from_block, to_block)
    dispatcher = dispatcher or EventDispatcher()

    tally = BalanceTally()
    tally.attach(dispatcher)
    events: list[DecodedEvent] = []
    dispatcher.on_any(events.append)

    LOGGER.info("reconciling %s over blocks %d-%d", record.contract_address, start, end)
    summary = dispatcher.run(scanner.scan(record.contract_address, start, end, max_chunk))

    return ReconciliationReport(
        contract_address=record.contract_address,
        from_block=start,
        to_block=end,
        events=events,
        summary=summary,
        tally=tally,
    )
