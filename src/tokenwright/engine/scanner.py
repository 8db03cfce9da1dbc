"""
Log Scanner - walk a block interval in provider-sized chunks.

Hosted RPC providers cap the block range of one ``eth_getLogs`` query
(10,000 blocks on most free plans).  The scanner splits a long interval
into consecutive chunks, fetches them in ascending order and yields the
logs lazily, so the output is in chain order no matter how it was fetched.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator

from ..chain.backend import ChainBackend
from ..chain.rpc import READ_ERRORS
from ..chain.types import LogRecord
from ..errors import RetrievalFailed

LOGGER = logging.getLogger("tokenwright.scanner")

DEFAULT_CHUNK_SIZE = 10_000
DEFAULT_CHUNK_DELAY = 0.2


def plan_chunks(from_block: int, to_block: int, max_chunk: int) -> list[tuple[int, int]]:
    """
    Inclusive (start, end) ranges covering ``[from_block, to_block]``.

    A span of at most ``max_chunk`` goes out as a single range; longer
    intervals are cut into ``max_chunk``-block chunks, the last one
    possibly shorter.
    """
    if max_chunk <= 0:
        raise ValueError(f"max_chunk must be positive, got {max_chunk}")
    if from_block > to_block:
        return []
    if to_block - from_block <= max_chunk:
        return [(from_block, to_block)]

    chunks = []
    start = from_block
    while start <= to_block:
        end = min(start + max_chunk - 1, to_block)
        chunks.append((start, end))
        start = end + 1
    return chunks


class LogScanner:
    """
    Chunked ``eth_getLogs`` over a backend.

    Args:
        backend: Chain to read logs from
        delay: Seconds to pause between chunk retrievals
        concurrency: Chunks fetched at once (1 = strictly sequential)
        sleep: Pause function, swappable in tests
    """

    def __init__(
        self,
        backend: ChainBackend,
        delay: float = DEFAULT_CHUNK_DELAY,
        concurrency: int = 1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")
        self.backend = backend
        self.delay = delay
        self.concurrency = concurrency
        self._sleep = sleep

    def _fetch(self, address: str, chunk: tuple[int, int]) -> list[LogRecord]:
        start, end = chunk
        LOGGER.debug("fetching logs for %s in blocks %d-%d", address, start, end)
        try:
            logs = self.backend.get_logs(address, start, end)
        except READ_ERRORS as exc:
            raise RetrievalFailed(address, start, end, exc) from exc
        return sorted(logs, key=lambda log: log.position)

    def scan(
        self,
        address: str,
        from_block: int,
        to_block: int,
        max_chunk: int = DEFAULT_CHUNK_SIZE,
    ) -> Iterator[LogRecord]:
        """
        Yield every log emitted by ``address`` in ``[from_block, to_block]``.

        The sequence is recomputed on each call; to restart, call again with
        the same bounds.

        Raises:
            RetrievalFailed: When any chunk cannot be fetched (raised at the
                point in the sequence where that chunk would start)
        """
        chunks = plan_chunks(from_block, to_block, max_chunk)
        if len(chunks) > 1:
            LOGGER.info(
                "scanning %s blocks %d-%d in %d chunks of %d",
                address, from_block, to_block, len(chunks), max_chunk,
            )

        if self.concurrency == 1:
            for position, chunk in enumerate(chunks):
                if position:
                    self._sleep(self.delay)
                yield from self._fetch(address, chunk)
            return

        with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
            for offset in range(0, len(chunks), self.concurrency):
                if offset:
                    self._sleep(self.delay)
                window = chunks[offset:offset + self.concurrency]
                # map() hands results back in submission order
                for logs in pool.map(lambda chunk: self._fetch(address, chunk), window):
                    yield from logs
