"""
Event Decoder & Dispatcher.

Raw logs are matched on their first topic against the MyToken event table.
Anything unrecognized decodes to :class:`Unknown` instead of failing, so a
contract upgrade that emits new events cannot break reconciliation.  A log
whose topic *is* recognized but whose body cannot be decoded raises
:class:`~tokenwright.errors.MalformedEvent`; :meth:`EventDispatcher.run`
skips such records and carries on.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, TypeVar

from eth_abi import decode
from eth_abi.exceptions import DecodingError

from ..chain.abi import MY_TOKEN_ABI, event_topic, signature_of
from ..chain.types import LogRecord
from ..errors import MalformedEvent
from ..utils import to_checksum_address

LOGGER = logging.getLogger("tokenwright.events")


# ---- Decoded variants ----


@dataclass(frozen=True)
class DecodedEvent:
    log: LogRecord

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Transfer(DecodedEvent):
    from_address: str
    to_address: str
    amount: int


@dataclass(frozen=True)
class Minted(DecodedEvent):
    to_address: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class Burned(DecodedEvent):
    from_address: str
    amount: int
    timestamp: int


@dataclass(frozen=True)
class Unknown(DecodedEvent):
    pass


# ---- Schema table ----


@dataclass(frozen=True)
class EventSchema:
    name: str
    inputs: tuple[tuple[str, str, bool], ...]  # (name, type, indexed)
    build: Callable[[LogRecord, dict[str, Any]], DecodedEvent]

    @property
    def signature(self) -> str:
        return signature_of({"name": self.name, "inputs": [{"type": t} for _, t, _ in self.inputs]})

    @property
    def topic(self) -> str:
        return event_topic(self.signature)

    def decode_fields(self, log: LogRecord) -> dict[str, Any]:
        indexed = [(n, t) for n, t, is_indexed in self.inputs if is_indexed]
        body = [(n, t) for n, t, is_indexed in self.inputs if not is_indexed]

        if len(log.topics) != 1 + len(indexed):
            raise ValueError(f"expected {1 + len(indexed)} topics, got {len(log.topics)}")

        values: dict[str, Any] = {}
        for (name, abi_type), topic in zip(indexed, log.topics[1:]):
            raw = bytes.fromhex(topic[2:] if topic.startswith("0x") else topic)
            if len(raw) != 32:
                raise ValueError(f"topic for '{name}' is {len(raw)} bytes, expected 32")
            values[name] = decode([abi_type], raw)[0]

        decoded = decode([t for _, t in body], log.data)
        values.update({name: value for (name, _), value in zip(body, decoded)})
        return values


def _abi_inputs(event_name: str) -> tuple[tuple[str, str, bool], ...]:
    for entry in MY_TOKEN_ABI:
        if entry.get("type") == "event" and entry.get("name") == event_name:
            return tuple((i["name"], i["type"], bool(i.get("indexed"))) for i in entry["inputs"])
    raise ValueError(f"event {event_name} not found in ABI")


EVENT_SCHEMAS: tuple[EventSchema, ...] = (
    EventSchema(
        "Transfer",
        _abi_inputs("Transfer"),
        lambda log, v: Transfer(
            log, to_checksum_address(v["from"]), to_checksum_address(v["to"]), v["value"]
        ),
    ),
    EventSchema(
        "TokenMinted",
        _abi_inputs("TokenMinted"),
        lambda log, v: Minted(log, to_checksum_address(v["to"]), v["amount"], v["timestamp"]),
    ),
    EventSchema(
        "TokenBurned",
        _abi_inputs("TokenBurned"),
        lambda log, v: Burned(log, to_checksum_address(v["from"]), v["amount"], v["timestamp"]),
    ),
)


class EventDecoder:
    def __init__(self, schemas: Iterable[EventSchema] = EVENT_SCHEMAS) -> None:
        self._by_topic = {schema.topic.lower(): schema for schema in schemas}

    def decode(self, log: LogRecord) -> DecodedEvent:
        """
        Decode one log.

        Returns:
            The matching variant, or Unknown for an unrecognized topic

        Raises:
            MalformedEvent: Known topic, undecodable topics or payload
        """
        topic = log.primary_topic
        schema = self._by_topic.get(topic) if topic else None
        if schema is None:
            return Unknown(log)

        try:
            values = schema.decode_fields(log)
        except (DecodingError, ValueError, TypeError) as exc:
            raise MalformedEvent(schema.name, log.transaction_hash, log.log_index, str(exc)) from exc
        return schema.build(log, values)


# ---- Dispatch ----

Handler = Callable[[DecodedEvent], None]
E = TypeVar("E", bound=DecodedEvent)


@dataclass
class DispatchSummary:
    dispatched: int = 0
    unknown: int = 0
    malformed: list[MalformedEvent] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    @property
    def total(self) -> int:
        return self.dispatched + len(self.malformed)


class EventDispatcher:
    """
    Routes decoded events to observer handlers by variant.

    Handlers only observe; nothing they return or raise feeds back into
    decoding.  Exceptions from a handler propagate.
    """

    def __init__(self, decoder: Optional[EventDecoder] = None) -> None:
        self.decoder = decoder or EventDecoder()
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)

    def on(self, event_type: type[E], handler: Callable[[E], None]) -> None:
        """Call ``handler`` with every event of exactly ``event_type``."""
        self._handlers[event_type].append(handler)

    def on_any(self, handler: Handler) -> None:
        for event_type in (Transfer, Minted, Burned, Unknown):
            self.on(event_type, handler)

    def dispatch(self, event: DecodedEvent) -> None:
        for handler in self._handlers.get(type(event), ()):
            handler(event)

    def run(self, logs: Iterable[LogRecord]) -> DispatchSummary:
        """Decode and dispatch a log sequence, skipping malformed records."""
        summary = DispatchSummary()
        for log in logs:
            try:
                event = self.decoder.decode(log)
            except MalformedEvent as exc:
                LOGGER.warning("skipping %s", exc)
                summary.malformed.append(exc)
                continue

            self.dispatch(event)
            summary.dispatched += 1
            summary.counts[event.name] += 1
            if isinstance(event, Unknown):
                summary.unknown += 1
        return summary
