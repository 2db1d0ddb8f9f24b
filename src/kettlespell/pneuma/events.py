"""
Event Decoder - Render receipt logs against known event descriptors.

Matching is by first topic only, scanning descriptors in load order. The
first descriptor with an equal signature hash wins; colliding hashes from
unrelated artifacts are not disambiguated. Logs that match nothing, or that
match but fail to unpack, are rendered raw.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from eth_abi import decode
from eth_abi.exceptions import ABITypeError, DecodingError, ParseError

from ..errors import DecodeWarning
from ..utils import to_hex
from .abi import EventDescriptor, is_dynamic_type, split_top_level
from .receipt import LogEntry

logger = logging.getLogger(__name__)


def format_value(value: Any, typ: str = "") -> str:
    """Render a decoded ABI value; ``typ`` tells arrays from tuples."""
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if isinstance(value, (list, tuple)):
        if typ.endswith("]"):
            element_type = typ[: typ.rindex("[")]
            return "[" + ", ".join(format_value(v, element_type) for v in value) + "]"
        if typ.startswith("("):
            component_types = split_top_level(typ[1:-1])
            return "(" + ", ".join(format_value(v, t) for v, t in zip(value, component_types)) + ")"
        return "[" + ", ".join(format_value(v) for v in value) + "]"
    return str(value)


@dataclass(frozen=True)
class DecodedEvent:
    descriptor: EventDescriptor
    log: LogEntry
    values: tuple[tuple[str, Any], ...]

    @property
    def name(self) -> str:
        return self.descriptor.name

    def as_dict(self) -> dict[str, Any]:
        return dict(self.values)

    def render(self) -> str:
        fields = " ".join(
            f"{name}={format_value(value, inp.type)}"
            for (name, value), inp in zip(self.values, self.descriptor.inputs)
        )
        return f"{self.descriptor.signature} {fields}".rstrip()


def _unpack(descriptor: EventDescriptor, log: LogEntry) -> DecodedEvent:
    indexed = [inp for inp in descriptor.inputs if inp.indexed]
    plain = [inp for inp in descriptor.inputs if not inp.indexed]

    topics = log.topics[1:]
    if len(topics) != len(indexed):
        raise DecodeWarning(
            f"{descriptor.signature} expects {len(indexed)} indexed topic(s), log has {len(topics)}"
        )

    try:
        data_values = decode([inp.type for inp in plain], log.data) if plain else ()
        topic_values = [
            topic if is_dynamic_type(inp.type) else decode([inp.type], topic)[0]
            for inp, topic in zip(indexed, topics)
        ]
    except (DecodingError, ABITypeError, ParseError) as exc:
        raise DecodeWarning(f"{descriptor.signature}: {exc}") from exc

    data_iter = iter(data_values)
    topic_iter = iter(topic_values)
    values = tuple(
        (inp.name, next(topic_iter) if inp.indexed else next(data_iter))
        for inp in descriptor.inputs
    )
    return DecodedEvent(descriptor=descriptor, log=log, values=values)


def find_descriptor(descriptors: Iterable[EventDescriptor], topic: bytes) -> Optional[EventDescriptor]:
    for descriptor in descriptors:
        if not descriptor.anonymous and descriptor.topic == topic:
            return descriptor
    return None


def decode_log(descriptors: Sequence[EventDescriptor], log: LogEntry) -> Optional[DecodedEvent]:
    """
    Decode ``log`` against the first descriptor matching its first topic.

    Returns:
        The decoded event, or None when the log has no topics, nothing
        matches, or the matching descriptor cannot unpack it
    """
    if not log.topics:
        return None

    descriptor = find_descriptor(descriptors, log.topics[0])
    if descriptor is None:
        return None

    try:
        return _unpack(descriptor, log)
    except DecodeWarning as exc:
        logger.warning("failed to parse log: %s", exc)
        return None


def render_raw_log(log: LogEntry) -> str:
    topic1 = to_hex(log.topics[0]) if log.topics else "<none>"
    return f"address={log.address} numTopics={len(log.topics)} topic1={topic1}"


def describe_logs(
    logs: Iterable[LogEntry],
    descriptors: Sequence[EventDescriptor] = (),
) -> list[str]:
    """Render every log, decoded when possible and raw otherwise."""
    lines = []
    for log in logs:
        decoded = decode_log(descriptors, log)
        lines.append(decoded.render() if decoded is not None else render_raw_log(log))
    return lines
