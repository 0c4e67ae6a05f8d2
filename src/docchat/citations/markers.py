"""Recognise numbered citation groups in answer markdown and resolve them to references."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from ..events import EventChannel
from ..models import Message
from ..telemetry import emit_navigation_event
from .fields import navigation_intent

LOGGER = logging.getLogger(__name__)

_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_REFERENCE_GROUP_RE = re.compile(r"^\d+(?:\s+\d+)*$")


@dataclass(frozen=True)
class CitationMarker:
    """One interactive marker: a 1-based reference number bound to its reference."""

    key: str
    number: int
    reference: Any


@dataclass(frozen=True)
class TextSegment:
    text: str


@dataclass(frozen=True)
class EmphasisSegment:
    text: str


@dataclass(frozen=True)
class CitationGroup:
    index: int
    numbers: tuple[int, ...]
    markers: tuple[CitationMarker, ...]


Segment = Union[TextSegment, EmphasisSegment, CitationGroup]


@dataclass(frozen=True)
class ResolvedAnswer:
    message_id: str
    segments: tuple[Segment, ...]
    markers: tuple[CitationMarker, ...] = field(default=())

    def marker_for(self, number: int) -> Optional[CitationMarker]:
        return next((marker for marker in self.markers if marker.number == number), None)

    @property
    def referenced_numbers(self) -> list[int]:
        return sorted({marker.number for marker in self.markers})


def is_reference_group(text: str) -> bool:
    return bool(_REFERENCE_GROUP_RE.match(text.strip()))


def resolve_number(chunk_references: Sequence[Any], number: int) -> Any:
    """Return ``chunk_references[number - 1]`` or ``None`` when out of range."""

    if 1 <= number <= len(chunk_references):
        return chunk_references[number - 1]
    return None


def marker_key(message_id: str, group_index: int, number: int) -> str:
    return f"{message_id}:{group_index}:{number}"


def parse_answer(
    content: str,
    chunk_references: Sequence[Any],
    *,
    message_id: str = "",
) -> ResolvedAnswer:
    """Split *content* into text, emphasis and citation segments."""

    segments: list[Segment] = []
    markers: list[CitationMarker] = []
    group_index = 0
    cursor = 0

    for match in _BOLD_RE.finditer(content):
        if match.start() > cursor:
            segments.append(TextSegment(content[cursor : match.start()]))
        cursor = match.end()

        inner = match.group(1)
        if not is_reference_group(inner):
            segments.append(EmphasisSegment(inner))
            continue

        numbers = tuple(int(token) for token in inner.split())
        group_markers: list[CitationMarker] = []
        for number in numbers:
            reference = resolve_number(chunk_references, number)
            if reference is None:
                LOGGER.debug("Ignoring out-of-range reference %s in message %s", number, message_id)
                continue
            group_markers.append(
                CitationMarker(key=marker_key(message_id, group_index, number), number=number, reference=reference)
            )
        segments.append(CitationGroup(index=group_index, numbers=numbers, markers=tuple(group_markers)))
        markers.extend(group_markers)
        group_index += 1

    if cursor < len(content):
        segments.append(TextSegment(content[cursor:]))

    return ResolvedAnswer(message_id=message_id, segments=tuple(segments), markers=tuple(markers))


def parse_message(message: Message) -> ResolvedAnswer:
    """Resolve a model message; user messages are returned as plain text."""

    if message.is_user:
        return ResolvedAnswer(message_id=message.id, segments=(TextSegment(message.content),))
    return parse_answer(message.content, message.chunk_references, message_id=message.id)


def activate(marker: CitationMarker, channel: EventChannel) -> bool:
    """Publish the navigation intent for *marker*; returns whether one was published."""

    intent = navigation_intent(marker.reference)
    if intent is None:
        LOGGER.debug("Suppressed activation of marker %s: missing document or chunk id", marker.key)
        return False
    channel.publish(intent)
    emit_navigation_event(
        "citation.activate",
        document_id=intent.document_id,
        page=intent.page,
        chunk_id=intent.chunk_id,
    )
    return True


__all__ = [
    "CitationGroup",
    "CitationMarker",
    "EmphasisSegment",
    "ResolvedAnswer",
    "Segment",
    "TextSegment",
    "activate",
    "is_reference_group",
    "marker_key",
    "parse_answer",
    "parse_message",
    "resolve_number",
]
