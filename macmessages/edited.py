"""Edit and unsend history read from a message's message_summary_info plist."""

from __future__ import annotations

import plistlib
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional
from xml.parsers.expat import ExpatError

from .archivable import Archivable, get_text_from_components
from .typedstream import TypedStreamError, decode_typed_stream_components

TIMESTAMP_FACTOR = 1_000_000_000


class EditedMessageError(ValueError):
    """Raised when message_summary_info cannot be interpreted."""


class EditedMessageStatus(IntEnum):
    EDITED = 0
    UNSENT = 1
    ORIGINAL = 2

    def __str__(self) -> str:
        return self.name.capitalize()


@dataclass
class EditedEvent:
    """One edit of a message part."""

    date: int
    text: Optional[str]
    components: list[Archivable] = field(default_factory=list)
    guid: Optional[str] = None


@dataclass
class EditedMessagePart:
    """A part of a message and what happened to it."""

    status: EditedMessageStatus = EditedMessageStatus.ORIGINAL
    edit_history: list[EditedEvent] = field(default_factory=list)


def _value(mapping: dict, key: str, kind: type, kind_name: str) -> Any:
    if key not in mapping:
        raise EditedMessageError(f"no '{key}' key in input map")
    value = mapping[key]
    if not isinstance(value, kind) or (isinstance(value, bool) and kind is not bool):
        raise EditedMessageError(f"casting {key} to {kind_name}")
    return value


def _load_plist(data: bytes) -> dict:
    try:
        loaded = plistlib.loads(bytes(data))
    except (ValueError, TypeError, KeyError, IndexError, OverflowError, ExpatError) as exc:
        raise EditedMessageError(f"decoding plist to dictionary: {exc}") from exc
    if not isinstance(loaded, dict):
        raise EditedMessageError("decoding plist to dictionary: top level is not a dictionary")
    return loaded


def _parse_event(key: str, position: int, event: Any) -> EditedEvent:
    if not isinstance(event, dict):
        raise EditedMessageError(f"casting event {position} from key {key} as map")
    try:
        timestamp = _value(event, "d", float, "float")
    except EditedMessageError as exc:
        raise EditedMessageError(f"casting timestamp key 'd' to int: {exc}") from exc
    try:
        typedstream = _value(event, "t", bytes, "bytes")
    except EditedMessageError as exc:
        raise EditedMessageError(f"casting typedstream key 't' to bytes: {exc}") from exc
    try:
        components = decode_typed_stream_components(typedstream)
    except TypedStreamError as exc:
        raise EditedMessageError(f"getting typedstream components: {exc}") from exc
    guid = event.get("bcg")
    return EditedEvent(
        date=int(timestamp) * TIMESTAMP_FACTOR,
        text=get_text_from_components(components),
        components=components,
        guid=guid if isinstance(guid, str) else None,
    )


def edited_message_parts_from_message_summary_info(
    message_summary_info: bytes,
) -> list[EditedMessagePart]:
    """Read the status and edit history of every part of a message."""
    summary = _load_plist(message_summary_info)
    original_parts = _value(summary, "otr", dict, "dictionary")
    parts = [EditedMessagePart() for _ in original_parts]

    edits = summary.get("ec")
    if isinstance(edits, dict):
        for key, events in edits.items():
            if not isinstance(events, list):
                raise EditedMessageError(f"casting {key} in 'ec' map as array")
            try:
                part_index = int(key)
            except (TypeError, ValueError) as exc:
                raise EditedMessageError(f"parsing {key} as int: {exc}") from exc
            for position, event in enumerate(events):
                edited_event = _parse_event(key, position, event)
                if 0 <= part_index < len(parts):
                    part = parts[part_index]
                    part.status = EditedMessageStatus.EDITED
                    part.edit_history.append(edited_event)

    unsent = summary.get("rp")
    if isinstance(unsent, list):
        for position, unsent_index in enumerate(unsent):
            if (
                not isinstance(unsent_index, int)
                or isinstance(unsent_index, bool)
                or unsent_index < 0
            ):
                raise EditedMessageError(f"failed casting rp at index {position:x} to uint64")
            if unsent_index < len(parts):
                parts[unsent_index].status = EditedMessageStatus.UNSENT

    return parts