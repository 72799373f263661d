"""Objects decoded from typedstream archives, and helpers that read attributes from them.

Decoded values are held in ``output_data`` lists as ``(TypeVariant, value)``
pairs. The variant records the wire type of the value, so that a signed and
an unsigned integer, or a float and a double, stay apart.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Optional, Sequence

from .texteffect import Style

OutputValue = tuple["TypeVariant", Any]


class ArchivableError(TypeError):
    """Raised when an archived value is read as something it cannot be."""


class TypeVariant(IntEnum):
    UTF8_STRING = 0
    EMBEDDED_DATA = 1
    OBJECT = 2
    SIGNED_INT = 3
    UNSIGNED_INT = 4
    FLOAT = 5
    DOUBLE = 6
    STRING = 7
    ARRAY = 8
    UNKNOWN = 9


@dataclass(frozen=True)
class Type:
    """A type descriptor read from the stream."""

    variant: TypeVariant
    string_value: str = ""
    array_size: int = 0
    unknown_value: int = 0

    def __str__(self) -> str:
        return (
            f'Type ({int(self.variant)}) {{ StringValue "{self.string_value}", '
            f"ArraySize {self.array_size}, UnknownValue {self.unknown_value:x} }}"
        )


_SIGNED_INT_BYTES = frozenset(b"cilqs")
_UNSIGNED_INT_BYTES = frozenset(b"CILQS")


def byte_to_type(value: int) -> Type:
    """Map one type-encoding byte to its Type."""
    if value == 0x40:
        return Type(TypeVariant.OBJECT)
    if value == 0x2B:
        return Type(TypeVariant.UTF8_STRING)
    if value == 0x2A:
        return Type(TypeVariant.EMBEDDED_DATA)
    if value == 0x66:
        return Type(TypeVariant.FLOAT)
    if value == 0x64:
        return Type(TypeVariant.DOUBLE)
    if value in _SIGNED_INT_BYTES:
        return Type(TypeVariant.SIGNED_INT)
    if value in _UNSIGNED_INT_BYTES:
        return Type(TypeVariant.UNSIGNED_INT)
    return Type(TypeVariant.UNKNOWN, unknown_value=value)


@dataclass(frozen=True)
class Class:
    """An archived class name and version."""

    name: str
    version: int = 0


class ComponentTypeKey(str, Enum):
    FILE_TRANSFER_GUID_ATTRIBUTE_NAME = "__kIMFileTransferGUIDAttributeName"
    AUDIO_TRANSCRIPTION = "IMAudioTranscription"
    INLINE_MEDIA_HEIGHT_ATTRIBUTE_NAME = "__kIMInlineMediaHeightAttributeName"
    INLINE_MEDIA_WIDTH_ATTRIBUTE_NAME = "__kIMInlineMediaWidthAttributeName"
    FILENAME_ATTRIBUTE_NAME = "__kIMFilenameAttributeName"
    MENTION_CONFIRMED_MENTION = "__kIMMentionConfirmedMention"
    LINK_ATTRIBUTE_NAME = "__kIMLinkAttributeName"
    ONE_TIME_CODE_ATTRIBUTE_NAME = "__kIMOneTimeCodeAttributeName"
    CALENDAR_EVENT_ATTRIBUTE_NAME = "__kIMCalendarEventAttributeName"
    TEXT_BOLD_ATTRIBUTE_NAME = "__kIMTextBoldAttributeName"
    TEXT_UNDERLINE_ATTRIBUTE_NAME = "__kIMTextUnderlineAttributeName"
    TEXT_ITALIC_ATTRIBUTE_NAME = "__kIMTextItalicAttributeName"
    TEXT_STRIKETHROUGH_ATTRIBUTE_NAME = "__kIMTextStrikethroughAttributeName"
    TEXT_EFFECT_ATTRIBUTE_NAME = "__kIMTextEffectAttributeName"

    @classmethod
    def lookup(cls, key_name: str) -> Optional["ComponentTypeKey"]:
        """Return the key with this name, or None if it is not a known key."""
        return _KEYS_BY_NAME.get(key_name)


_KEYS_BY_NAME = {key.value: key for key in ComponentTypeKey}

_STRING_VARIANTS = (TypeVariant.UTF8_STRING, TypeVariant.STRING)


def _output_value(output_data: Sequence[OutputValue], index: int, *variants: TypeVariant) -> Any:
    if index >= len(output_data):
        return None
    variant, value = output_data[index]
    if variant not in variants:
        return None
    return value


class Archivable(ABC):
    """A value decoded from a typedstream."""

    @abstractmethod
    def as_nsstring(self) -> Optional[str]:
        """Return the value as a string, or None if it is not one."""

    @abstractmethod
    def as_nsnumber_float(self) -> Optional[float]:
        """Return the value as a double, or None if it is not one."""

    @abstractmethod
    def as_nsnumber_int(self) -> Optional[int]:
        """Return the value as a signed integer, or None if it is not one."""

    @abstractmethod
    def get_range(self) -> Optional[tuple[int, int]]:
        """Return the (start, length) pair of an attribute range, or None."""

    @abstractmethod
    def get_dictionary_length(self) -> int:
        """Return the number of entries, keys and values, that follow a dictionary."""


class _Unreadable(Archivable):
    _kind = "this"

    def as_nsstring(self) -> Optional[str]:
        raise ArchivableError(f"{self._kind} type cannot be parsed as string")

    def as_nsnumber_float(self) -> Optional[float]:
        raise ArchivableError(f"{self._kind} type cannot be parsed as float")

    def as_nsnumber_int(self) -> Optional[int]:
        raise ArchivableError(f"{self._kind} type cannot be parsed as int")

    def get_range(self) -> Optional[tuple[int, int]]:
        raise ArchivableError(f"cannot get range from {self._kind} type")

    def get_dictionary_length(self) -> int:
        raise ArchivableError(f"cannot get dictionary length from {self._kind} type")


@dataclass
class ArchivableClass(_Unreadable):
    """A class entry of the object table."""

    archived_class: Class
    _kind = "Class"


@dataclass
class ArchivablePlaceholder(_Unreadable):
    """A reserved slot of the object table whose content is not known yet."""

    _kind = "Placeholder"


@dataclass
class ArchivableTypes(_Unreadable):
    """Types of embedded data kept in the object table."""

    types: list[Type] = field(default_factory=list)
    _kind = "Types"


@dataclass
class ArchivableData(Archivable):
    """Values that belong to no known class."""

    output_data: list[OutputValue] = field(default_factory=list)

    def as_nsstring(self) -> Optional[str]:
        return None

    def as_nsnumber_float(self) -> Optional[float]:
        raise ArchivableError("Data type cannot be parsed as float")

    def as_nsnumber_int(self) -> Optional[int]:
        raise ArchivableError("Data type cannot be parsed as int")

    def get_range(self) -> Optional[tuple[int, int]]:
        if len(self.output_data) != 2:
            return None
        start = _output_value(self.output_data, 0, TypeVariant.SIGNED_INT)
        if start is None:
            return None
        end = _output_value(self.output_data, 1, TypeVariant.UNSIGNED_INT)
        if end is None:
            return None
        return start, end

    def get_dictionary_length(self) -> int:
        return 0


@dataclass
class ArchivableObject(Archivable):
    """An instance of an archived class with its values."""

    archived_class: Class
    output_data: list[OutputValue] = field(default_factory=list)

    def as_nsstring(self) -> Optional[str]:
        if self.archived_class.name not in ("NSString", "NSMutableString"):
            return None
        return _output_value(self.output_data, 0, *_STRING_VARIANTS)

    def as_nsnumber_float(self) -> Optional[float]:
        if self.archived_class.name != "NSNumber":
            return None
        return _output_value(self.output_data, 0, TypeVariant.DOUBLE)

    def as_nsnumber_int(self) -> Optional[int]:
        if self.archived_class.name != "NSNumber":
            return None
        return _output_value(self.output_data, 0, TypeVariant.SIGNED_INT)

    def get_range(self) -> Optional[tuple[int, int]]:
        return None

    def get_dictionary_length(self) -> int:
        if self.archived_class.name != "NSDictionary":
            return 0
        length = _output_value(self.output_data, 0, TypeVariant.SIGNED_INT)
        if length is None:
            return 0
        return length * 2


@dataclass
class AttachmentMeta:
    """Attachment details named in a message's attribute dictionary."""

    guid: Optional[str] = None
    transcription: Optional[str] = None
    height: Optional[float] = None
    width: Optional[float] = None
    name: Optional[str] = None


def _component_key(component: Archivable) -> Optional[ComponentTypeKey]:
    key_name = component.as_nsstring()
    if key_name is None:
        return None
    return ComponentTypeKey.lookup(key_name)


def get_text_from_components(components: Sequence[Archivable]) -> Optional[str]:
    """Return the message text held by the first component, if any."""
    if not components:
        return None
    return components[0].as_nsstring()


def get_n_dictionary_objects(
    components: Sequence[Archivable], start_index: int, count: int
) -> list[Archivable]:
    """Take the attribute components that follow start_index, up to the next range."""
    if count == 0:
        return []
    final_index = start_index + count
    for current_index in range(start_index, len(components)):
        if components[current_index].get_range() is not None:
            break
        final_index = current_index
    if final_index + 1 > len(components) or start_index > final_index + 1:
        raise ArchivableError(
            f"dictionary objects [{start_index}:{final_index + 1}] out of range "
            f"of {len(components)} components"
        )
    return list(components[start_index:final_index + 1])


_STYLE_KEYS = {
    ComponentTypeKey.TEXT_BOLD_ATTRIBUTE_NAME: Style.BOLD,
    ComponentTypeKey.TEXT_UNDERLINE_ATTRIBUTE_NAME: Style.UNDERLINE,
    ComponentTypeKey.TEXT_ITALIC_ATTRIBUTE_NAME: Style.ITALIC,
    ComponentTypeKey.TEXT_STRIKETHROUGH_ATTRIBUTE_NAME: Style.STRIKETHROUGH,
}


def resolve_styles(components: Sequence[Archivable]) -> list[Style]:
    """Collect the text styles named by the components, in order."""
    styles = []
    for component in components:
        key = _component_key(component)
        if key in _STYLE_KEYS:
            styles.append(_STYLE_KEYS[key])
    return styles


def get_attachment_meta_from_components(
    components: Sequence[Archivable],
) -> Optional[AttachmentMeta]:
    """Read attachment details from key/value components.

    Returns None when a known key is the last component and has no value.
    """
    meta = AttachmentMeta()
    for index, component in enumerate(components):
        key = _component_key(component)
        if key is None:
            continue
        if index + 1 >= len(components):
            return None
        value = components[index + 1]
        if key is ComponentTypeKey.FILE_TRANSFER_GUID_ATTRIBUTE_NAME:
            meta.guid = value.as_nsstring()
        elif key is ComponentTypeKey.AUDIO_TRANSCRIPTION:
            meta.transcription = value.as_nsstring()
        elif key is ComponentTypeKey.INLINE_MEDIA_HEIGHT_ATTRIBUTE_NAME:
            meta.height = value.as_nsnumber_float()
        elif key is ComponentTypeKey.INLINE_MEDIA_WIDTH_ATTRIBUTE_NAME:
            meta.width = value.as_nsnumber_float()
        elif key is ComponentTypeKey.FILENAME_ATTRIBUTE_NAME:
            meta.name = value.as_nsstring()
    return meta