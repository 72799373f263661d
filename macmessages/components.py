"""Grouping of archived attribute runs into attachments and styled text."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from .archivable import (
    Archivable,
    AttachmentMeta,
    ComponentTypeKey,
    get_attachment_meta_from_components,
    get_n_dictionary_objects,
    resolve_styles,
)
from .texteffect import (
    ConversionType,
    TextEffect,
    TextEffectAnimation,
    TextEffectConversion,
    TextEffectDefault,
    TextEffectLink,
    TextEffectMention,
    TextEffectOTP,
    TextEffectStyles,
    TextRangeEffect,
)


@dataclass
class CombinedComponentAttachment:
    """An attachment placed in the message body."""

    attachment_meta: AttachmentMeta


@dataclass
class CombinedComponentText:
    """A run of text made of ranges that each carry an effect."""

    text_range_effects: list[TextRangeEffect] = field(default_factory=list)


@dataclass
class CombinedComponentRetraction:
    """A message part that was unsent."""


CombinedComponent = Union[
    CombinedComponentAttachment, CombinedComponentText, CombinedComponentRetraction
]


@dataclass
class CombinedComponentResultNew:
    """A component that starts a new part of the message."""

    combined_component: CombinedComponent


@dataclass
class CombinedComponentResultContinuation:
    """A text range that continues the current text part."""

    text_range_effect: TextRangeEffect


CombinedComponentResult = Union[CombinedComponentResultNew, CombinedComponentResultContinuation]

_STYLE_KEYS = frozenset(
    {
        ComponentTypeKey.TEXT_BOLD_ATTRIBUTE_NAME,
        ComponentTypeKey.TEXT_UNDERLINE_ATTRIBUTE_NAME,
        ComponentTypeKey.TEXT_ITALIC_ATTRIBUTE_NAME,
        ComponentTypeKey.TEXT_STRIKETHROUGH_ATTRIBUTE_NAME,
    }
)


def _value_after(components: Sequence[Archivable], index: int) -> Optional[Archivable]:
    if index >= len(components):
        return None
    return components[index]


def get_combined_component(
    components: Sequence[Archivable],
    text: str,
    start: int,
    end: int,
    char_index_table: Sequence[int],
) -> Optional[CombinedComponentResult]:
    """Interpret the attribute components of one range of text.

    Returns None when an attribute key has no value after it.
    """
    range_start = char_index_table[start] if 0 < start < len(char_index_table) else 0
    range_end = char_index_table[end] if 0 < end < len(char_index_table) else len(text)

    def continuation(effect: TextEffect) -> CombinedComponentResultContinuation:
        return CombinedComponentResultContinuation(
            TextRangeEffect(range_start, range_end, effect)
        )

    for index, component in enumerate(components):
        key_name = component.as_nsstring()
        if key_name is None:
            continue
        key = ComponentTypeKey.lookup(key_name)
        if key is None:
            continue
        if key is ComponentTypeKey.FILE_TRANSFER_GUID_ATTRIBUTE_NAME:
            meta = get_attachment_meta_from_components(components)
            if meta is None:
                return None
            return CombinedComponentResultNew(CombinedComponentAttachment(meta))
        if key is ComponentTypeKey.MENTION_CONFIRMED_MENTION:
            value = _value_after(components, index + 1)
            if value is None:
                return None
            return continuation(TextEffectMention(value.as_nsstring() or ""))
        if key is ComponentTypeKey.LINK_ATTRIBUTE_NAME:
            value = _value_after(components, index + 2)
            if value is None:
                return None
            link = value.as_nsstring()
            return continuation(TextEffectLink("#" if link is None else link))
        if key is ComponentTypeKey.ONE_TIME_CODE_ATTRIBUTE_NAME:
            return continuation(TextEffectOTP())
        if key is ComponentTypeKey.CALENDAR_EVENT_ATTRIBUTE_NAME:
            return continuation(TextEffectConversion(ConversionType.TIMEZONE))
        if key in _STYLE_KEYS:
            return continuation(TextEffectStyles(tuple(resolve_styles(components))))
        if key is ComponentTypeKey.TEXT_EFFECT_ATTRIBUTE_NAME:
            value = _value_after(components, index + 1)
            if value is None:
                return None
            animation = value.as_nsnumber_int()
            return continuation(TextEffectAnimation(0 if animation is None else animation))
    return continuation(TextEffectDefault())


def convert_archivables_to_combined_components(
    components: Sequence[Archivable], component_string: str
) -> list[CombinedComponent]:
    """Group the decoded components of a message body into its parts.

    The first component holds the raw text and is skipped.
    """
    char_index_table = list(range(len(component_string)))
    combined: list[CombinedComponent] = []
    component_index = 1
    current_start = 0
    current_end = 0

    while component_index < len(components):
        text_range = components[component_index].get_range()
        component_index += 1
        if text_range is None:
            continue
        _, length = text_range
        current_start = current_end
        current_end += length

        number_attributes = 0
        if component_index < len(components):
            number_attributes = components[component_index].get_dictionary_length()
        if number_attributes > 0:
            component_index += 1

        selected = get_n_dictionary_objects(components, component_index, number_attributes)
        result = get_combined_component(
            selected, component_string, current_start, current_end, char_index_table
        )
        if isinstance(result, CombinedComponentResultNew):
            combined.append(result.combined_component)
        elif isinstance(result, CombinedComponentResultContinuation):
            if combined and isinstance(combined[-1], CombinedComponentText):
                combined[-1].text_range_effects.append(result.text_range_effect)
            else:
                combined.append(CombinedComponentText([result.text_range_effect]))
        component_index += len(selected)
    return combined