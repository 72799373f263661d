"""Text effects that apply to ranges of a message and their HTML rendering."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Union

from .utilities import get_mention_text


class Style(IntEnum):
    BOLD = 0
    ITALIC = 1
    STRIKETHROUGH = 2
    UNDERLINE = 3


class AnimationType(IntEnum):
    UNKNOWN = 0
    RIPPLE = 4
    BIG = 5
    BLOOM = 6
    NOD = 8
    SHAKE = 9
    JITTER = 10
    SMALL = 11
    EXPLODE = 12


class ConversionType(IntEnum):
    CURRENCY = 0
    DISTANCE = 1
    TEMPERATURE = 2
    TIMEZONE = 3
    VOLUME = 4
    WEIGHT = 5


@dataclass(frozen=True)
class TextEffectMention:
    mention: str


@dataclass(frozen=True)
class TextEffectLink:
    link: str


@dataclass(frozen=True)
class TextEffectStyles:
    styles: tuple[Style, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TextEffectAnimation:
    animation: int


@dataclass(frozen=True)
class TextEffectConversion:
    conversion: ConversionType


@dataclass(frozen=True)
class TextEffectOTP:
    pass


@dataclass(frozen=True)
class TextEffectDefault:
    pass


TextEffect = Union[
    TextEffectMention,
    TextEffectLink,
    TextEffectStyles,
    TextEffectAnimation,
    TextEffectConversion,
    TextEffectOTP,
    TextEffectDefault,
]


@dataclass
class TextRangeEffect:
    start: int
    end: int
    text_effect: TextEffect


_HTML_ESCAPES = str.maketrans(
    {
        "\0": "\ufffd",
        '"': "&#34;",
        "'": "&#39;",
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
    }
)

_STYLE_TAGS = {
    Style.BOLD: "b",
    Style.ITALIC: "i",
    Style.STRIKETHROUGH: "s",
    Style.UNDERLINE: "u",
}

_PLAIN_EFFECTS = (TextEffectDefault, TextEffectOTP, TextEffectAnimation, TextEffectConversion)


def _escape_html(text: str) -> str:
    return text.translate(_HTML_ESCAPES)


def format_text_range_effects_on_text(
    text: str, text_range_effects: list[TextRangeEffect]
) -> str:
    """Render each non-empty range of text with its effect and concatenate."""
    pieces = []
    for effect in text_range_effects:
        if not 0 <= effect.start <= effect.end <= len(text):
            raise ValueError(
                f"range [{effect.start}:{effect.end}] out of bounds for text of length {len(text)}"
            )
        segment = text[effect.start:effect.end]
        if segment:
            pieces.append(apply_text_range_effect_to_text(segment, effect.text_effect))
    return "".join(pieces)


def apply_text_range_effect_to_text(text: str, text_effect: TextEffect) -> str:
    """Escape text for HTML and wrap it according to the effect."""
    output = _escape_html(text)
    if isinstance(text_effect, _PLAIN_EFFECTS):
        return output
    if isinstance(text_effect, TextEffectMention):
        return get_mention_text("temp", "temp", output)
    if isinstance(text_effect, TextEffectLink):
        return f'<a href="{text_effect.link}">{output}</a>'
    if isinstance(text_effect, TextEffectStyles):
        for style in text_effect.styles:
            tag = _STYLE_TAGS.get(style, "")
            output = f"<{tag}>{output}<{tag}>"
        return output
    raise TypeError(f"invalid text effect type: {type(text_effect).__name__}")