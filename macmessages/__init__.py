"""Decoders and helpers for the binary payloads of the macOS Messages database."""

__version__ = "0.1.0"

__all__ = [
    "archivable",
    "components",
    "edited",
    "queries",
    "texteffect",
    "typedstream",
    "utilities",
]