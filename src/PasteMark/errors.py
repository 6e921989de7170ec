from __future__ import annotations


class PasteMarkError(Exception):
    """Base class for errors raised by PasteMark."""


class ConfigError(PasteMarkError):
    """Raised when a render configuration file cannot be used."""


class DiagramError(PasteMarkError):
    """Raised by a diagram engine that failed to produce a graphic."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source
