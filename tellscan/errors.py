"""Error types raised by tellscan."""

from __future__ import annotations


class TellscanError(Exception):
    """Base class for tellscan failures."""


class ConfigError(TellscanError, ValueError):
    """Invalid configuration, CLI selection or rule definition."""


class RegistryError(ConfigError):
    """Malformed rule catalogue entry."""


class InputReadError(TellscanError):
    """Input could not be read."""


class InputTooLargeError(TellscanError):
    """Input exceeds the accepted size ceiling."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"input exceeds the size limit of {limit} bytes (read {size})")
        self.size = size
        self.limit = limit


class InputEncodingError(TellscanError):
    """Input is not valid UTF-8 text."""


class PositionError(InputEncodingError):
    """A match offset does not land on a character boundary."""
