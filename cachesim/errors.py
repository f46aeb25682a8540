from __future__ import annotations


class CacheSimError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(CacheSimError, ValueError):
    """Raised when the cache geometry or the run settings are invalid."""


class TraceFormatError(CacheSimError, ValueError):
    """Raised for a trace line that does not follow <R|W>:<size>:<hexAddress>."""

    def __init__(self, message: str, line_number: int | None = None, line: str = ""):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
