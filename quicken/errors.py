"""Exceptions raised by quicken.

The engine itself absorbs parse failures, resolution misses and cancelled
choices; only configuration and command-line surfaces raise.
"""


class QuickenError(Exception):
    """Base class for quicken errors."""


class ConfigError(QuickenError, ValueError):
    """A configuration file could not be read or has invalid values."""


class UnsupportedDocumentError(QuickenError):
    """No language plugin accepts the given document."""
