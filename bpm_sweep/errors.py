"""
Errors raised while reading a PCM WAV container.

Only the container reader raises. Every numeric stage after it degrades to
empty output on short or silent input instead of failing.
"""


class WavFormatError(ValueError):
    """Base class for unreadable WAV input."""


class MalformedHeader(WavFormatError):
    """Container tags, block IDs or the sample format are not what we decode."""


class TruncatedFile(WavFormatError):
    """Declared block sizes run past the end of the available bytes."""
