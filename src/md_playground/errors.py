"""Exceptions raised by the playground core."""

from __future__ import annotations


class PlaygroundError(Exception):
    """Base class for all playground errors."""


class ChannelError(PlaygroundError, RuntimeError):
    """Raised for REPL channel failures."""


class ChannelSpawnError(ChannelError):
    """The interpreter process could not be launched."""


class ChannelClosedError(ChannelError):
    """Input was submitted to a channel that is not running."""


class MalformedTextError(PlaygroundError, ValueError):
    """Document bytes cannot be decoded with the expected encoding."""
