"""Markdown playground core package."""

from .config import ChannelConfig, ExtractorConfig, SessionConfig

__all__ = ["ChannelConfig", "ExtractorConfig", "SessionConfig"]
