"""Configuration models for the playground core."""

from __future__ import annotations

import os
import shlex
import sys
from typing import Literal

from pydantic import BaseModel, Field


def _default_interpreter() -> list[str]:
    return [sys.executable, "-u", "-i", "-q"]


class ExtractorConfig(BaseModel):
    """Configures markdown parsing and code block extraction."""

    preset: str = Field(default="commonmark", min_length=1)
    include_indented_code: bool = True


class ChannelConfig(BaseModel):
    """Configures the interpreter subprocess behind a REPL channel."""

    command: list[str] = Field(default_factory=_default_interpreter, min_length=1)
    cwd: str | None = None
    env: dict[str, str] | None = None
    encoding: str = Field(default="utf-8", min_length=1)
    read_chunk_size: int = Field(default=4096, ge=1)
    exit_drain_timeout: float = Field(default=1.0, gt=0.0)

    @classmethod
    def from_env(cls) -> "ChannelConfig":
        """Build a config, letting environment variables override defaults."""
        overrides: dict[str, object] = {}
        interpreter = os.getenv("MD_PLAYGROUND_INTERPRETER")
        if interpreter:
            overrides["command"] = shlex.split(interpreter)
        encoding = os.getenv("MD_PLAYGROUND_ENCODING")
        if encoding:
            overrides["encoding"] = encoding
        return cls(**overrides)


class SessionConfig(BaseModel):
    """Configures how a session maps cursor offsets onto code blocks."""

    kind: str = Field(default="markdown", min_length=1)
    offset_unit: Literal["codepoint", "utf16"] = "codepoint"
    ensure_trailing_newline: bool = True
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    channel: ChannelConfig = Field(default_factory=ChannelConfig)
