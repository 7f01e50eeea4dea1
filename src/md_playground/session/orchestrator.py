"""Session wiring: text edits to the document, cursor offsets to the channel."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from md_playground.config import SessionConfig
from md_playground.document.model import Document
from md_playground.document.offsets import from_utf16
from md_playground.document.registry import DocumentRegistry
from md_playground.repl.channel import ReplChannel, Sink
from md_playground.types import CodeBlock, ParseResult

logger = logging.getLogger(__name__)


def resolve_block(blocks: Sequence[CodeBlock], offset: int) -> CodeBlock | None:
    """Return the first block, in document order, whose range holds `offset`."""

    for block in blocks:
        if block.range.contains(offset):
            return block
    return None


class PlaygroundSession:
    """One editing session: a document paired with a live interpreter.

    The session owns both collaborators. The channel only knows the sinks it
    was given, and the document only knows its own subscribers, so nothing
    refers back to the session.
    """

    def __init__(
        self,
        document: Document,
        channel: ReplChannel,
        config: SessionConfig | None = None,
    ) -> None:
        self.document = document
        self.channel = channel
        self.config = config or SessionConfig()

    @classmethod
    async def open(
        cls,
        on_stdout: Sink,
        on_stderr: Sink,
        *,
        text: str = "",
        config: SessionConfig | None = None,
        registry: DocumentRegistry | None = None,
    ) -> "PlaygroundSession":
        """Create the document for `config.kind` and start its interpreter."""
        config = config or SessionConfig()
        registry = registry or DocumentRegistry(config=config.extractor)
        document = registry.create(config.kind, text)
        channel = await ReplChannel.start(on_stdout, on_stderr, config=config.channel)
        return cls(document, channel, config)

    def edit(self, text: str) -> ParseResult:
        return self.document.set_text(text)

    def block_at(self, offset: int) -> CodeBlock | None:
        if self.config.offset_unit == "utf16":
            offset = from_utf16(self.document.text, offset)
        return resolve_block(self.document.blocks, offset)

    def execute_at(self, offset: int) -> CodeBlock | None:
        """Send the block under the cursor to the interpreter.

        Returns the block that was sent, or None when the cursor is outside
        every code block (which is not an error).
        """
        block = self.block_at(offset)
        if block is None:
            logger.debug("No code block at offset %d", offset)
            return None

        text = block.text
        if self.config.ensure_trailing_newline and not text.endswith("\n"):
            text += "\n"
        self.channel.execute(text)
        return block

    async def close(self) -> None:
        await self.channel.aclose()

    async def __aenter__(self) -> "PlaygroundSession":
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        await self.close()
