"""Per-stream framing of raw interpreter output into complete text chunks."""

from __future__ import annotations

import codecs
import logging

logger = logging.getLogger(__name__)

_TERMINATORS = ("\n", "\r")


class LineBuffer:
    """Accumulates bytes of one output stream until they form whole lines.

    `feed` returns text only when everything buffered decodes completely and
    ends in a line terminator (`\\n`, `\\r` or `\\r\\n`). The whole decoded text
    is returned as one unit and the buffer is emptied in the same step, so a
    burst of several lines yields a single chunk, and a trailing partial line
    holds back everything received with it until a later chunk terminates it.

    A multi-byte character split across two chunks stays inside the decoder
    until its last byte arrives; no error is raised and nothing is emitted in
    the meantime. Bytes that can never decode are replaced with U+FFFD rather
    than stalling the stream.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._text: list[str] = []

    @property
    def pending(self) -> bool:
        """True when bytes were received but not delivered yet."""
        return bool(self._text) or bool(self._decoder.getstate()[0])

    def feed(self, data: bytes) -> str | None:
        """Append one raw chunk; return the flushed text, if any."""
        decoded = self._decoder.decode(data)
        if decoded:
            self._text.append(decoded)

        if self._decoder.getstate()[0]:
            # Incomplete multi-byte sequence at the tail.
            return None
        if not self._text or not self._text[-1].endswith(_TERMINATORS):
            return None

        text = "".join(self._text)
        self.reset()
        logger.debug("Flushing %d chars", len(text))
        return text

    def reset(self) -> None:
        """Drop everything buffered without delivering it."""
        self._text.clear()
        self._decoder.reset()
