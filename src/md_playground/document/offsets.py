"""Offset helpers shared by the extractor and cursor resolution.

All ranges produced by the extractor are Python string indices, i.e. Unicode
code point offsets. UI toolkits that count UTF-16 code units (Qt, Cocoa, the
browser DOM) must convert with `to_utf16` / `from_utf16` before comparing a
cursor position with a block range, otherwise every astral character (most
emoji) shifts the result by one.
"""

from __future__ import annotations

import re

# Same terminators the markdown grammar normalizes to "\n".
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def line_offsets(text: str) -> list[int]:
    """Return the start offset of every line in `text`.

    The first entry is always 0. A text ending with a terminator yields a
    final entry equal to `len(text)` for the empty last line.
    """

    return [0, *(match.end() for match in _LINE_BREAK.finditer(text))]


def line_start(offsets: list[int], line: int, text_length: int) -> int:
    """Offset of `line`, clamped to `[0, text_length]` for lines past the end."""

    if line <= 0:
        return 0
    if line >= len(offsets):
        return text_length
    return min(offsets[line], text_length)


def to_utf16(text: str, offset: int) -> int:
    """Convert a code point offset into a UTF-16 code unit offset."""

    offset = max(0, min(offset, len(text)))
    return offset + sum(1 for char in text[:offset] if ord(char) > 0xFFFF)


def from_utf16(text: str, offset: int) -> int:
    """Convert a UTF-16 code unit offset into a code point offset.

    An offset that falls between the two halves of a surrogate pair resolves
    to the code point that owns the pair.
    """

    if offset <= 0:
        return 0
    units = 0
    for index, char in enumerate(text):
        units += 2 if ord(char) > 0xFFFF else 1
        if units > offset:
            return index
        if units == offset:
            return index + 1
    return len(text)
