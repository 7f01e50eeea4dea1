"""Shared domain models."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class TextRange:
    """Half-open `[start, end)` span in code point offsets."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid range: [{self.start}, {self.end})")

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class Node:
    """An AST element produced by one parse."""

    type: str
    range: TextRange
    children: tuple[Node, ...] = ()
    content: str = ""
    info: str = ""
    tag: str = ""

    def walk(self) -> Iterator[Node]:
        """Yield this node and every descendant in depth-first document order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True, slots=True)
class CodeBlock:
    """A code block extracted from the AST of one parse."""

    range: TextRange
    text: str
    language: str | None = None
    fenced: bool = True
    closed: bool = True


@dataclass(frozen=True, slots=True)
class ParseResult:
    """The AST and ordered block list for one text snapshot."""

    source: str
    ast: Node
    blocks: tuple[CodeBlock, ...] = field(default_factory=tuple)
