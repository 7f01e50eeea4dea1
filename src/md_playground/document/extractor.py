"""Extractor interfaces and concrete extractors per document kind."""

from __future__ import annotations

from abc import ABC, abstractmethod

from markdown_it import MarkdownIt
from markdown_it.common.utils import unescapeAll
from markdown_it.tree import SyntaxTreeNode

from md_playground.config import ExtractorConfig
from md_playground.document.offsets import line_offsets, line_start
from md_playground.types import CodeBlock, Node, ParseResult, TextRange

_LEAF_CONTENT_TYPES = frozenset(
    {"fence", "code_block", "code_inline", "text", "html_block", "html_inline"}
)


class Extractor(ABC):
    """Turns a text snapshot into an AST and its ordered code blocks."""

    kind: str = ""
    suffixes: tuple[str, ...] = ()

    def __init__(self, config: ExtractorConfig | None = None) -> None:
        self.config = config or ExtractorConfig()

    @abstractmethod
    def parse(self, text: str) -> ParseResult:
        """Parse `text`; must never raise on valid Unicode input."""


class MarkdownExtractor(Extractor):
    """CommonMark extractor backed by markdown-it-py.

    markdown-it reports block positions as source line spans only, so block
    ranges are the code point offsets of the first spanned line and of the
    line following the span. Line starts are computed on the original text
    with the same terminators the grammar recognizes, which keeps ranges
    aligned even though the grammar normalizes `\\r\\n` internally.

    Inline nodes carry no position of their own and inherit the range of the
    enclosing block.

    Unterminated fences follow the CommonMark rule: the fence runs to the end
    of the document (or of its container). Such a block is still reported,
    with `closed=False` and a range clamped to the text.
    """

    kind = "markdown"
    suffixes = (".md", ".markdown")

    def __init__(self, config: ExtractorConfig | None = None) -> None:
        super().__init__(config)
        self._markdown = MarkdownIt(self.config.preset)

    def parse(self, text: str) -> ParseResult:
        offsets = line_offsets(text)
        root_range = TextRange(0, len(text))
        blocks: list[CodeBlock] = []
        tree = SyntaxTreeNode(self._markdown.parse(text))
        children = tuple(
            self._convert(child, root_range, offsets, len(text), blocks)
            for child in tree.children
        )
        ast = Node(type="root", range=root_range, children=children)
        return ParseResult(source=text, ast=ast, blocks=tuple(blocks))

    def _convert(
        self,
        tree_node: SyntaxTreeNode,
        parent_range: TextRange,
        offsets: list[int],
        text_length: int,
        blocks: list[CodeBlock],
    ) -> Node:
        line_map = tree_node.map
        if line_map is None:
            node_range = parent_range
        else:
            start = line_start(offsets, line_map[0], text_length)
            end = line_start(offsets, line_map[1], text_length)
            node_range = TextRange(start, max(start, end))

        node_type = tree_node.type
        content = tree_node.content if node_type in _LEAF_CONTENT_TYPES else ""
        info = tree_node.info if node_type == "fence" else ""

        # Appended before recursing so the list stays in document order.
        if node_type == "fence":
            blocks.append(
                CodeBlock(
                    range=node_range,
                    text=content,
                    language=_language(info),
                    fenced=True,
                    closed=_fence_is_closed(line_map, content),
                )
            )
        elif node_type == "code_block" and self.config.include_indented_code:
            blocks.append(CodeBlock(range=node_range, text=content, fenced=False))

        children = tuple(
            self._convert(child, node_range, offsets, text_length, blocks)
            for child in tree_node.children
        )
        return Node(
            type=node_type,
            range=node_range,
            children=children,
            content=content,
            info=info,
            tag=tree_node.tag,
        )


class PlainTextExtractor(Extractor):
    """Extractor for plain text: one paragraph, never any code blocks."""

    kind = "text"
    suffixes = (".txt",)

    def parse(self, text: str) -> ParseResult:
        root_range = TextRange(0, len(text))
        children: tuple[Node, ...] = ()
        if text:
            children = (Node(type="paragraph", range=root_range, content=text),)
        return ParseResult(
            source=text,
            ast=Node(type="root", range=root_range, children=children),
        )


def _language(info: str) -> str | None:
    words = unescapeAll(info).strip().split(maxsplit=1)
    return words[0] if words else None


def _fence_is_closed(line_map: tuple[int, int] | None, content: str) -> bool:
    # A closed fence spans its opening line, every content line and a closing line.
    if line_map is None:
        return False
    content_lines = content.count("\n")
    if content and not content.endswith("\n"):
        content_lines += 1
    return line_map[1] - line_map[0] >= content_lines + 2
