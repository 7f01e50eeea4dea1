from md_playground.config import ExtractorConfig
from md_playground.document.extractor import MarkdownExtractor, PlainTextExtractor

_TWO_FENCES = "Intro\n\n```python\nprint(1)\n```\n\nMiddle\n\n```\nx = 2\n```\n"


def test_fenced_blocks_ranges_text_and_language() -> None:
    result = MarkdownExtractor().parse(_TWO_FENCES)

    assert len(result.blocks) == 2
    first, second = result.blocks

    assert (first.range.start, first.range.end) == (7, 30)
    assert _TWO_FENCES[first.range.start : first.range.end] == "```python\nprint(1)\n```\n"
    assert first.text == "print(1)\n"
    assert first.language == "python"
    assert first.fenced and first.closed

    assert (second.range.start, second.range.end) == (39, len(_TWO_FENCES))
    assert second.text == "x = 2\n"
    assert second.language is None


def test_parse_is_deterministic() -> None:
    extractor = MarkdownExtractor()

    first = extractor.parse(_TWO_FENCES)
    second = extractor.parse(_TWO_FENCES)

    assert first == second
    assert first.blocks == MarkdownExtractor().parse(_TWO_FENCES).blocks


def test_empty_text_yields_no_blocks() -> None:
    result = MarkdownExtractor().parse("")

    assert result.blocks == ()
    assert result.ast.type == "root"
    assert result.ast.children == ()
    assert (result.ast.range.start, result.ast.range.end) == (0, 0)


def test_grapheme_clusters_keep_ranges_aligned() -> None:
    family = "\U0001F468\u200d\U0001F469\u200d\U0001F467\u200d\U0001F466"
    text = f"{family} é\n\n```py\n{family} = 1\n```\n"

    result = MarkdownExtractor().parse(text)

    assert len(result.blocks) == 1
    block = result.blocks[0]
    assert block.range.start == text.index("```")
    assert block.range.end == len(text)
    assert block.text == f"{family} = 1\n"


def test_lone_emoji_family_parses() -> None:
    text = "\U0001F468\u200d\U0001F469\u200d\U0001F467\u200d\U0001F466"

    result = MarkdownExtractor().parse(text)

    assert result.blocks == ()
    assert all(node.range.end <= len(text) for node in result.ast.walk())


def test_unterminated_inline_marker_is_safe() -> None:
    result = MarkdownExtractor().parse("a`")

    assert result.blocks == ()
    assert all(0 <= node.range.start <= node.range.end <= 2 for node in result.ast.walk())


def test_unterminated_fence_runs_to_end_of_text() -> None:
    text = "Intro\n\n```py\nx = 1"

    result = MarkdownExtractor().parse(text)

    assert len(result.blocks) == 1
    block = result.blocks[0]
    assert not block.closed
    assert block.language == "py"
    assert block.text == "x = 1"
    assert block.range.start == text.index("```")
    assert block.range.end == len(text)


def test_bare_fence_marker_at_end_of_text() -> None:
    result = MarkdownExtractor().parse("```")

    assert len(result.blocks) == 1
    block = result.blocks[0]
    assert block.text == ""
    assert not block.closed
    assert (block.range.start, block.range.end) == (0, 3)


def test_crlf_line_endings_align_with_original_text() -> None:
    text = "a\r\n\r\n```py\r\nx\r\n```\r\nafter\r"

    result = MarkdownExtractor().parse(text)

    block = result.blocks[0]
    assert block.range.start == text.index("```")
    assert text[block.range.start : block.range.end] == "```py\r\nx\r\n```\r\n"
    assert block.text == "x\n"


def test_indented_code_blocks_are_configurable() -> None:
    text = "Para\n\n    code\n"

    included = MarkdownExtractor().parse(text)
    excluded = MarkdownExtractor(ExtractorConfig(include_indented_code=False)).parse(text)

    assert len(included.blocks) == 1
    assert not included.blocks[0].fenced
    assert included.blocks[0].text == "code\n"
    assert included.blocks[0].language is None
    assert excluded.blocks == ()


def test_blocks_in_containers_are_in_document_order() -> None:
    text = "> ```js\n> quoted()\n> ```\n\n- item\n\n  ```sh\n  ls\n  ```\n\n```py\ntop()\n```\n"

    result = MarkdownExtractor().parse(text)

    assert [block.language for block in result.blocks] == ["js", "sh", "py"]
    assert [block.text for block in result.blocks] == ["quoted()\n", "ls\n", "top()\n"]
    starts = [block.range.start for block in result.blocks]
    assert starts == sorted(starts)
    assert result.blocks[0].range.start == 0


def test_ast_shape_has_types_and_inline_children() -> None:
    result = MarkdownExtractor().parse("# Title\n\nSome *emphasis* here.\n")

    types = [node.type for node in result.ast.walk()]
    assert types[0] == "root"
    assert "heading" in types
    assert "paragraph" in types
    assert "em" in types

    heading = result.ast.children[0]
    assert heading.tag == "h1"
    assert (heading.range.start, heading.range.end) == (0, 8)

    paragraph = result.ast.children[1]
    emphasis = next(node for node in paragraph.walk() if node.type == "em")
    assert emphasis.range == paragraph.range


def test_info_string_uses_first_word_only() -> None:
    result = MarkdownExtractor().parse("```python title=demo\npass\n```\n")

    assert result.blocks[0].language == "python"


def test_plain_text_extractor_never_yields_blocks() -> None:
    result = PlainTextExtractor().parse("```py\nx = 1\n```\n")

    assert result.blocks == ()
    assert [node.type for node in result.ast.walk()] == ["root", "paragraph"]
