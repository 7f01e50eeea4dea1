from md_playground.repl.line_buffer import LineBuffer


def _feed_all(buffer: LineBuffer, chunks: list[bytes]) -> list[str]:
    flushed = []
    for chunk in chunks:
        text = buffer.feed(chunk)
        if text is not None:
            flushed.append(text)
    return flushed


def test_partial_line_is_held_until_terminated() -> None:
    buffer = LineBuffer()

    assert buffer.feed(b"ab") is None
    assert buffer.pending
    assert buffer.feed(b"cd\n") == "abcd\n"
    assert not buffer.pending


def test_burst_of_lines_flushes_once() -> None:
    buffer = LineBuffer()

    assert _feed_all(buffer, [b"line1\nline2\n"]) == ["line1\nline2\n"]


def test_trailing_partial_line_holds_back_complete_lines() -> None:
    buffer = LineBuffer()

    flushed = _feed_all(buffer, [b"line1\nline2\npart", b"ial\n"])

    assert flushed == ["line1\nline2\npartial\n"]


def test_split_multibyte_character_waits_for_completion() -> None:
    buffer = LineBuffer()
    encoded = "café\n".encode("utf-8")
    split = encoded.index(b"\xa9")

    assert buffer.feed(encoded[:split]) is None
    assert buffer.pending
    assert buffer.feed(encoded[split:]) == "café\n"


def test_four_byte_character_split_across_three_chunks() -> None:
    buffer = LineBuffer()
    encoded = "🎉\n".encode("utf-8")

    flushed = _feed_all(buffer, [encoded[:1], encoded[1:3], encoded[3:]])

    assert flushed == ["🎉\n"]


def test_newline_before_incomplete_tail_does_not_flush() -> None:
    buffer = LineBuffer()
    encoded = "ok\né".encode("utf-8")

    assert buffer.feed(encoded[:-1]) is None
    assert buffer.feed(encoded[-1:] + b"\n") == "ok\né\n"


def test_carriage_return_is_a_terminator() -> None:
    buffer = LineBuffer()

    assert buffer.feed(b"progress 50%\r") == "progress 50%\r"


def test_crlf_split_between_chunks() -> None:
    buffer = LineBuffer()

    assert _feed_all(buffer, [b"a\r", b"\n"]) == ["a\r", "\n"]
    assert _feed_all(LineBuffer(), [b"a\r\n"]) == ["a\r\n"]


def test_invalid_bytes_are_replaced_instead_of_stalling() -> None:
    buffer = LineBuffer()

    assert buffer.feed(b"bad \xff byte\n") == "bad \ufffd byte\n"


def test_reset_discards_undelivered_bytes() -> None:
    buffer = LineBuffer()
    buffer.feed(b"stale partial")
    buffer.feed(b"\xe2\x82")

    buffer.reset()

    assert not buffer.pending
    assert buffer.feed(b"fresh\n") == "fresh\n"


def test_empty_chunk_flushes_nothing() -> None:
    buffer = LineBuffer()

    assert buffer.feed(b"") is None
    assert not buffer.pending


def test_alternate_encoding() -> None:
    buffer = LineBuffer("latin-1")

    assert buffer.feed("déjà vu\n".encode("latin-1")) == "déjà vu\n"
