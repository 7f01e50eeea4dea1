"""Document model: the current text and the parse derived from it."""

from __future__ import annotations

import logging
from collections.abc import Callable
from time import perf_counter

from md_playground.document.extractor import Extractor
from md_playground.errors import MalformedTextError
from md_playground.types import CodeBlock, Node, ParseResult

logger = logging.getLogger(__name__)

ParseListener = Callable[[ParseResult], None]


class Subscription:
    """Registration handle returned by `Document.subscribe`.

    Closing it deregisters the listener; it is idempotent and doubles as a
    context manager so the registration can be scoped to the subscriber.
    """

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Callable[[], None] | None = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def close(self) -> None:
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()


class Document:
    """Owns the full text of one document and its most recent parse.

    Every call to `set_text` reparses synchronously, so `ast` and `blocks`
    always describe the latest text. Block lists handed out earlier are not
    updated; callers holding them across edits must discard them.
    """

    def __init__(self, extractor: Extractor, text: str = "", *, kind: str | None = None) -> None:
        self.kind = kind or extractor.kind
        self._extractor = extractor
        self._listeners: list[ParseListener] = []
        self._result = self._reparse(text)

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        extractor: Extractor,
        *,
        kind: str | None = None,
        encoding: str = "utf-8",
    ) -> "Document":
        """Decode raw document bytes, failing loudly on malformed input."""
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError as exc:
            raise MalformedTextError(
                f"Document is not valid {encoding} (byte {exc.start}: {exc.reason})"
            ) from exc
        return cls(extractor, text, kind=kind)

    @property
    def text(self) -> str:
        return self._result.source

    @property
    def result(self) -> ParseResult:
        return self._result

    @property
    def ast(self) -> Node:
        return self._result.ast

    @property
    def blocks(self) -> tuple[CodeBlock, ...]:
        return self._result.blocks

    def set_text(self, text: str) -> ParseResult:
        """Replace the text, reparse it and notify subscribers."""
        self._result = self._reparse(text)
        for listener in list(self._listeners):
            listener(self._result)
        return self._result

    def subscribe(self, listener: ParseListener) -> Subscription:
        self._listeners.append(listener)

        def _release() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return Subscription(_release)

    def _reparse(self, text: str) -> ParseResult:
        start = perf_counter()
        result = self._extractor.parse(text)
        logger.debug(
            "Parsed %s document: %d chars, %d code blocks in %.2f ms",
            self.kind,
            len(text),
            len(result.blocks),
            (perf_counter() - start) * 1000.0,
        )
        return result
