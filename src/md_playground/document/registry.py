"""Maps declared document kinds and file suffixes to extractors."""

from __future__ import annotations

from pathlib import Path

from md_playground.config import ExtractorConfig
from md_playground.document.extractor import Extractor, MarkdownExtractor, PlainTextExtractor
from md_playground.document.model import Document

_BUILTIN_EXTRACTORS: tuple[type[Extractor], ...] = (MarkdownExtractor, PlainTextExtractor)


class DocumentRegistry:
    """Static factory table keyed by document kind."""

    def __init__(
        self,
        extractors: list[type[Extractor]] | None = None,
        *,
        config: ExtractorConfig | None = None,
    ) -> None:
        self.config = config or ExtractorConfig()
        self._extractors: dict[str, type[Extractor]] = {}
        self._suffixes: dict[str, str] = {}
        for extractor in extractors or list(_BUILTIN_EXTRACTORS):
            self.register(extractor)

    def register(self, extractor: type[Extractor]) -> None:
        if not extractor.kind:
            raise ValueError(f"Extractor {extractor.__name__} declares no kind")
        if extractor.kind in self._extractors:
            raise ValueError(f"Document kind already registered: {extractor.kind}")
        self._extractors[extractor.kind] = extractor
        for suffix in extractor.suffixes:
            self._suffixes[suffix.lower()] = extractor.kind

    def kinds(self) -> list[str]:
        return list(self._extractors)

    def extractor_for(self, kind: str) -> Extractor:
        extractor = self._extractors.get(kind)
        if extractor is None:
            raise ValueError(f"No extractor registered for document kind: {kind}")
        return extractor(self.config)

    def kind_for_path(self, path: str | Path) -> str:
        suffix = Path(path).suffix.lower()
        kind = self._suffixes.get(suffix)
        if kind is None:
            raise ValueError(f"No document kind registered for extension: {suffix}")
        return kind

    def create(self, kind: str, text: str = "") -> Document:
        return Document(self.extractor_for(kind), text, kind=kind)

    def load(self, path: str | Path, data: bytes, *, encoding: str = "utf-8") -> Document:
        """Build a document from bytes read by the caller for `path`."""
        kind = self.kind_for_path(path)
        return Document.from_bytes(data, self.extractor_for(kind), kind=kind, encoding=encoding)
