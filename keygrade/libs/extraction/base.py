"""Extractor base class for turning uploaded files into text."""

from __future__ import annotations


class TextExtractor:
    """Extension point for per-kind text extraction strategies."""

    supported_kinds: tuple[str, ...] = ()

    def matches(self, kind: str) -> bool:
        return kind in self.supported_kinds

    def extract(self, filename: str, data: bytes) -> str:
        raise NotImplementedError
