"""Plain text extractor."""

from __future__ import annotations

from .base import TextExtractor


class PlainTextExtractor(TextExtractor):
    supported_kinds = ("text",)

    def extract(self, filename: str, data: bytes) -> str:
        return data.decode("utf-8", errors="replace")
