"""DOCX extractor backed by python-docx."""

from __future__ import annotations

import io

from .base import TextExtractor


class DocxExtractor(TextExtractor):
    supported_kinds = ("docx",)

    def extract(self, filename: str, data: bytes) -> str:
        import docx

        document = docx.Document(io.BytesIO(data))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)
