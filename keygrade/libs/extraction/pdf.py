"""PDF extractor backed by PyMuPDF."""

from __future__ import annotations

from .base import TextExtractor


class PdfExtractor(TextExtractor):
    supported_kinds = ("pdf",)

    def extract(self, filename: str, data: bytes) -> str:
        import fitz  # type: ignore

        page_texts = []
        with fitz.open(stream=data, filetype="pdf") as doc:
            for page_idx in range(doc.page_count):
                page = doc.load_page(page_idx)
                page_texts.append(page.get_text("text").rstrip("\n"))
        # One line break between pages keeps "Page <n>" markers on their own line
        return "\n".join(page_texts) + "\n"
