"""OCR extractor for scanned images (pytesseract + Pillow)."""

from __future__ import annotations

import io

from .base import TextExtractor


class ImageOcrExtractor(TextExtractor):
    supported_kinds = ("image",)

    def __init__(self, language: str = "eng"):
        self.language = language

    def extract(self, filename: str, data: bytes) -> str:
        import pytesseract
        from PIL import Image

        with Image.open(io.BytesIO(data)) as image:
            return pytesseract.image_to_string(image, lang=self.language)
