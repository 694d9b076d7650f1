"""Text extraction for uploaded answer keys and submissions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .archive import expand_archive
from .base import TextExtractor
from .image import ImageOcrExtractor
from .pdf import PdfExtractor
from .text import PlainTextExtractor
from .word import DocxExtractor

LOG = logging.getLogger(__name__)

UNSUPPORTED_TEXT = "Unsupported file type"

TEXT_EXTENSIONS = {".txt"}
DOCX_EXTENSIONS = {".docx"}
PDF_EXTENSIONS = {".pdf"}
IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".tif", ".tiff"}
ARCHIVE_EXTENSIONS = {".zip"}

# Kinds whose extracted text may hold several students (scanned stacks)
SCAN_KINDS = {"pdf", "image"}

__all__ = [
    "ARCHIVE_EXTENSIONS",
    "SCAN_KINDS",
    "UNSUPPORTED_TEXT",
    "TextExtractor",
    "default_extractors",
    "expand_archive",
    "extract_file",
    "extract_text",
    "infer_kind",
]


def default_extractors(ocr_language: str = "eng") -> List[TextExtractor]:
    return [
        PlainTextExtractor(),
        DocxExtractor(),
        PdfExtractor(),
        ImageOcrExtractor(language=ocr_language),
    ]


def infer_kind(filename: str) -> Optional[str]:
    suffix = Path(filename).suffix.lower()
    if suffix in TEXT_EXTENSIONS:
        return "text"
    if suffix in DOCX_EXTENSIONS:
        return "docx"
    if suffix in PDF_EXTENSIONS:
        return "pdf"
    if suffix in IMAGE_EXTENSIONS:
        return "image"
    if suffix in ARCHIVE_EXTENSIONS:
        return "zip"
    return None


def extract_text(
    filename: str,
    data: bytes,
    allowed_kinds: Optional[Iterable[str]] = None,
    extractors: Optional[List[TextExtractor]] = None,
) -> str:
    """
    Extract text from a single (non-archive) file.

    Never raises for bad input: unsupported kinds give UNSUPPORTED_TEXT and
    extractor failures give an "Error reading <kind>: ..." placeholder, so one
    bad file does not abort a batch.
    """
    kind = infer_kind(filename)
    if kind is None or (allowed_kinds is not None and kind not in set(allowed_kinds)):
        LOG.info("Unsupported file type for %s", filename)
        return UNSUPPORTED_TEXT

    for extractor in extractors or default_extractors():
        if not extractor.matches(kind):
            continue
        try:
            return extractor.extract(filename, data)
        except Exception as exc:  # pylint: disable=broad-except
            LOG.warning("Could not extract %s (%s): %s", filename, kind, exc)
            return f"Error reading {kind}: {exc}"

    LOG.info("No extractor for %s (%s)", filename, kind)
    return UNSUPPORTED_TEXT


def extract_file(path: Path, allowed_kinds: Optional[Iterable[str]] = None,
                 extractors: Optional[List[TextExtractor]] = None) -> str:
    """Read a file from disk and extract its text."""
    path = Path(path)
    return extract_text(path.name, path.read_bytes(), allowed_kinds, extractors)
