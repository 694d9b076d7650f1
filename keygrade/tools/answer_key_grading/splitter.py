"""Split one extracted text blob (e.g. a scanned stack of pages) into per-student texts."""

import logging
import re
from typing import List

LOG = logging.getLogger(__name__)

# A delimiter is a line holding only one of these markers.
DELIMITER_PATTERN = re.compile(
    r'^[ \t]*(Student:|Name:|Page[ \t]+\d+|-{4,})[ \t]*\r?$',
    re.IGNORECASE | re.MULTILINE,
)


def split_submissions(text: str) -> List[str]:
    """
    Partition text into one segment per student using delimiter lines.

    Each delimiter line opens a segment and is kept at its start, followed by
    the body up to the next delimiter. Non-empty text before the first
    delimiter becomes a leading segment of its own. With fewer than two
    delimiters the whole (trimmed) text comes back as the only segment. This
    is a heuristic: nothing checks that a segment really belongs to a
    distinct student.

    Args:
        text: Extracted text, possibly holding several submissions

    Returns:
        List of segment texts, in document order
    """
    # re.split with a capturing group keeps the delimiters:
    # [preamble, delim1, body1, delim2, body2, ...]
    pieces = DELIMITER_PATTERN.split(text)
    preamble = pieces[0].strip()
    pairs = [
        (pieces[i].strip(), pieces[i + 1].strip())
        for i in range(1, len(pieces) - 1, 2)
    ]

    if len(pairs) < 2:
        return [text.strip()]

    segments = []
    # e.g. the first student's pages in a stack marked only with "Page <n>"
    if preamble:
        LOG.debug("Keeping %d characters before the first delimiter as a segment", len(preamble))
        segments.append(preamble)

    for delimiter, body in pairs:
        segments.append(f"{delimiter}\n{body}" if body else delimiter)

    LOG.debug("Split text into %d segments", len(segments))
    return segments


def label_segments(filename: str, segments: List[str]) -> List[str]:
    """Identifiers for split segments: '<filename>-Student<k>', k from 1."""
    return [f"{filename}-Student{k}" for k in range(1, len(segments) + 1)]
