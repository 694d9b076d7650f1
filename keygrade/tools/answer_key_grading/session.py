"""A grading session: one answer key and the current batch of submissions."""

import asyncio
import logging
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from keygrade.libs.extraction import (
    SCAN_KINDS,
    TextExtractor,
    expand_archive,
    extract_text,
    infer_kind,
)
from .csv_export import export_csv, export_csv_text
from .grader import AnswerKeyGrader
from .models import GradingRecord
from .scoring import DEFAULT_PASS_THRESHOLD, aggregate, is_passing
from .splitter import label_segments, split_submissions

LOG = logging.getLogger(__name__)

# The answer key is typed or uploaded as a document, never OCR'd
ANSWER_KEY_KINDS = ("text", "docx", "pdf")

IndexedCallback = Callable[[int, GradingRecord], None]


class GradingSession:
    """Holds the answer key and submission records, and grades them one at a time."""

    def __init__(self, grader: AnswerKeyGrader, pass_threshold: float = DEFAULT_PASS_THRESHOLD,
                 extractors: Optional[List[TextExtractor]] = None):
        """
        Args:
            grader: Grader used for every record
            pass_threshold: Percentage needed to pass (0-100)
            extractors: Text extractors (defaults to the built-in set)
        """
        self.grader = grader
        self.extractors = extractors
        self.answer_key = ""
        self.records: List[GradingRecord] = []
        self.current_index = 0
        self.pass_threshold = DEFAULT_PASS_THRESHOLD
        self.set_pass_threshold(pass_threshold)

    # -- configuration ----------------------------------------------------

    def set_pass_threshold(self, threshold: float) -> None:
        threshold = float(threshold)
        if not 0 <= threshold <= 100:
            raise ValueError(f"Pass threshold must be between 0 and 100, got {threshold}")
        self.pass_threshold = threshold

    def set_answer_key(self, text: str) -> None:
        self.answer_key = text or ""

    def load_answer_key_bytes(self, filename: str, data: bytes) -> str:
        self.answer_key = extract_text(filename, data, ANSWER_KEY_KINDS, self.extractors)
        LOG.info(f"Loaded answer key from {filename} ({len(self.answer_key)} characters)")
        return self.answer_key

    def load_answer_key(self, path: Path) -> str:
        path = Path(path)
        return self.load_answer_key_bytes(path.name, path.read_bytes())

    # -- submissions ------------------------------------------------------

    def build_records(self, filename: str, data: bytes) -> List[GradingRecord]:
        """
        Turn one uploaded file into records.

        ZIP archives give one record per contained file. PDFs and images may
        hold a scanned stack of students and are split. Anything else is a
        single record.
        """
        kind = infer_kind(filename)

        if kind == "zip":
            try:
                members = expand_archive(data)
            except zipfile.BadZipFile as e:
                LOG.warning(f"Could not open archive {filename}: {e}")
                return [GradingRecord(identifier=filename, content=f"Error reading zip: {e}")]
            return [
                GradingRecord(identifier=name, content=extract_text(name, member, extractors=self.extractors))
                for name, member in members
            ]

        content = extract_text(filename, data, extractors=self.extractors)
        if kind in SCAN_KINDS:
            segments = split_submissions(content)
            labels = label_segments(filename, segments)
            return [GradingRecord(identifier=label, content=text) for label, text in zip(labels, segments)]

        return [GradingRecord(identifier=filename, content=content)]

    def upload_submission_bytes(self, filename: str, data: bytes) -> List[GradingRecord]:
        """Replace the whole batch with the records built from one upload."""
        self.records = self.build_records(filename, data)
        self.current_index = 0
        LOG.info(f"Loaded {len(self.records)} submissions from {filename}")
        return list(self.records)

    def upload_submissions(self, path: Path) -> List[GradingRecord]:
        path = Path(path)
        return self.upload_submission_bytes(path.name, path.read_bytes())

    def add_pasted(self, content: str = "") -> GradingRecord:
        """Append a record for pasted text and make it current."""
        record = GradingRecord(identifier=f"Pasted-{len(self.records) + 1}", content=content)
        self.records = self.records + [record]
        self.current_index = len(self.records) - 1
        return record

    def get_record(self, index: int) -> GradingRecord:
        if not 0 <= index < len(self.records):
            raise IndexError(f"No submission at index {index}")
        return self.records[index]

    def replace_record(self, index: int, record: GradingRecord) -> None:
        self.get_record(index)
        updated = list(self.records)
        updated[index] = record
        self.records = updated

    def edit_content(self, index: int, content: str) -> GradingRecord:
        """Re-edit a submission's text; clears any previous grading."""
        record = self.get_record(index).with_content(content)
        self.replace_record(index, record)
        return record

    def navigate(self, delta: int) -> int:
        if self.records:
            self.current_index = max(0, min(len(self.records) - 1, self.current_index + delta))
        return self.current_index

    @property
    def current_record(self) -> Optional[GradingRecord]:
        if not self.records:
            return None
        return self.records[self.current_index]

    # -- grading ----------------------------------------------------------

    def _require_ready(self) -> None:
        if not self.answer_key.strip():
            raise ValueError("An answer key is required before grading")
        if not self.records:
            raise ValueError("No submissions to grade")

    async def grade_one_async(self, index: int,
                              on_update: Optional[IndexedCallback] = None) -> GradingRecord:
        """Grade a single record, publishing each state change into the session."""
        self._require_ready()
        record = self.get_record(index)

        def update(new_record: GradingRecord) -> None:
            self.replace_record(index, new_record)
            if on_update:
                on_update(index, new_record)

        return await self.grader.grade_record(record, self.answer_key, update)

    async def grade_all_async(self, on_update: Optional[IndexedCallback] = None) -> List[GradingRecord]:
        """
        Grade every record that has no result yet, strictly one after another.

        A failing record is left in the error state and the batch moves on.
        """
        self._require_ready()
        for index in range(len(self.records)):
            if self.records[index].result is not None:
                LOG.debug(f"Skipping already graded {self.records[index].identifier}")
                continue
            await self.grade_one_async(index, on_update)
        return list(self.records)

    def grade_one(self, index: int, on_update: Optional[IndexedCallback] = None) -> GradingRecord:
        """Synchronous wrapper for grade_one_async."""
        return asyncio.run(self.grade_one_async(index, on_update))

    def grade_current(self, on_update: Optional[IndexedCallback] = None) -> GradingRecord:
        return self.grade_one(self.current_index, on_update)

    def grade_all(self, on_update: Optional[IndexedCallback] = None) -> List[GradingRecord]:
        """Synchronous wrapper for grade_all_async."""
        return asyncio.run(self.grade_all_async(on_update))

    # -- reporting --------------------------------------------------------

    def summarize(self, record: GradingRecord) -> Dict[str, Any]:
        summary = aggregate(record.result)
        return {
            'name': record.display_name,
            'status': record.status_label,
            'total': summary.total,
            'worth': summary.worth,
            'percentage': summary.percentage,
            'letter_grade': summary.letter_grade,
            'passed': is_passing(summary.percentage, self.pass_threshold),
            'parse_error': record.parse_error.message if record.parse_error else None,
        }

    def summaries(self) -> List[Dict[str, Any]]:
        return [self.summarize(record) for record in self.records]

    def export_csv_text(self) -> str:
        return export_csv_text(self.records)

    def export_csv(self, output_path: Path) -> Path:
        return export_csv(self.records, output_path)
