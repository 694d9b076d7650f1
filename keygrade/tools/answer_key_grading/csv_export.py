"""CSV export of graded records, one row per record."""

import csv
import io
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence, Tuple

from .models import GradingRecord
from .scoring import aggregate

LOG = logging.getLogger(__name__)

QUESTION_COLUMNS = ("Question", "StudentAnswer", "CorrectAnswer", "Verdict", "Closeness", "QuestionScore")


def format_number(value: Any) -> str:
    """Render numbers without a trailing '.0'; None as empty."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def collect_question_ids(records: Sequence[GradingRecord]) -> List[str]:
    """Distinct question ids across all records, in first-seen order."""
    seen: Dict[str, None] = {}
    for record in records:
        result = record.grading_result
        if not result:
            continue
        for question in result.questions:
            seen.setdefault(question.id, None)
    return list(seen)


def build_rows(records: Sequence[GradingRecord]) -> List[List[str]]:
    """Header row followed by one row per record."""
    question_ids = collect_question_ids(records)

    header = ["Name", "TotalScore"]
    for qid in question_ids:
        header.extend(f"{qid}_{column}" for column in QUESTION_COLUMNS)
    header.extend(["Feedback", "GradedAt"])

    rows = [header]
    for record in records:
        result = record.grading_result
        summary = aggregate(result)
        row = [record.display_name, format_number(summary.total)]
        for qid in question_ids:
            question = result.find_question(qid) if result else None
            if question is None:
                row.extend([""] * len(QUESTION_COLUMNS))
                continue
            row.extend([
                question.question_text or "",
                question.student_answer or "",
                question.correct_answer or "",
                question.verdict_label,
                format_number(question.closeness),
                format_number(question.question_score),
            ])
        row.append((result.feedback or "") if result else "")
        row.append(record.graded_at.isoformat() if record.graded_at else "")
        rows.append(row)
    return rows


def export_csv_text(records: Sequence[GradingRecord]) -> str:
    """Serialize records to CSV text; every cell quoted, quotes doubled."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(build_rows(records))
    return buffer.getvalue()


def export_csv(records: Sequence[GradingRecord], output_path: Path) -> Path:
    output_path = Path(output_path)
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        f.write(export_csv_text(records))
    LOG.info(f"Exported {len(records)} records to {output_path}")
    return output_path


def read_export(path: Path) -> List[Tuple[str, float, Dict[str, float]]]:
    """
    Read an exported CSV back into (name, total, {question_id: score}) tuples.

    Questions without a score for a row are left out of its dict.
    """
    results = []
    with open(path, 'r', newline='', encoding='utf-8') as f:
        reader = csv.DictReader(f)
        suffix = "_QuestionScore"
        for row in reader:
            scores = {}
            for column, value in row.items():
                if column.endswith(suffix) and value != "":
                    scores[column[:-len(suffix)]] = float(value)
            total = float(row["TotalScore"]) if row["TotalScore"] else 0.0
            results.append((row["Name"], total, scores))
    return results
