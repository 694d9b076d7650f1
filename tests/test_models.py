"""Tests for grading models and records."""

from datetime import datetime

import pytest

from keygrade.tools.answer_key_grading.models import (
    GradingRecord,
    GradingResult,
    GradingStatus,
    ParseError,
    QuestionResult,
    Verdict,
    coerce_number,
)


class TestCoercion:
    """Test lenient reading of model-supplied values."""

    @pytest.mark.parametrize("value,expected", [
        (3, 3.0),
        (2.5, 2.5),
        ("4", 4.0),
        (" 0.75 ", 0.75),
        ("3 points", 3.0),
        ("85%", 85.0),
        ("n/a", None),
        ("", None),
        (None, None),
        (True, None),
        ([1], None),
        (float("nan"), None),
    ])
    def test_coerce_number(self, value, expected):
        assert coerce_number(value) == expected

    def test_question_result_coercion(self):
        question = QuestionResult.model_validate({
            "id": 7,
            "question": "2 + 2?",
            "student_answer": 4,
            "closeness": "90",
            "verdict": "partial",
            "questionscore": "0.5",
            "maxscore": "1",
        })

        assert question.id == "7"
        assert question.student_answer == "4"
        assert question.closeness == 90
        assert question.verdict == Verdict.PARTIAL
        assert question.question_score == 0.5
        assert question.max_score == 1

    def test_unknown_verdict_keeps_text(self):
        question = QuestionResult.model_validate({"id": "q1", "verdict": " Partially correct "})
        assert question.verdict == "Partially correct"
        assert not isinstance(question.verdict, Verdict)
        assert question.verdict_label == "Partially correct"

    @pytest.mark.parametrize("value", [None, "", "   ", 3])
    def test_missing_verdict(self, value):
        question = QuestionResult.model_validate({"id": "q1", "verdict": value})
        assert question.verdict is None
        assert question.verdict_label == ""

    def test_known_verdict_label(self):
        question = QuestionResult.model_validate({"id": "q1", "verdict": "INCORRECT"})
        assert question.verdict is Verdict.INCORRECT
        assert question.verdict_label == "Incorrect"

    def test_missing_question_ids_are_positional(self):
        result = GradingResult.model_validate({
            "questions": [{"question": "a"}, {"id": "custom"}, {"question": "c"}]
        })
        assert [q.id for q in result.questions] == ["q1", "custom", "q3"]

    def test_null_questions_is_empty(self):
        assert GradingResult.model_validate({"questions": None}).questions == []

    def test_wire_aliases_round_trip(self):
        result = GradingResult.model_validate({
            "total_score": 1, "testworth": 2,
            "questions": [{"id": "q1", "questionscore": 1, "verdict": "Correct"}],
        })
        dumped = result.model_dump(by_alias=True, mode="json")

        assert dumped["total_score"] == 1
        assert dumped["testworth"] == 2
        assert dumped["questions"][0]["questionscore"] == 1
        assert dumped["questions"][0]["verdict"] == "Correct"

    def test_find_question(self):
        result = GradingResult.model_validate({"questions": [{"id": "q1"}, {"id": "q2"}, {"id": "q1"}]})
        assert result.find_question("q2") is result.questions[1]
        assert result.find_question("q1") is result.questions[0]
        assert result.find_question("q9") is None


class TestGradingRecord:
    """Test record lifecycle helpers."""

    def test_defaults(self):
        record = GradingRecord(identifier="alice.txt", content="answers")
        assert record.status == GradingStatus.IDLE
        assert record.result is None
        assert record.graded_at is None

    def test_with_content_clears_grading(self):
        record = GradingRecord(
            identifier="alice.txt",
            content="old",
            result=GradingResult(),
            status=GradingStatus.DISPLAYED,
            graded_at=datetime.now(),
            elapsed=4,
        )
        edited = record.with_content("new")

        assert edited.content == "new"
        assert edited.result is None
        assert edited.status == GradingStatus.IDLE
        assert edited.graded_at is None
        assert edited.elapsed == 0
        # The original record is untouched
        assert record.content == "old"
        assert record.result is not None

    def test_status_label(self):
        record = GradingRecord(identifier="a").with_status(GradingStatus.PROCESSING, elapsed=3)
        assert record.status_label == "processing (3s)"
        assert record.with_status(GradingStatus.SENT).status_label == "sent"

    def test_result_variants(self):
        graded = GradingRecord(identifier="a", result=GradingResult(student_name="Ann"))
        failed = GradingRecord(identifier="b", result=ParseError(message="bad", raw="oops"))

        assert graded.grading_result is not None and graded.parse_error is None
        assert failed.parse_error.raw == "oops" and failed.grading_result is None

    def test_display_name(self):
        assert GradingRecord(identifier="a.txt").display_name == "a.txt"
        assert GradingRecord(identifier="a.txt", result=GradingResult(student_name="Ann")).display_name == "Ann"
        assert GradingRecord(identifier="a.txt", result=GradingResult(student_name="")).display_name == "a.txt"

    def test_to_dict(self):
        record = GradingRecord(
            identifier="a.txt",
            result=ParseError(message="bad", raw="oops"),
            status=GradingStatus.DISPLAYED,
        )
        data = record.to_dict()

        assert data['status'] == "displayed"
        assert data['result'] is None
        assert data['parse_error'] == {'message': "bad", 'raw': "oops"}
