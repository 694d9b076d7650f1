"""Tests for score aggregation and grade bucketing."""

import logging

import pytest

from keygrade.tools.answer_key_grading.models import GradingResult, ParseError
from keygrade.tools.answer_key_grading.scoring import (
    ScoreSummary,
    aggregate,
    is_passing,
    letter_grade,
)


def make_result(**data) -> GradingResult:
    return GradingResult.model_validate(data)


class TestAggregate:
    """Test recomputing total, worth and percentage."""

    def test_absent_result_is_zero(self):
        assert aggregate(None) == ScoreSummary(total=0, worth=0, percentage=0)

    def test_parse_error_is_zero(self):
        error = ParseError(message="bad", raw="not json")
        assert aggregate(error) == ScoreSummary()

    def test_sum_of_question_scores(self):
        result = make_result(questions=[
            {"id": "q1", "questionscore": 1},
            {"id": "q2", "questionscore": "0.5"},
            {"id": "q3", "questionscore": None},
            {"id": "q4", "questionscore": "n/a"},
        ])
        summary = aggregate(result)

        assert summary.total == 1.5
        # No declared maxima: each question is worth one point
        assert summary.worth == 4
        assert summary.percentage == pytest.approx(37.5)

    def test_declared_worth_wins(self):
        result = make_result(testworth=10, questions=[
            {"id": "q1", "questionscore": 4, "maxscore": 5},
            {"id": "q2", "questionscore": 3, "maxscore": 5},
        ])
        summary = aggregate(result)

        assert summary.total == 7
        assert summary.worth == 10
        assert summary.percentage == pytest.approx(70.0)

    def test_zero_declared_worth_falls_back_to_question_maxima(self):
        result = make_result(testworth=0, questions=[
            {"id": "q1", "questionscore": 2, "maxscore": 4},
            {"id": "q2", "questionscore": 1},
        ])
        summary = aggregate(result)

        assert summary.worth == 5
        assert summary.percentage == pytest.approx(60.0)

    def test_zero_max_score_counts_as_one_point(self):
        result = make_result(questions=[{"id": "q1", "questionscore": 1, "maxscore": 0}])
        assert aggregate(result).worth == 1

    def test_no_questions_has_zero_worth(self):
        summary = aggregate(make_result(questions=[]))
        assert summary == ScoreSummary(total=0, worth=0, percentage=0)

    def test_reported_total_is_advisory(self, caplog):
        """A disagreeing reported total is logged, never used."""
        result = make_result(total_score=9, questions=[
            {"id": "q1", "questionscore": 2},
            {"id": "q2", "questionscore": 1},
        ])
        with caplog.at_level(logging.WARNING):
            summary = aggregate(result)

        assert summary.total == 3
        assert "does not match" in caplog.text

    def test_reported_total_within_epsilon_is_quiet(self, caplog):
        result = make_result(total_score=3.005, questions=[
            {"id": "q1", "questionscore": 2},
            {"id": "q2", "questionscore": 1},
        ])
        with caplog.at_level(logging.WARNING):
            aggregate(result)

        assert "does not match" not in caplog.text

    @pytest.mark.parametrize("total,worth", [(0, 1), (1, 3), (7.5, 10), (12, 12), (5, 0)])
    def test_percentage_formula(self, total, worth):
        questions = [{"id": "q1", "questionscore": total}]
        result = make_result(testworth=worth, questions=questions) if worth else make_result(questions=[])
        summary = aggregate(result)

        if summary.worth > 0:
            assert summary.percentage == pytest.approx(100 * summary.total / summary.worth)
        else:
            assert summary.percentage == 0


class TestGrades:
    """Test letter grades and pass/fail."""

    @pytest.mark.parametrize("percentage,expected", [
        (100, "A"),
        (90.0, "A"),
        (89.9, "B"),
        (80.0, "B"),
        (79.99, "C"),
        (70.0, "C"),
        (69.9, "F"),
        (0, "F"),
    ])
    def test_letter_grade_boundaries(self, percentage, expected):
        assert letter_grade(percentage) == expected

    def test_default_threshold(self):
        assert is_passing(70.0)
        assert not is_passing(69.9)

    def test_custom_threshold(self):
        assert is_passing(55, threshold=50)
        assert not is_passing(95, threshold=100)
        assert is_passing(0, threshold=0)

    @pytest.mark.parametrize("threshold", [-1, 100.5])
    def test_threshold_out_of_range(self, threshold):
        with pytest.raises(ValueError, match="between 0 and 100"):
            is_passing(50, threshold=threshold)

    def test_summary_helpers(self):
        summary = ScoreSummary(total=8, worth=10, percentage=80.0)
        assert summary.letter_grade == "B"
        assert summary.passed()
        assert not summary.passed(threshold=85)
