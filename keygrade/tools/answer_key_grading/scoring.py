"""Score aggregation for parsed grading results."""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .models import GradingResult, ParseError

LOG = logging.getLogger(__name__)

DEFAULT_PASS_THRESHOLD = 70.0
RECONCILIATION_EPSILON = 0.01


@dataclass(frozen=True)
class ScoreSummary:
    """Locally recomputed score for one submission."""
    total: float = 0.0
    worth: float = 0.0
    percentage: float = 0.0

    @property
    def letter_grade(self) -> str:
        return letter_grade(self.percentage)

    def passed(self, threshold: float = DEFAULT_PASS_THRESHOLD) -> bool:
        return is_passing(self.percentage, threshold)


def aggregate(result: Optional[Union[GradingResult, ParseError]]) -> ScoreSummary:
    """
    Recompute total, worth and percentage from a grading result.

    The sum of question scores is authoritative. A model-reported total that
    disagrees with it is only logged.

    Args:
        result: Parsed result, a parse failure, or None

    Returns:
        ScoreSummary (all zeros for a missing or unparsed result)
    """
    if not isinstance(result, GradingResult):
        return ScoreSummary()

    total = sum(q.question_score or 0.0 for q in result.questions)

    if result.declared_worth:
        worth = result.declared_worth
    else:
        # A question without a usable maximum is worth one point
        worth = sum(q.max_score or 1.0 for q in result.questions)

    percentage = (total / worth) * 100 if worth > 0 else 0.0

    if result.reported_total is not None and abs(result.reported_total - total) > RECONCILIATION_EPSILON:
        LOG.warning(
            "Reported total_score=%s does not match recalculated total=%s",
            result.reported_total, total,
        )

    return ScoreSummary(total=float(total), worth=float(worth), percentage=float(percentage))


def letter_grade(percentage: float) -> str:
    if percentage >= 90:
        return "A"
    if percentage >= 80:
        return "B"
    if percentage >= 70:
        return "C"
    return "F"


def is_passing(percentage: float, threshold: float = DEFAULT_PASS_THRESHOLD) -> bool:
    """Pass/fail against a user-configured threshold in [0, 100]."""
    if not 0 <= threshold <= 100:
        raise ValueError(f"Pass threshold must be between 0 and 100, got {threshold}")
    return percentage >= threshold
