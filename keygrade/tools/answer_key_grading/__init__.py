"""Answer-key grading: split submissions, grade them with an LLM, aggregate and export scores."""

from .grader import AnswerKeyGrader, CompletionClient, GradingRequestError
from .models import GradingRecord, GradingResult, GradingStatus, ParseError, QuestionResult, Verdict
from .response_parser import parse_grading_response, strip_code_fence
from .scoring import ScoreSummary, aggregate, is_passing, letter_grade
from .session import GradingSession
from .splitter import split_submissions

__all__ = [
    'AnswerKeyGrader',
    'CompletionClient',
    'GradingRequestError',
    'GradingRecord',
    'GradingResult',
    'GradingSession',
    'GradingStatus',
    'ParseError',
    'QuestionResult',
    'ScoreSummary',
    'Verdict',
    'aggregate',
    'is_passing',
    'letter_grade',
    'parse_grading_response',
    'split_submissions',
    'strip_code_fence',
]
