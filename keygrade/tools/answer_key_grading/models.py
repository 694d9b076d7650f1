"""Models for answer-key grading: model verdicts and per-submission records."""

import math
import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Same leniency as a "parse the leading number" reading: "3 points" -> 3, "85%" -> 85
_LEADING_NUMBER = re.compile(r'^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?')


def coerce_number(value: Any) -> Optional[float]:
    """Read a loosely-typed numeric value, returning None when it isn't one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if not match:
            return None
        number = float(match.group())
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _coerce_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


class Verdict(str, Enum):
    """Categorical correctness label for one question."""
    CORRECT = "Correct"
    PARTIAL = "Partial"
    INCORRECT = "Incorrect"


class QuestionResult(BaseModel):
    """The model's verdict on a single question."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: Optional[str] = Field(default=None, description="Question identifier, e.g. 'q1'")
    question_text: Optional[str] = Field(default=None, alias="question")
    student_answer: Optional[str] = None
    correct_answer: Optional[str] = None
    closeness: Optional[float] = Field(default=None, description="0-100 similarity to the key")
    verdict: Optional[Union[Verdict, str]] = None
    question_score: Optional[float] = Field(default=None, alias="questionscore")
    max_score: Optional[float] = Field(default=None, alias="maxscore")

    @field_validator("id", "question_text", "student_answer", "correct_answer", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @field_validator("closeness", "question_score", "max_score", mode="before")
    @classmethod
    def _number(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("verdict", mode="before")
    @classmethod
    def _verdict(cls, value: Any) -> Union[Verdict, str, None]:
        """Known labels (any case) become a Verdict; other text is kept as given."""
        if not isinstance(value, str) or not value.strip():
            return None
        for verdict in Verdict:
            if value.strip().lower() == verdict.value.lower():
                return verdict
        return value.strip()

    @property
    def verdict_label(self) -> str:
        if isinstance(self.verdict, Verdict):
            return self.verdict.value
        return self.verdict or ""


class GradingResult(BaseModel):
    """Parsed grading verdict for one submission."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    student_name: Optional[str] = None
    reported_total: Optional[float] = Field(default=None, alias="total_score")
    declared_worth: Optional[float] = Field(default=None, alias="testworth")
    questions: List[QuestionResult] = Field(default_factory=list)
    feedback: Optional[str] = None

    @field_validator("student_name", "feedback", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Optional[str]:
        return _coerce_text(value)

    @field_validator("reported_total", "declared_worth", mode="before")
    @classmethod
    def _number(cls, value: Any) -> Optional[float]:
        return coerce_number(value)

    @field_validator("questions", mode="before")
    @classmethod
    def _questions(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("questions must be a list")
        return value

    @model_validator(mode="after")
    def _fill_question_ids(self) -> "GradingResult":
        for idx, question in enumerate(self.questions, start=1):
            if not question.id:
                question.id = f"q{idx}"
        return self

    def find_question(self, question_id: str) -> Optional[QuestionResult]:
        """First question with the given id, in display order."""
        for question in self.questions:
            if question.id == question_id:
                return question
        return None


class ParseError(BaseModel):
    """A model response that could not be read as a grading result."""
    message: str
    raw: str


class GradingStatus(str, Enum):
    """Lifecycle of a grading attempt for one record."""
    IDLE = "idle"
    SENT = "sent"
    PROCESSING = "processing"
    RECEIVED = "received"
    DISPLAYED = "displayed"
    ERROR = "error"


@dataclass(frozen=True)
class GradingRecord:
    """
    One candidate submission and its grading state.

    Records are immutable; every change produces a new record that replaces
    the old one in the session.
    """
    identifier: str
    content: str = ""
    result: Optional[Union[GradingResult, ParseError]] = None
    status: GradingStatus = GradingStatus.IDLE
    graded_at: Optional[datetime] = None
    elapsed: int = 0
    error: Optional[str] = None

    def with_content(self, content: str) -> "GradingRecord":
        """Replace the content, dropping any previous grading."""
        return replace(
            self,
            content=content,
            result=None,
            status=GradingStatus.IDLE,
            graded_at=None,
            elapsed=0,
            error=None,
        )

    def with_status(self, status: GradingStatus, **changes: Any) -> "GradingRecord":
        return replace(self, status=status, **changes)

    @property
    def grading_result(self) -> Optional[GradingResult]:
        return self.result if isinstance(self.result, GradingResult) else None

    @property
    def parse_error(self) -> Optional[ParseError]:
        return self.result if isinstance(self.result, ParseError) else None

    @property
    def display_name(self) -> str:
        """Model-extracted student name, falling back to the identifier."""
        result = self.grading_result
        if result and result.student_name:
            return result.student_name
        return self.identifier

    @property
    def status_label(self) -> str:
        if self.status == GradingStatus.PROCESSING:
            return f"processing ({self.elapsed}s)"
        return self.status.value

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'identifier': self.identifier,
            'content': self.content,
            'status': self.status.value,
            'status_label': self.status_label,
            'elapsed': self.elapsed,
            'graded_at': self.graded_at.isoformat() if self.graded_at else None,
            'error': self.error,
            'result': None,
            'parse_error': None,
        }
        if self.grading_result is not None:
            data['result'] = self.grading_result.model_dump(by_alias=True, mode="json")
        elif self.parse_error is not None:
            data['parse_error'] = self.parse_error.model_dump()
        return data
