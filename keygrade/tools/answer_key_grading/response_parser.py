"""Prompts sent to the grading model and parsing of what comes back."""

import json
import logging
import re
from typing import Union

from pydantic import ValidationError

from .models import GradingResult, ParseError

LOG = logging.getLogger(__name__)

DEFAULT_GRADING_PROMPT = (
    "You are a grading assistant. Compare student answers to the key and provide "
    "structured results. Extract the student's name if present. For each question, "
    "return closeness %, verdict, and per-question score. Include total_score and "
    "testworth (sum of max points). Grade each questions comparing conceptually the "
    "provided key answer to the question, and admit different verbiage and phrasing, "
    "do not discount points for change of language style, grammatical errors or "
    "spelling inconsistencies. Discount points for non completeness."
)

RESPONSE_FORMAT = """{
  "student_name": string,
  "total_score": number,
  "testworth": number,
  "questions": [
    {"id": "q1", "question": string, "student_answer": string, "correct_answer": string, "closeness": number, "verdict": "Correct|Partial|Incorrect", "questionscore": number, "maxscore": number}
  ],
  "feedback": string
}"""

_OPENING_FENCE = re.compile(r'^```[a-zA-Z]*\n?')
_CLOSING_FENCE = re.compile(r'```$')


def build_user_prompt(answer_key: str, submission: str) -> str:
    """Build the user message holding the key, the submission and the expected JSON shape."""
    return f"""Key:
{answer_key}

Student submission:
{submission}

Return JSON with structure:
{RESPONSE_FORMAT}
Only return valid JSON."""


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` fence (with optional language tag) if present."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_grading_response(text: str) -> Union[GradingResult, ParseError]:
    """
    Interpret the model's completion text as a grading result.

    Never raises: anything that isn't a JSON object of the expected shape
    comes back as a ParseError carrying the untouched response text.
    """
    cleaned = strip_code_fence(text or "")

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        LOG.warning("Could not parse grading response as JSON: %s", e)
        return ParseError(message=f"Could not parse model response: {e}", raw=text or "")

    if not isinstance(data, dict):
        LOG.warning("Grading response is JSON but not an object: %s", type(data).__name__)
        return ParseError(message="Model response is not a JSON object", raw=text)

    try:
        return GradingResult.model_validate(data)
    except ValidationError as e:
        LOG.warning("Grading response has an unexpected structure: %s", e)
        return ParseError(message=f"Unexpected response structure: {e}", raw=text)
