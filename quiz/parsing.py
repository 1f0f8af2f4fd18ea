"""
Pull a question list out of free-form generator output.

Each strategy takes the raw text and returns a validated list of
``GeneratedQuestion`` or ``None``. ``parse_questions`` tries them in order and
stops at the first one that works.
"""

import json
import logging
import re
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from quiz.schemas import GeneratedQuestion

logger = logging.getLogger("quiz_master")

FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

ParseStrategy = Callable[[str], Optional[List[GeneratedQuestion]]]


def validate_question_list(candidate) -> Optional[List[GeneratedQuestion]]:
    if not isinstance(candidate, list) or not candidate:
        return None

    try:
        return [GeneratedQuestion.model_validate(item) for item in candidate]
    except ValidationError as e:
        logger.debug(f"Parsed JSON is not a question list: {e}")
        return None


def _loads(text):
    try:
        return json.loads(text)
    except ValueError:
        return None


def parse_direct(raw: str) -> Optional[List[GeneratedQuestion]]:
    return validate_question_list(_loads(raw))


def parse_bracketed(raw: str) -> Optional[List[GeneratedQuestion]]:
    """Take everything from the first '[' to the last ']'."""
    start = raw.find("[")
    end = raw.rfind("]")

    if start == -1 or end <= start:
        return None

    return validate_question_list(_loads(raw[start:end + 1]))


def parse_fenced(raw: str) -> Optional[List[GeneratedQuestion]]:
    for match in FENCED_BLOCK.finditer(raw):
        questions = validate_question_list(_loads(match.group(1)))
        if questions:
            return questions
    return None


PARSE_STRATEGIES: Tuple[Tuple[str, ParseStrategy], ...] = (
    ("direct", parse_direct),
    ("bracketed", parse_bracketed),
    ("fenced", parse_fenced),
)


def parse_questions(raw: str, strategies: Sequence[Tuple[str, ParseStrategy]] = PARSE_STRATEGIES):
    if not isinstance(raw, str) or not raw.strip():
        return None

    for name, strategy in strategies:
        questions = strategy(raw)
        if questions:
            logger.info(f"Parsed {len(questions)} questions with the {name} strategy")
            return questions

    return None
