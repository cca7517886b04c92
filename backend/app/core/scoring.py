"""
Answer Scoring Module.

Resolves a captured answer against a question's canonical answer and the
test's marking scheme, producing correctness and signed marks.

Marking Scheme
==============
- Not answered (``None``): incorrect, 0 marks. Skipping never costs marks.
- Correct: ``+marks`` from the test binding.
- Incorrect: ``-negative_marks`` from the test binding.

Per Question Type
=================
- single_choice: the captured option index must equal the canonical index.
- multi_choice: the captured set of indices must equal the canonical set
  exactly. A subset or superset is incorrect and takes the full penalty;
  there is no partial credit.
- numeric: the captured text is trimmed and parsed; it must equal the
  canonical number exactly unless ``NUMERIC_ANSWER_TOLERANCE`` is set.
  Canonical values that are not numbers fall back to a trimmed,
  case-insensitive text comparison.

Every function here is pure and total: malformed answers (text that is not a
number, a list where an index was expected, booleans, infinities) score as
incorrect rather than raising.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from app.core.config import settings
from app.models.models import QuestionDefinition, TestQuestionBinding
from libs.domain_types import QuestionType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredAnswer:
    """Outcome of scoring a single captured answer."""

    is_correct: bool
    marks_obtained: float


def _is_option_index(value: Any) -> bool:
    # bool is an int subclass; True must not stand in for option 1
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_number(text: str) -> Optional[Decimal]:
    """Parse trimmed text as a finite decimal, or None if it is not one."""
    try:
        number = Decimal(text.strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def check_single_choice_answer(student_answer: Any, correct_index: Any) -> bool:
    """
    Check a single-choice answer.

    Args:
        student_answer: Captured option index
        correct_index: Canonical option index

    Returns:
        True only if both are option indices and they are equal

    Example:
        >>> check_single_choice_answer(2, 2)
        True
        >>> check_single_choice_answer("2", 2)
        False
    """
    if not _is_option_index(student_answer) or not _is_option_index(correct_index):
        return False
    return student_answer == correct_index


def check_multi_choice_answer(student_answer: Any, correct_options: Any) -> bool:
    """
    Check a multi-choice answer by exact set equality.

    Args:
        student_answer: Captured collection of option indices
        correct_options: Canonical collection of option indices

    Returns:
        True only if the two sets have the same members

    Example:
        >>> check_multi_choice_answer({0, 2}, frozenset({0, 2}))
        True
        >>> check_multi_choice_answer({0}, frozenset({0, 2}))
        False
    """
    if isinstance(student_answer, (str, bytes)) or not hasattr(
        student_answer, "__iter__"
    ):
        return False
    selected = list(student_answer)
    if not all(_is_option_index(index) for index in selected):
        return False
    return set(selected) == set(correct_options)


def check_numeric_answer(
    student_answer: Any,
    correct_answer: Any,
    tolerance: Optional[float] = None,
) -> bool:
    """
    Check a numeric answer.

    Args:
        student_answer: Captured text as typed by the student
        correct_answer: Canonical value (text or number)
        tolerance: Absolute tolerance; defaults to NUMERIC_ANSWER_TOLERANCE
            (0 means exact equality)

    Returns:
        True if the parsed values match, False otherwise (including when the
        captured text is not a number)

    Example:
        >>> check_numeric_answer(" 2.50 ", "2.5")
        True
        >>> check_numeric_answer("2.5001", "2.5")
        False
        >>> check_numeric_answer("abc", "2.5")
        False
    """
    if not isinstance(student_answer, str):
        return False
    if tolerance is None:
        tolerance = settings.NUMERIC_ANSWER_TOLERANCE

    canonical_text = str(correct_answer)
    canonical = _parse_number(canonical_text)
    if canonical is None:
        # Non-numeric canonical answer: compare as text
        return student_answer.strip().lower() == canonical_text.strip().lower()

    captured = _parse_number(student_answer)
    if captured is None:
        return False
    if tolerance <= 0:
        return captured == canonical
    return abs(captured - canonical) <= Decimal(str(tolerance))


def check_answer(question: QuestionDefinition, student_answer: Any) -> bool:
    """
    Check whether a captured answer is correct for a question.

    Args:
        question: Question with its canonical answer
        student_answer: Captured answer, or None if not answered

    Returns:
        True if correct, False otherwise (always False for None)
    """
    if student_answer is None:
        return False

    if question.question_type == QuestionType.SINGLE_CHOICE:
        return check_single_choice_answer(student_answer, question.correct_answer)
    if question.question_type == QuestionType.MULTI_CHOICE:
        return check_multi_choice_answer(student_answer, question.correct_answer)
    if question.question_type == QuestionType.NUMERIC:
        return check_numeric_answer(student_answer, question.correct_answer)

    logger.warning(
        f"Unknown question type {question.question_type!r} for question {question.id}"
    )
    return False


def calculate_marks(is_correct: bool, marks: float, negative_marks: float) -> float:
    """
    Calculate marks for an answered question.

    Args:
        is_correct: Whether the answer is correct
        marks: Positive marks for a correct answer
        negative_marks: Penalty for an incorrect answer (>= 0)

    Returns:
        ``marks`` if correct, ``-negative_marks`` otherwise
    """
    if is_correct:
        return marks
    return -negative_marks


def score_answer(
    question: QuestionDefinition,
    binding: TestQuestionBinding,
    student_answer: Any,
) -> ScoredAnswer:
    """
    Score a captured answer using the test binding's marking scheme.

    This is the main entry point of the module. The binding, not the
    question's default marks, decides the marks for this test.

    Args:
        question: Question definition with canonical answer
        binding: Per-test marks and negative marks
        student_answer: Captured answer or None

    Returns:
        ScoredAnswer with correctness and signed marks

    Example:
        >>> scored = score_answer(question, binding, None)
        >>> (scored.is_correct, scored.marks_obtained)
        (False, 0)
    """
    if student_answer is None:
        return ScoredAnswer(is_correct=False, marks_obtained=0)

    is_correct = check_answer(question, student_answer)
    return ScoredAnswer(
        is_correct=is_correct,
        marks_obtained=calculate_marks(
            is_correct, binding.marks, binding.negative_marks
        ),
    )
