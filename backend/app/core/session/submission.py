"""
Submission assembler: turns the final slot arena of an attempt into one
immutable TestResult.

Assembly is pure. Persisting the result and rejecting duplicate submissions
are the session manager's job.
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from app.core.datetime_utils import NativeTimestamp, ensure_timezone_aware, utc_now
from app.core.scoring import score_answer
from app.core.session.state_machine import SessionSlot
from app.models.models import (
    QuestionDefinition,
    ResponseRecord,
    TestDefinition,
    TestQuestionBinding,
    TestResult,
)

logger = logging.getLogger(__name__)


def calculate_time_spent(
    started_at: datetime, submitted_at: datetime, duration_seconds: int
) -> int:
    """
    Whole seconds between start and submission, capped at the test duration.

    The timer forces submission at zero, so anything beyond the duration is
    scheduling latency and is not charged to the student.
    """
    elapsed = (
        ensure_timezone_aware(submitted_at) - ensure_timezone_aware(started_at)
    ).total_seconds()
    return max(0, min(int(elapsed), duration_seconds))


def build_response_record(
    slot: SessionSlot,
    question: QuestionDefinition,
    binding: TestQuestionBinding,
) -> ResponseRecord:
    """Score one slot and snapshot it as a ResponseRecord."""
    scored = score_answer(question, binding, slot.answer)
    return ResponseRecord(
        question_id=slot.question_id,
        question_index=slot.index,
        student_answer=slot.answer,
        correct_answer=question.correct_answer,
        is_correct=scored.is_correct,
        marks_obtained=scored.marks_obtained,
        marks_possible=binding.marks,
        section_id=slot.section_id,
        subsection_id=slot.subsection_id,
    )


def assemble_test_result(
    *,
    test: TestDefinition,
    student_id: str,
    slots: Sequence[SessionSlot],
    questions: Mapping[str, QuestionDefinition],
    started_at: datetime,
    submitted_at: Optional[datetime] = None,
    result_id: Optional[str] = None,
    auto_submitted: bool = False,
) -> TestResult:
    """
    Score every slot and fold the outcomes into a TestResult.

    Args:
        test: Test being submitted; its bindings supply the marking scheme
        student_id: Student who took the test
        slots: Final slot arena, one slot per bound question
        questions: Resolved question definitions keyed by id
        started_at: When the session started
        submitted_at: Submission instant; defaults to now
        result_id: Id for the new result; a fresh one is generated if omitted
        auto_submitted: Whether the timer forced this submission

    Returns:
        Immutable TestResult with ordered response records and totals

    Raises:
        KeyError: If a slot refers to a question or binding that is missing
    """
    submitted_at = submitted_at or utc_now()
    bindings: Dict[str, TestQuestionBinding] = {
        binding.question_id: binding for binding in test.bindings
    }

    responses: List[ResponseRecord] = []
    correct = incorrect = not_answered = 0
    marks_obtained = 0.0
    marks_possible = 0.0

    for slot in slots:
        binding = bindings[slot.question_id]
        record = build_response_record(slot, questions[slot.question_id], binding)
        responses.append(record)

        marks_possible += binding.marks
        marks_obtained += record.marks_obtained
        if not record.is_answered:
            not_answered += 1
        elif record.is_correct:
            correct += 1
        else:
            incorrect += 1

    result = TestResult(
        id=result_id or uuid.uuid4().hex,
        test_id=test.id,
        student_id=student_id,
        responses=tuple(responses),
        total_questions=len(responses),
        answered_questions=correct + incorrect,
        correct_answers=correct,
        incorrect_answers=incorrect,
        not_answered=not_answered,
        total_marks_obtained=marks_obtained,
        total_marks_possible=marks_possible,
        time_spent_seconds=calculate_time_spent(
            started_at, submitted_at, test.duration_seconds
        ),
        submitted_at=NativeTimestamp(ensure_timezone_aware(submitted_at)),
        started_at=NativeTimestamp(ensure_timezone_aware(started_at)),
        test_title=test.title,
        test_duration_minutes=test.duration_minutes,
        auto_submitted=auto_submitted,
    )

    logger.debug(
        f"Assembled result {result.id} for student {student_id} test {test.id}: "
        f"{correct} correct, {incorrect} incorrect, {not_answered} not answered, "
        f"marks {marks_obtained}/{marks_possible}"
    )
    return result
