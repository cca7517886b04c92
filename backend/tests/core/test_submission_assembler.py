"""
Tests for the submission assembler.
"""
from datetime import datetime, timedelta, timezone

import pytest

from app.core.datetime_utils import NativeTimestamp, to_instant
from app.core.session import SessionState, assemble_test_result
from app.core.session.submission import calculate_time_spent

STARTED_AT = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def questions(sample_questions):
    return {q.id: q for q in sample_questions}


@pytest.fixture
def state(sample_test):
    return SessionState.from_bindings(sample_test.ordered_bindings())


def _assemble(sample_test, state, questions, **kwargs):
    kwargs.setdefault("submitted_at", STARTED_AT + timedelta(minutes=20))
    return assemble_test_result(
        test=sample_test,
        student_id="student-1",
        slots=state.slots,
        questions=questions,
        started_at=STARTED_AT,
        **kwargs,
    )


class TestCalculateTimeSpent:
    """Tests for calculate_time_spent."""

    def test_elapsed_seconds(self):
        assert calculate_time_spent(
            STARTED_AT, STARTED_AT + timedelta(seconds=95.7), 3600
        ) == 95

    def test_capped_at_duration(self):
        assert calculate_time_spent(
            STARTED_AT, STARTED_AT + timedelta(hours=2), 3600
        ) == 3600

    def test_never_negative(self):
        assert calculate_time_spent(
            STARTED_AT, STARTED_AT - timedelta(seconds=5), 3600
        ) == 0

    def test_naive_datetimes_treated_as_utc(self):
        naive_start = datetime(2024, 3, 1, 9, 0)

        assert calculate_time_spent(
            naive_start, STARTED_AT + timedelta(seconds=30), 3600
        ) == 30


class TestAssembleTestResult:
    """Tests for assemble_test_result."""

    def test_all_unanswered(self, sample_test, state, questions):
        result = _assemble(sample_test, state, questions)

        assert result.total_questions == 3
        assert result.not_answered == 3
        assert result.answered_questions == 0
        assert result.total_marks_obtained == 0
        assert result.total_marks_possible == 12

    def test_mixed_answers(self, sample_test, state, questions):
        state.capture_answer(0, 1)  # correct
        state.capture_answer(1, [0])  # partial multi choice, incorrect
        state.capture_answer(2, " 2.50 ")  # correct numeric

        result = _assemble(sample_test, state, questions)

        assert result.correct_answers == 2
        assert result.incorrect_answers == 1
        assert result.not_answered == 0
        assert result.answered_questions == 3
        assert result.total_marks_obtained == 4 + 4 - 1
        assert result.score_percentage == pytest.approx(7 / 12 * 100)

    def test_responses_follow_slot_order(self, sample_test, state, questions):
        state.capture_answer(1, [2, 0])

        result = _assemble(sample_test, state, questions)

        assert [r.question_id for r in result.responses] == [
            "q-kinematics",
            "q-forces",
            "q-moles",
        ]
        assert [r.question_index for r in result.responses] == [0, 1, 2]
        forces = result.responses[1]
        assert forces.student_answer == frozenset({0, 2})
        assert forces.correct_answer == frozenset({0, 2})
        assert forces.is_correct is True
        assert forces.marks_possible == 4
        assert forces.section_id == "physics"
        assert forces.subsection_id == "multi"

    def test_review_flag_does_not_affect_scoring(self, sample_test, state, questions):
        state.capture_answer(0, 1)
        state.toggle_review(0)
        state.toggle_review(1)

        result = _assemble(sample_test, state, questions)

        assert result.correct_answers == 1
        assert result.not_answered == 2

    def test_metadata(self, sample_test, state, questions):
        submitted_at = STARTED_AT + timedelta(minutes=5)

        result = _assemble(
            sample_test,
            state,
            questions,
            submitted_at=submitted_at,
            result_id="r-1",
            auto_submitted=True,
        )

        assert result.id == "r-1"
        assert result.test_id == "test-1"
        assert result.student_id == "student-1"
        assert result.test_title == "Mock Test 1"
        assert result.test_duration_minutes == 60
        assert result.auto_submitted is True
        assert result.time_spent_seconds == 300
        assert isinstance(result.submitted_at, NativeTimestamp)
        assert to_instant(result.submitted_at) == submitted_at
        assert to_instant(result.started_at) == STARTED_AT

    def test_generates_unique_ids(self, sample_test, state, questions):
        first = _assemble(sample_test, state, questions)
        second = _assemble(sample_test, state, questions)

        assert first.id != second.id

    def test_same_slots_same_totals(self, sample_test, state, questions):
        """Assembly is pure: identical slot contents give identical totals."""
        state.capture_answer(0, 3)
        state.capture_answer(2, "2.5")

        first = _assemble(sample_test, state, questions, result_id="a")
        second = _assemble(sample_test, state, questions, result_id="a")

        assert first == second

    def test_missing_question_raises(self, sample_test, state, questions):
        del questions["q-moles"]

        with pytest.raises(KeyError):
            _assemble(sample_test, state, questions)
