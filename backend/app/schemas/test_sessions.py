"""
Pydantic schemas for test session endpoints.
"""
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, StrictInt, StrictStr, field_validator

from app.core.datetime_utils import to_instant
from app.core.session import SessionSlot, SessionSnapshot
from app.models.models import ResponseRecord, TestResult
from libs.domain_types import SessionStatus, SlotStatus

AnswerValue = Union[StrictInt, List[StrictInt], StrictStr]


def _serialize_answer(value) -> Optional[Union[int, List[int], str]]:
    """Frozen multi-choice selections are returned as sorted lists."""
    if isinstance(value, frozenset):
        return sorted(value)
    return value


def _require_identifier(value: str, field_name: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{field_name} cannot be empty")
    return value


# =============================================================================
# Requests
# =============================================================================


class StartTestRequest(BaseModel):
    """Schema for starting a test session."""

    student_id: str = Field(..., description="Student taking the test")
    test_id: str = Field(..., description="Test to start")

    @field_validator("student_id")
    @classmethod
    def validate_student_id(cls, v: str) -> str:
        return _require_identifier(v, "Student ID")

    @field_validator("test_id")
    @classmethod
    def validate_test_id(cls, v: str) -> str:
        return _require_identifier(v, "Test ID")


class SlotIndexRequest(BaseModel):
    """Schema for actions that target one question slot."""

    index: int = Field(..., ge=0, description="Zero-based question index")


class AnswerRequest(SlotIndexRequest):
    """Schema for capturing an answer.

    Single-choice answers are an option index, multi-choice answers a list
    of option indices, numeric answers the text exactly as typed.
    """

    answer: AnswerValue = Field(..., description="Captured answer")


class SectionNavigationRequest(BaseModel):
    """Schema for jumping to the first question of a section or subsection."""

    section_id: str = Field(..., description="Section to jump to")
    subsection_id: Optional[str] = Field(
        None, description="Subsection within the section"
    )


# =============================================================================
# Responses
# =============================================================================


class SlotResponse(BaseModel):
    """Schema for one question slot in the palette."""

    index: int = Field(..., description="Zero-based question index")
    question_id: str = Field(..., description="Question ID")
    status: SlotStatus = Field(..., description="Palette status of the slot")
    answer: Optional[Union[int, List[int], str]] = Field(
        None, description="Captured answer, if any"
    )
    marked_for_review: bool = Field(False, description="Review flag")
    section_id: str = Field("", description="Section the question belongs to")
    subsection_id: str = Field("", description="Subsection the question belongs to")

    @classmethod
    def from_slot(cls, slot: SessionSlot) -> "SlotResponse":
        return cls(
            index=slot.index,
            question_id=slot.question_id,
            status=slot.status,
            answer=_serialize_answer(slot.answer),
            marked_for_review=slot.marked_for_review,
            section_id=slot.section_id,
            subsection_id=slot.subsection_id,
        )


class StatusCountsResponse(BaseModel):
    """Schema for the palette legend counts."""

    not_visited: int = Field(0, ge=0)
    not_answered: int = Field(0, ge=0)
    answered: int = Field(0, ge=0)
    marked_for_review: int = Field(0, ge=0)
    answered_and_marked: int = Field(0, ge=0)


class TestSessionSnapshotResponse(BaseModel):
    """Schema for the full state of a test session."""

    session_id: str = Field(..., description="Test session ID")
    test_id: str = Field(..., description="Test ID")
    test_title: str = Field(..., description="Test title")
    student_id: str = Field(..., description="Student ID")
    status: SessionStatus = Field(..., description="Session lifecycle status")
    current_index: int = Field(..., description="Index of the question on screen")
    total_questions: int = Field(..., description="Number of question slots")
    remaining_seconds: int = Field(..., description="Seconds left on the countdown")
    started_at: datetime = Field(..., description="Session start timestamp")
    status_counts: StatusCountsResponse = Field(
        ..., description="Number of slots per palette status"
    )
    slots: List[SlotResponse] = Field(..., description="All question slots")
    result_id: Optional[str] = Field(
        None, description="Result ID once the session is submitted"
    )

    @classmethod
    def from_snapshot(cls, snapshot: SessionSnapshot) -> "TestSessionSnapshotResponse":
        return cls(
            session_id=snapshot.session_id,
            test_id=snapshot.test_id,
            test_title=snapshot.test_title,
            student_id=snapshot.student_id,
            status=snapshot.status,
            current_index=snapshot.current_index,
            total_questions=len(snapshot.slots),
            remaining_seconds=snapshot.remaining_seconds,
            started_at=snapshot.started_at,
            status_counts=StatusCountsResponse(
                **{
                    status.value: count
                    for status, count in snapshot.status_counts.items()
                }
            ),
            slots=[SlotResponse.from_slot(slot) for slot in snapshot.slots],
            result_id=snapshot.result_id,
        )


class ResponseRecordResponse(BaseModel):
    """Schema for one scored response of a result."""

    question_id: str
    question_index: int
    student_answer: Optional[Union[int, List[int], str]] = None
    correct_answer: Optional[Union[int, List[int], str]] = None
    is_correct: bool
    marks_obtained: float
    marks_possible: Optional[float] = None
    section_id: str = ""
    subsection_id: str = ""

    @classmethod
    def from_record(cls, record: ResponseRecord) -> "ResponseRecordResponse":
        return cls(
            question_id=record.question_id,
            question_index=record.question_index,
            student_answer=_serialize_answer(record.student_answer),
            correct_answer=_serialize_answer(record.correct_answer),
            is_correct=record.is_correct,
            marks_obtained=record.marks_obtained,
            marks_possible=record.marks_possible,
            section_id=record.section_id,
            subsection_id=record.subsection_id,
        )


class TestResultResponse(BaseModel):
    """Schema for a submitted test result."""

    id: str = Field(..., description="Result ID")
    test_id: str = Field(..., description="Test ID")
    student_id: str = Field(..., description="Student ID")
    test_title: str = Field("", description="Test title at submission time")
    total_questions: int
    answered_questions: int
    correct_answers: int
    incorrect_answers: int
    not_answered: int
    total_marks_obtained: float
    total_marks_possible: float
    score_percentage: float = Field(
        ..., description="Marks obtained as a percentage of marks possible"
    )
    time_spent_seconds: int
    submitted_at: datetime
    started_at: Optional[datetime] = None
    auto_submitted: bool = Field(
        False, description="Whether the countdown forced this submission"
    )
    responses: List[ResponseRecordResponse] = Field(default_factory=list)

    @classmethod
    def from_result(
        cls, result: TestResult, include_responses: bool = True
    ) -> "TestResultResponse":
        return cls(
            id=result.id,
            test_id=result.test_id,
            student_id=result.student_id,
            test_title=result.test_title,
            total_questions=result.total_questions,
            answered_questions=result.answered_questions,
            correct_answers=result.correct_answers,
            incorrect_answers=result.incorrect_answers,
            not_answered=result.not_answered,
            total_marks_obtained=result.total_marks_obtained,
            total_marks_possible=result.total_marks_possible,
            score_percentage=round(result.score_percentage, 2),
            time_spent_seconds=result.time_spent_seconds,
            submitted_at=to_instant(result.submitted_at),
            started_at=to_instant(result.started_at) if result.started_at else None,
            auto_submitted=result.auto_submitted,
            responses=(
                [ResponseRecordResponse.from_record(r) for r in result.responses]
                if include_responses
                else []
            ),
        )
