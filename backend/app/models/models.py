"""
Domain models for the test-taking engine.

These are immutable in-memory records. Questions and tests are owned by the
authoring side and only read here; results are created once by the
submission assembler and never modified afterwards.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple, Union

from app.core.datetime_utils import Timestamp
from libs.domain_types import QuestionType

# Shape of an answer captured for a slot:
#   single choice -> option index (int)
#   multi choice  -> set of option indices
#   numeric       -> the literal text the student typed
CapturedAnswer = Union[int, FrozenSet[int], str]

# Canonical correct answer stored on a question, same shapes as above.
CanonicalAnswer = Union[int, FrozenSet[int], str]


@dataclass(frozen=True)
class QuestionDefinition:
    """A question as authored in the question bank."""

    id: str
    question_type: QuestionType
    correct_answer: CanonicalAnswer
    options: Tuple[str, ...] = ()
    marks: float = 1.0
    penalty: float = 0.0
    subject: Optional[str] = None
    topic: Optional[str] = None
    subtopic: Optional[str] = None

    def __post_init__(self) -> None:
        if self.question_type == QuestionType.SINGLE_CHOICE:
            if isinstance(self.correct_answer, bool) or not isinstance(
                self.correct_answer, int
            ):
                raise ValueError(
                    f"Question {self.id}: single-choice answer must be an option index"
                )
        elif self.question_type == QuestionType.MULTI_CHOICE:
            if not isinstance(self.correct_answer, frozenset):
                # Accept any iterable of indices from callers, store frozen
                object.__setattr__(
                    self, "correct_answer", frozenset(self.correct_answer)
                )
        elif not isinstance(self.correct_answer, str):
            object.__setattr__(self, "correct_answer", str(self.correct_answer))

        if self.options and not isinstance(self.options, tuple):
            object.__setattr__(self, "options", tuple(self.options))


@dataclass(frozen=True)
class TestSubsection:
    """A named group of questions inside a section."""

    __test__ = False

    id: str
    name: str


@dataclass(frozen=True)
class TestSection:
    """A named group of subsections inside a test."""

    __test__ = False

    id: str
    name: str
    subsections: Tuple[TestSubsection, ...] = ()


@dataclass(frozen=True)
class TestQuestionBinding:
    """Placement and per-test scoring of one question within a test."""

    __test__ = False

    question_id: str
    order: int
    marks: float
    negative_marks: float = 0.0
    section_id: str = ""
    subsection_id: str = ""

    def __post_init__(self) -> None:
        if self.marks <= 0:
            raise ValueError(
                f"Binding for question {self.question_id} must have positive marks"
            )
        if self.negative_marks < 0:
            raise ValueError(
                f"Binding for question {self.question_id} "
                "cannot have negative_marks < 0"
            )


@dataclass(frozen=True)
class TestDefinition:
    """
    A timed test: ordered question bindings plus section layout.

    Each question is bound at most once; scoring and reports look bindings
    up by question id.
    """

    __test__ = False

    id: str
    title: str
    duration_minutes: int
    bindings: Tuple[TestQuestionBinding, ...]
    sections: Tuple[TestSection, ...] = ()

    def __post_init__(self) -> None:
        if self.duration_minutes <= 0:
            raise ValueError(f"Test {self.id}: duration must be a positive number")
        seen = set()
        for binding in self.bindings:
            if binding.question_id in seen:
                raise ValueError(
                    f"Test {self.id}: question {binding.question_id} is bound twice"
                )
            seen.add(binding.question_id)

    @property
    def duration_seconds(self) -> int:
        return self.duration_minutes * 60

    def ordered_bindings(self) -> Tuple[TestQuestionBinding, ...]:
        """Bindings sorted by their order, ties kept in authoring order."""
        return tuple(sorted(self.bindings, key=lambda b: b.order))


@dataclass(frozen=True)
class ResponseRecord:
    """Scored snapshot of one slot at submission time."""

    question_id: str
    question_index: int
    student_answer: Optional[CapturedAnswer]
    correct_answer: Optional[CanonicalAnswer]
    is_correct: bool
    marks_obtained: float
    marks_possible: Optional[float] = None
    section_id: str = ""
    subsection_id: str = ""

    @property
    def is_answered(self) -> bool:
        return self.student_answer is not None


@dataclass(frozen=True)
class TestResult:
    """The single, immutable outcome of one student's attempt at one test."""

    __test__ = False

    id: str
    test_id: str
    student_id: str
    responses: Tuple[ResponseRecord, ...]
    total_questions: int
    answered_questions: int
    correct_answers: int
    incorrect_answers: int
    not_answered: int
    total_marks_obtained: float
    total_marks_possible: float
    time_spent_seconds: int
    submitted_at: Timestamp
    started_at: Optional[Timestamp] = None
    test_title: str = ""
    test_duration_minutes: int = 0
    auto_submitted: bool = field(default=False)

    @property
    def score_percentage(self) -> float:
        if self.total_marks_possible <= 0:
            return 0.0
        return self.total_marks_obtained / self.total_marks_possible * 100
