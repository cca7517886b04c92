"""
Pytest configuration and shared fixtures for testing.
"""
import sys
from pathlib import Path

# Add project root to path so libs/ is importable (matches CI PYTHONPATH config)
# This must happen before importing from app/ which may import from libs/
project_root = Path(__file__).parent.parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import asyncio  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import AsyncGenerator, Generator, List  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.api.deps import (  # noqa: E402
    get_question_bank,
    get_result_store,
    get_session_manager,
    get_test_store,
)
from app.core.datetime_utils import NativeTimestamp  # noqa: E402
from app.core.session import TestSessionManager  # noqa: E402
from app.main import app  # noqa: E402
from app.models.models import (  # noqa: E402
    QuestionDefinition,
    ResponseRecord,
    TestDefinition,
    TestQuestionBinding,
    TestResult,
    TestSection,
    TestSubsection,
)
from app.services.stores import (  # noqa: E402
    InMemoryQuestionBank,
    InMemoryResultStore,
    InMemoryTestDefinitionStore,
)
from libs.domain_types import QuestionType, SessionStatus  # noqa: E402

# Tick fast enough that a full countdown finishes within a test
FAST_TICK_SECONDS = 0.001


class ManualClock:
    """Settable clock for the session manager."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


async def wait_for_status(session, status: SessionStatus, timeout: float = 2.0):
    """Poll until a session reaches ``status`` or the timeout elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while session.status != status:
        if loop.time() > deadline:
            raise AssertionError(
                f"Session {session.id} stuck in {session.status}, expected {status}"
            )
        await asyncio.sleep(0.005)


def make_result(
    result_id: str,
    responses: List[ResponseRecord],
    *,
    student_id: str = "student-1",
    test_id: str = "test-1",
    submitted_at: datetime = datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc),
    test_title: str = "Mock Test",
) -> TestResult:
    """Build a TestResult with totals derived from its responses."""
    correct = sum(1 for r in responses if r.is_answered and r.is_correct)
    incorrect = sum(1 for r in responses if r.is_answered and not r.is_correct)
    return TestResult(
        id=result_id,
        test_id=test_id,
        student_id=student_id,
        responses=tuple(responses),
        total_questions=len(responses),
        answered_questions=correct + incorrect,
        correct_answers=correct,
        incorrect_answers=incorrect,
        not_answered=len(responses) - correct - incorrect,
        total_marks_obtained=sum(r.marks_obtained for r in responses),
        total_marks_possible=sum(r.marks_possible or 0 for r in responses),
        time_spent_seconds=600,
        submitted_at=NativeTimestamp(submitted_at),
        started_at=NativeTimestamp(submitted_at - timedelta(minutes=10)),
        test_title=test_title,
        test_duration_minutes=60,
    )


def make_response(
    question_id: str,
    *,
    index: int = 0,
    answer=1,
    correct: bool = True,
    marks: float = 4.0,
    penalty: float = 1.0,
    section_id: str = "",
) -> ResponseRecord:
    """Build a scored ResponseRecord; ``answer=None`` means not answered."""
    if answer is None:
        obtained = 0.0
        correct = False
    else:
        obtained = marks if correct else -penalty
    return ResponseRecord(
        question_id=question_id,
        question_index=index,
        student_answer=answer,
        correct_answer=1,
        is_correct=correct,
        marks_obtained=obtained,
        marks_possible=marks,
        section_id=section_id,
    )


@pytest.fixture
def sample_questions() -> List[QuestionDefinition]:
    """Questions across two subjects and all three answer formats."""
    return [
        QuestionDefinition(
            id="q-kinematics",
            question_type=QuestionType.SINGLE_CHOICE,
            correct_answer=1,
            options=("1 m/s", "2 m/s", "3 m/s", "4 m/s"),
            subject="Physics",
            topic="Mechanics",
            subtopic="Kinematics",
        ),
        QuestionDefinition(
            id="q-forces",
            question_type=QuestionType.MULTI_CHOICE,
            correct_answer=frozenset({0, 2}),
            options=("Gravity", "Heat", "Friction", "Colour"),
            subject="Physics",
            topic="Mechanics",
            subtopic="Forces",
        ),
        QuestionDefinition(
            id="q-moles",
            question_type=QuestionType.NUMERIC,
            correct_answer="2.5",
            subject="Chemistry",
            topic="Stoichiometry",
            subtopic="Moles",
        ),
    ]


@pytest.fixture
def sample_test() -> TestDefinition:
    """Three-question, one-hour test, marks 4 / penalty 1, two sections."""
    return TestDefinition(
        id="test-1",
        title="Mock Test 1",
        duration_minutes=60,
        bindings=(
            TestQuestionBinding(
                question_id="q-kinematics",
                order=1,
                marks=4,
                negative_marks=1,
                section_id="physics",
                subsection_id="mcq",
            ),
            TestQuestionBinding(
                question_id="q-forces",
                order=2,
                marks=4,
                negative_marks=1,
                section_id="physics",
                subsection_id="multi",
            ),
            TestQuestionBinding(
                question_id="q-moles",
                order=3,
                marks=4,
                negative_marks=1,
                section_id="chemistry",
                subsection_id="numeric",
            ),
        ),
        sections=(
            TestSection(
                id="physics",
                name="Physics",
                subsections=(
                    TestSubsection(id="mcq", name="Single Correct"),
                    TestSubsection(id="multi", name="Multiple Correct"),
                ),
            ),
            TestSection(
                id="chemistry",
                name="Chemistry",
                subsections=(TestSubsection(id="numeric", name="Numerical"),),
            ),
        ),
    )


@pytest.fixture
def question_bank(sample_questions) -> InMemoryQuestionBank:
    return InMemoryQuestionBank(sample_questions)


@pytest.fixture
def test_store(sample_test) -> InMemoryTestDefinitionStore:
    return InMemoryTestDefinitionStore([sample_test])


@pytest.fixture
def result_store() -> InMemoryResultStore:
    return InMemoryResultStore()


@pytest.fixture
async def session_manager(
    question_bank, test_store, result_store
) -> AsyncGenerator[TestSessionManager, None]:
    manager = TestSessionManager(
        question_bank, test_store, result_store, tick_interval=FAST_TICK_SECONDS
    )
    yield manager
    await manager.shutdown()


@pytest.fixture
def api_session_manager(question_bank, test_store, result_store) -> TestSessionManager:
    """Manager ticking in real seconds so API tests never hit the countdown."""
    return TestSessionManager(question_bank, test_store, result_store)


@pytest.fixture
def client(
    question_bank, test_store, result_store, api_session_manager
) -> Generator[TestClient, None, None]:
    """
    Test client wired to fresh in-memory stores.

    Used as a context manager so every request (and every countdown task it
    starts) runs on the same event loop, and the lifespan cancels timers on
    exit.
    """
    app.dependency_overrides[get_question_bank] = lambda: question_bank
    app.dependency_overrides[get_test_store] = lambda: test_store
    app.dependency_overrides[get_result_store] = lambda: result_store
    app.dependency_overrides[get_session_manager] = lambda: api_session_manager

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
