"""
TestSessionManager: orchestrator for timed test attempts.

Owns the live sessions of the process. Starting a session runs the
pre-session guard, resolves the test and its questions, builds the slot
arena and arms the countdown. Submitting a session (manually or when the
countdown hits zero) assembles the result and hands it to the result store
exactly once.

Concurrency model: everything runs on one asyncio event loop. The only
suspend point inside a submission is the result store call; while it is
pending the session is ``submitting`` and further submissions are rejected.

Lifecycle: ``active`` -> ``submitting`` -> ``submitted``. A failed manual
submission goes back to ``active``. A failed forced submission goes to
``expired``: the result assembled at expiry is kept, answers are locked and
only persisting that result may be retried. Submitted sessions are dropped
from memory; a bounded lookup maps their IDs to result IDs.
"""
import functools
import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from app.core.analytics import AnalyticsTracker
from app.core.config import settings
from app.core.datetime_utils import ensure_timezone_aware, utc_now
from app.core.graceful_failure import graceful_failure
from app.core.session.errors import (
    AlreadyAttemptedError,
    NoQuestionsAvailableError,
    SessionAlreadyActiveError,
    SessionAlreadySubmittedError,
    SessionClosedError,
    SessionExpiredError,
    SessionNotFoundError,
    SubmissionError,
    SubmissionInProgressError,
    TestNotFoundError,
)
from app.core.session.state_machine import SessionSlot, SessionState
from app.core.session.submission import assemble_test_result
from app.core.session.timer import CountdownTimer
from app.models.models import (
    CapturedAnswer,
    QuestionDefinition,
    TestDefinition,
    TestResult,
)
from app.services.stores import QuestionBank, ResultStore, TestDefinitionStore
from libs.domain_types import SessionStatus, SlotStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of a session for presentation layers."""

    session_id: str
    test_id: str
    test_title: str
    student_id: str
    status: SessionStatus
    current_index: int
    slots: Tuple[SessionSlot, ...]
    status_counts: Dict[SlotStatus, int]
    remaining_seconds: int
    started_at: datetime
    result_id: Optional[str] = None


@dataclass
class TestSession:
    """
    One student's live attempt at one test.

    Mutations are only allowed while the session is ``active``; once a
    submission is pending or done, or time has run out, the slot arena is
    frozen.
    """

    __test__ = False

    id: str
    student_id: str
    test: TestDefinition
    questions: Dict[str, QuestionDefinition]
    state: SessionState
    started_at: datetime
    timer: CountdownTimer = field(repr=False)
    status: SessionStatus = SessionStatus.ACTIVE
    result: Optional[TestResult] = None
    # Assembled when time ran out but not yet persisted
    pending_result: Optional[TestResult] = None

    @property
    def remaining_seconds(self) -> int:
        if self.status == SessionStatus.EXPIRED:
            return 0
        return self.timer.remaining_seconds

    def remaining_wall_clock_seconds(self, now: datetime) -> int:
        """Seconds left on the test duration measured from ``started_at``."""
        elapsed = (ensure_timezone_aware(now) - self.started_at).total_seconds()
        return max(0, int(self.test.duration_seconds - elapsed))

    def _ensure_active(self) -> None:
        if self.status == SessionStatus.SUBMITTED:
            raise SessionClosedError(self.id, self.result.id if self.result else None)
        if self.status == SessionStatus.EXPIRED:
            raise SessionExpiredError(self.id)
        if self.status == SessionStatus.SUBMITTING:
            raise SubmissionInProgressError(self.id)

    def navigate(self, index: int) -> None:
        self._ensure_active()
        self.state.navigate(index)

    def next(self) -> None:
        self._ensure_active()
        self.state.next()

    def previous(self) -> None:
        self._ensure_active()
        self.state.previous()

    def capture_answer(self, index: int, value: CapturedAnswer) -> None:
        self._ensure_active()
        self.state.capture_answer(index, value)

    def clear_answer(self, index: int) -> None:
        self._ensure_active()
        self.state.clear_answer(index)

    def toggle_review(self, index: int) -> None:
        self._ensure_active()
        self.state.toggle_review(index)

    def save_and_next(self) -> None:
        self._ensure_active()
        self.state.save_and_next()

    def mark_for_review_and_next(self) -> None:
        self._ensure_active()
        self.state.mark_for_review_and_next()

    def go_to_section(
        self, section_id: str, subsection_id: Optional[str] = None
    ) -> None:
        self._ensure_active()
        if subsection_id is None:
            self.state.go_to_section(section_id)
        else:
            self.state.go_to_subsection(section_id, subsection_id)

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.id,
            test_id=self.test.id,
            test_title=self.test.title,
            student_id=self.student_id,
            status=self.status,
            current_index=self.state.current_index,
            slots=tuple(replace(slot) for slot in self.state.slots),
            status_counts=self.state.status_counts(),
            remaining_seconds=self.remaining_seconds,
            started_at=self.started_at,
            result_id=self.result.id if self.result else None,
        )


class TestSessionManager:
    """
    Orchestrates timed test sessions.

    Usage:
        manager = TestSessionManager(question_bank, test_store, result_store)
        session = await manager.start_session("student-1", "test-1")
        session.capture_answer(0, 2)
        result = await manager.submit(session.id)
    """

    __test__ = False

    def __init__(
        self,
        question_bank: QuestionBank,
        test_store: TestDefinitionStore,
        result_store: ResultStore,
        *,
        tick_interval: Optional[float] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.question_bank = question_bank
        self.test_store = test_store
        self.result_store = result_store
        self.tick_interval = (
            tick_interval
            if tick_interval is not None
            else settings.TIMER_TICK_INTERVAL_SECONDS
        )
        self._clock = clock
        self._sessions: Dict[str, TestSession] = {}
        self._active: Dict[Tuple[str, str], str] = {}
        self._completed: "OrderedDict[str, str]" = OrderedDict()
        self.completed_lookup_size = settings.COMPLETED_SESSION_LOOKUP_SIZE

        logger.info(
            f"TestSessionManager initialized: tick_interval={self.tick_interval}s"
        )

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    async def start_session(
        self, student_id: str, test_id: str, *, start_timer: bool = True
    ) -> TestSession:
        """
        Start a new attempt for (student, test).

        Args:
            student_id: Student starting the test
            test_id: Test to take
            start_timer: Arm the countdown immediately (tests may drive
                ``session.timer.tick()`` by hand instead)

        Returns:
            The new active TestSession

        Raises:
            AlreadyAttemptedError: A result already exists for the pair
            SessionAlreadyActiveError: The student has a live session for the test
            TestNotFoundError: Unknown test id
            NoQuestionsAvailableError: The test has no resolvable questions
        """
        existing = await self.result_store.find_existing_result(student_id, test_id)
        if existing is not None:
            logger.info(
                f"Rejected start for student {student_id} test {test_id}: "
                f"already attempted (result {existing.id})"
            )
            with graceful_failure("track already attempted", logger):
                AnalyticsTracker.track_already_attempted(
                    student_id, test_id, existing.id
                )
            raise AlreadyAttemptedError(student_id, test_id, existing.id)

        self._ensure_no_active_session(student_id, test_id)

        test = await self.test_store.get_test(test_id)
        if test is None:
            raise TestNotFoundError(test_id)

        bindings = test.ordered_bindings()
        if not bindings:
            raise NoQuestionsAvailableError(test_id)

        questions = await self.question_bank.get_questions(
            binding.question_id for binding in bindings
        )
        missing = [b.question_id for b in bindings if b.question_id not in questions]
        if missing:
            logger.warning(
                f"Test {test_id}: skipping {len(missing)} unresolvable question(s): "
                f"{', '.join(missing)}"
            )
        resolved = [b for b in bindings if b.question_id in questions]
        if not resolved:
            raise NoQuestionsAvailableError(
                test_id, f"None of the questions of test {test_id} could be resolved"
            )

        # Re-check after the awaits above; nothing suspends from here on
        self._ensure_no_active_session(student_id, test_id)

        session_id = uuid.uuid4().hex
        session = TestSession(
            id=session_id,
            student_id=student_id,
            test=test,
            questions=questions,
            state=SessionState.from_bindings(resolved),
            started_at=ensure_timezone_aware(self._clock()),
            timer=CountdownTimer(
                test.duration_seconds,
                on_expire=functools.partial(self._auto_submit, session_id),
                interval=self.tick_interval,
                name=session_id,
            ),
        )
        self._sessions[session_id] = session
        self._active[(student_id, test_id)] = session_id

        if start_timer:
            session.timer.start()

        logger.info(
            f"Started session {session_id} for student {student_id} test {test_id}: "
            f"{len(resolved)} questions, {test.duration_minutes} minutes"
        )
        with graceful_failure("track test started", logger):
            AnalyticsTracker.track_test_started(
                student_id, test_id, session_id, len(resolved)
            )
        return session

    def _ensure_no_active_session(self, student_id: str, test_id: str) -> None:
        session_id = self._active.get((student_id, test_id))
        if session_id is not None:
            raise SessionAlreadyActiveError(student_id, test_id, session_id)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> TestSession:
        """
        Live session by id.

        Raises:
            SessionClosedError: The session was submitted (carries the result id)
            SessionNotFoundError: Unknown or forgotten session id
        """
        session = self._sessions.get(session_id)
        if session is None:
            result_id = self._completed.get(session_id)
            if result_id is not None:
                raise SessionClosedError(session_id, result_id)
            raise SessionNotFoundError(session_id)
        return session

    def completed_result_id(self, session_id: str) -> Optional[str]:
        """Result id of a submitted session, if it is still remembered."""
        return self._completed.get(session_id)

    def _remember_completed(self, session_id: str, result_id: str) -> None:
        if self.completed_lookup_size <= 0:
            return
        self._completed[session_id] = result_id
        while len(self._completed) > self.completed_lookup_size:
            self._completed.popitem(last=False)

    def active_sessions(self) -> List[TestSession]:
        return [self._sessions[session_id] for session_id in self._active.values()]

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self, session_id: str, *, forced: bool = False) -> TestResult:
        """
        Assemble and persist the result of a session.

        An expired session is not re-scored: the result assembled when time
        ran out is persisted as is.

        Args:
            session_id: Session to submit
            forced: True when the countdown expired (no confirmation step)

        Returns:
            The stored TestResult

        Raises:
            SessionNotFoundError: Unknown session id
            SessionAlreadySubmittedError: The session already produced a result
            SubmissionInProgressError: Another submission is pending
            SubmissionError: The result store failed; a manual submission
                leaves the session active with a re-armed countdown, a forced
                one leaves it expired with its result kept for retry
        """
        result_id = self._completed.get(session_id)
        if result_id is not None:
            raise SessionAlreadySubmittedError(session_id, result_id)
        session = self.get_session(session_id)
        if session.status == SessionStatus.SUBMITTED:
            raise SessionAlreadySubmittedError(session_id)
        if session.status == SessionStatus.SUBMITTING:
            raise SubmissionInProgressError(session_id)

        expired = forced or session.status == SessionStatus.EXPIRED
        session.timer.cancel()
        session.status = SessionStatus.SUBMITTING
        submitted_at = ensure_timezone_aware(self._clock())

        result = session.pending_result
        try:
            if result is None:
                result = assemble_test_result(
                    test=session.test,
                    student_id=session.student_id,
                    slots=session.state.slots,
                    questions=session.questions,
                    started_at=session.started_at,
                    submitted_at=submitted_at,
                    auto_submitted=forced,
                )
            await self.result_store.persist_result(result)
        except Exception as e:
            self._release_after_failure(session, submitted_at, e, expired, result)
            raise SubmissionError(session_id, str(e)) from e

        session.status = SessionStatus.SUBMITTED
        session.result = result
        session.pending_result = None
        self._active.pop((session.student_id, session.test.id), None)
        self._sessions.pop(session_id, None)
        self._remember_completed(session_id, result.id)

        logger.info(
            f"Session {session_id} "
            f"{'auto-submitted' if result.auto_submitted else 'submitted'}: "
            f"result {result.id}, {result.correct_answers}/{result.total_questions} "
            f"correct, marks "
            f"{result.total_marks_obtained}/{result.total_marks_possible}"
        )
        with graceful_failure(
            "track test submitted", logger, context={"session_id": session_id}
        ):
            AnalyticsTracker.track_test_submitted(
                student_id=session.student_id,
                test_id=session.test.id,
                session_id=session_id,
                result_id=result.id,
                correct_answers=result.correct_answers,
                total_questions=result.total_questions,
                time_spent_seconds=result.time_spent_seconds,
                auto_submitted=result.auto_submitted,
            )
        return result

    def _release_after_failure(
        self,
        session: TestSession,
        submitted_at: datetime,
        error: Exception,
        expired: bool,
        result: Optional[TestResult],
    ) -> None:
        remaining = min(
            session.remaining_seconds,
            session.remaining_wall_clock_seconds(submitted_at),
        )
        if expired or remaining <= 0:
            # Time is up: answers stay locked, only persisting may be retried
            session.status = SessionStatus.EXPIRED
            session.pending_result = result
            remaining = 0
        else:
            session.status = SessionStatus.ACTIVE
            session.timer.rearm(remaining)

        logger.error(
            f"Submission failed for session {session.id} "
            f"({session.status.value}, {remaining}s remaining): {error}",
            exc_info=True,
        )
        with graceful_failure(
            "track submission failure", logger, context={"session_id": session.id}
        ):
            AnalyticsTracker.track_submission_failed(
                session.student_id, session.test.id, session.id, str(error)
            )

    async def _auto_submit(self, session_id: str) -> None:
        """Expiry callback: force submission of a session whose time ran out."""
        logger.info(f"Time expired for session {session_id}, auto-submitting")
        try:
            await self.submit(session_id, forced=True)
        except (
            SessionClosedError,
            SessionNotFoundError,
            SubmissionInProgressError,
        ) as e:
            logger.info(f"Auto-submit skipped for session {session_id}: {e}")
        except SubmissionError as e:
            logger.warning(
                f"Auto-submit for session {session_id} failed, result kept "
                f"for a retry: {e.reason}"
            )

    async def shutdown(self) -> None:
        """Cancel every running countdown and drop all live sessions."""
        for session in self._sessions.values():
            session.timer.cancel()
        logger.info(f"TestSessionManager shut down ({len(self._active)} active)")
        self._sessions.clear()
        self._active.clear()
