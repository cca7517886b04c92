"""
Test session endpoints: start, navigate, answer, submit, results.
"""
import logging
from typing import NoReturn

from fastapi import APIRouter, Depends

from app.api.deps import get_result_store, get_session_manager
from app.core.error_responses import (
    ErrorMessages,
    raise_bad_request,
    raise_conflict,
    raise_not_found,
    raise_service_unavailable,
)
from app.core.session import (
    AlreadyAttemptedError,
    InvalidSlotIndexError,
    NoQuestionsAvailableError,
    SessionAlreadyActiveError,
    SessionAlreadySubmittedError,
    SessionClosedError,
    SessionError,
    SessionExpiredError,
    SessionNotFoundError,
    SubmissionError,
    SubmissionInProgressError,
    TestNotFoundError,
    TestSession,
    TestSessionManager,
    UnknownSectionError,
)
from app.schemas.test_sessions import (
    AnswerRequest,
    SectionNavigationRequest,
    SlotIndexRequest,
    StartTestRequest,
    TestResultResponse,
    TestSessionSnapshotResponse,
)
from app.services.stores import ResultStore

router = APIRouter()
logger = logging.getLogger(__name__)


def raise_for_session_error(exc: SessionError) -> NoReturn:
    """Translate a session engine error into the matching HTTP error."""
    if isinstance(exc, SessionNotFoundError):
        raise_not_found(ErrorMessages.TEST_SESSION_NOT_FOUND)
    if isinstance(exc, TestNotFoundError):
        raise_not_found(ErrorMessages.TEST_NOT_FOUND)
    if isinstance(exc, AlreadyAttemptedError):
        raise_conflict(ErrorMessages.already_attempted(exc.result_id))
    if isinstance(exc, SessionAlreadyActiveError):
        raise_conflict(ErrorMessages.active_session_exists(exc.session_id))
    if isinstance(exc, NoQuestionsAvailableError):
        raise_bad_request(ErrorMessages.NO_QUESTIONS_AVAILABLE)
    if isinstance(exc, InvalidSlotIndexError):
        raise_bad_request(
            ErrorMessages.invalid_question_index(exc.index, exc.slot_count)
        )
    if isinstance(exc, UnknownSectionError):
        raise_bad_request(
            ErrorMessages.unknown_section(exc.section_id, exc.subsection_id)
        )
    if isinstance(exc, SessionExpiredError):
        raise_bad_request(ErrorMessages.TIME_EXPIRED)
    if isinstance(exc, SessionAlreadySubmittedError):
        raise_conflict(ErrorMessages.SESSION_ALREADY_SUBMITTED)
    if isinstance(exc, SessionClosedError):
        raise_bad_request(ErrorMessages.SESSION_NOT_ACTIVE)
    if isinstance(exc, SubmissionInProgressError):
        raise_conflict(ErrorMessages.SUBMISSION_IN_PROGRESS)
    if isinstance(exc, SubmissionError):
        raise_service_unavailable(ErrorMessages.SUBMISSION_FAILED)
    raise exc


def _snapshot(session: TestSession) -> TestSessionSnapshotResponse:
    return TestSessionSnapshotResponse.from_snapshot(session.snapshot())


def _get_session(manager: TestSessionManager, session_id: str) -> TestSession:
    try:
        return manager.get_session(session_id)
    except SessionError as e:
        raise_for_session_error(e)


@router.post("/start", response_model=TestSessionSnapshotResponse)
async def start_test(
    request: StartTestRequest,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """
    Start a timed test session.

    Rejects the request if the student already has a result for the test
    (the error carries the existing result ID so clients can redirect) or
    already has a live session for it.

    Returns:
        Initial session snapshot; the countdown is already running
    """
    try:
        session = await manager.start_session(request.student_id, request.test_id)
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.get("/session/{session_id}", response_model=TestSessionSnapshotResponse)
async def get_test_session(
    session_id: str,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """
    Get the current state of a session, including remaining seconds.

    Submitted sessions are no longer kept; the 409 response names the result
    to load instead.
    """
    try:
        session = manager.get_session(session_id)
    except SessionClosedError as e:
        raise_conflict(ErrorMessages.session_submitted(e.result_id))
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post(
    "/session/{session_id}/navigate", response_model=TestSessionSnapshotResponse
)
async def navigate(
    session_id: str,
    request: SlotIndexRequest,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Jump to a question by index."""
    session = _get_session(manager, session_id)
    try:
        session.navigate(request.index)
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post("/session/{session_id}/next", response_model=TestSessionSnapshotResponse)
async def next_question(
    session_id: str,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Move to the next question (no-op on the last one)."""
    session = _get_session(manager, session_id)
    try:
        session.next()
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post(
    "/session/{session_id}/previous", response_model=TestSessionSnapshotResponse
)
async def previous_question(
    session_id: str,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Move to the previous question (no-op on the first one)."""
    session = _get_session(manager, session_id)
    try:
        session.previous()
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post("/session/{session_id}/answer", response_model=TestSessionSnapshotResponse)
async def capture_answer(
    session_id: str,
    request: AnswerRequest,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """
    Capture an answer for a question.

    The answer is stored as given; malformed numeric text is accepted here
    and scored as incorrect at submission.
    """
    session = _get_session(manager, session_id)
    try:
        session.capture_answer(request.index, request.answer)
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post("/session/{session_id}/clear", response_model=TestSessionSnapshotResponse)
async def clear_answer(
    session_id: str,
    request: SlotIndexRequest,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Remove the captured answer of a question."""
    session = _get_session(manager, session_id)
    try:
        session.clear_answer(request.index)
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post("/session/{session_id}/review", response_model=TestSessionSnapshotResponse)
async def toggle_review(
    session_id: str,
    request: SlotIndexRequest,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Toggle the review flag of a question."""
    session = _get_session(manager, session_id)
    try:
        session.toggle_review(request.index)
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post(
    "/session/{session_id}/save-next", response_model=TestSessionSnapshotResponse
)
async def save_and_next(
    session_id: str,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Keep the current answer and move to the next question."""
    session = _get_session(manager, session_id)
    try:
        session.save_and_next()
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post(
    "/session/{session_id}/review-next", response_model=TestSessionSnapshotResponse
)
async def mark_for_review_and_next(
    session_id: str,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Toggle review on the current question and move to the next one."""
    session = _get_session(manager, session_id)
    try:
        session.mark_for_review_and_next()
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post(
    "/session/{session_id}/section", response_model=TestSessionSnapshotResponse
)
async def go_to_section(
    session_id: str,
    request: SectionNavigationRequest,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """Jump to the first question of a section or subsection."""
    session = _get_session(manager, session_id)
    try:
        session.go_to_section(request.section_id, request.subsection_id)
    except SessionError as e:
        raise_for_session_error(e)
    return _snapshot(session)


@router.post("/session/{session_id}/submit", response_model=TestResultResponse)
async def submit_test(
    session_id: str,
    manager: TestSessionManager = Depends(get_session_manager),
):
    """
    Submit a session.

    The countdown stops immediately. If the result store fails the request
    returns 503 so the client can retry: before the deadline the session
    stays active with its answers, after it the session is expired and the
    retry saves the result assembled when time ran out.
    """
    try:
        result = await manager.submit(session_id)
    except SessionError as e:
        raise_for_session_error(e)
    return TestResultResponse.from_result(result)


@router.get("/results/{result_id}", response_model=TestResultResponse)
async def get_test_result(
    result_id: str,
    result_store: ResultStore = Depends(get_result_store),
):
    """Get a submitted result with its scored responses."""
    result = await result_store.get_result(result_id)
    if result is None:
        raise_not_found(ErrorMessages.result_not_found(result_id))
    return TestResultResponse.from_result(result)
