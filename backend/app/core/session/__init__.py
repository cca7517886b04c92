"""
Test session engine: slot state machine, countdown timer and the session
manager that ties them to scoring and the result store.
"""
from app.core.session.engine import SessionSnapshot, TestSession, TestSessionManager
from app.core.session.errors import (
    AlreadyAttemptedError,
    InvalidSlotIndexError,
    NoQuestionsAvailableError,
    SessionAlreadyActiveError,
    SessionAlreadySubmittedError,
    SessionClosedError,
    SessionError,
    SessionExpiredError,
    SessionInitializationError,
    SessionNotFoundError,
    SubmissionError,
    SubmissionInProgressError,
    TestNotFoundError,
    UnknownSectionError,
)
from app.core.session.state_machine import SessionSlot, SessionState, resolve_status
from app.core.session.submission import assemble_test_result
from app.core.session.timer import CountdownTimer

__all__ = [
    "AlreadyAttemptedError",
    "CountdownTimer",
    "InvalidSlotIndexError",
    "NoQuestionsAvailableError",
    "SessionAlreadyActiveError",
    "SessionAlreadySubmittedError",
    "SessionClosedError",
    "SessionError",
    "SessionExpiredError",
    "SessionInitializationError",
    "SessionNotFoundError",
    "SessionSlot",
    "SessionSnapshot",
    "SessionState",
    "SubmissionError",
    "SubmissionInProgressError",
    "TestNotFoundError",
    "TestSession",
    "TestSessionManager",
    "UnknownSectionError",
    "assemble_test_result",
    "resolve_status",
]
