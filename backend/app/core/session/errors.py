"""
Exceptions raised by the test session engine.

Initialization errors are fatal to starting a session; the caller shows a
message and redirects. Submission errors are recoverable: answers are kept
and the student may retry.
"""
from typing import Optional


class SessionError(Exception):
    """Base class for all session engine errors."""


# Initialization errors


class SessionInitializationError(SessionError):
    """A session could not be started."""


class TestNotFoundError(SessionInitializationError):
    """The requested test does not exist."""

    __test__ = False

    def __init__(self, test_id: str):
        self.test_id = test_id
        super().__init__(f"Test {test_id} not found")


class NoQuestionsAvailableError(SessionInitializationError):
    """The test has no bindings, or none of its questions resolve."""

    def __init__(self, test_id: str, message: Optional[str] = None):
        self.test_id = test_id
        super().__init__(message or f"Test {test_id} has no questions")


class AlreadyAttemptedError(SessionInitializationError):
    """The student already has a result for this test."""

    def __init__(self, student_id: str, test_id: str, result_id: str):
        self.student_id = student_id
        self.test_id = test_id
        self.result_id = result_id
        super().__init__(
            f"Student {student_id} already attempted test {test_id} "
            f"(result {result_id})"
        )


class SessionAlreadyActiveError(SessionInitializationError):
    """The student already has a live session for this test."""

    def __init__(self, student_id: str, test_id: str, session_id: str):
        self.student_id = student_id
        self.test_id = test_id
        self.session_id = session_id
        super().__init__(
            f"Student {student_id} already has active session {session_id} "
            f"for test {test_id}"
        )


# Navigation errors


class InvalidSlotIndexError(SessionError, IndexError):
    """A slot index outside ``0 <= index < slot_count``."""

    def __init__(self, index: int, slot_count: int):
        self.index = index
        self.slot_count = slot_count
        super().__init__(f"Slot index {index} out of range (0..{slot_count - 1})")


class UnknownSectionError(SessionError):
    """No slot belongs to the requested section/subsection."""

    def __init__(self, section_id: str, subsection_id: Optional[str] = None):
        self.section_id = section_id
        self.subsection_id = subsection_id
        target = (
            f"section {section_id}"
            if subsection_id is None
            else f"subsection {section_id}/{subsection_id}"
        )
        super().__init__(f"No questions found in {target}")


# Lifecycle errors


class SessionNotFoundError(SessionError):
    """No live session with the given id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class SessionClosedError(SessionError):
    """The session has been submitted and can no longer change."""

    def __init__(
        self,
        session_id: str,
        result_id: Optional[str] = None,
        message: Optional[str] = None,
    ):
        self.session_id = session_id
        self.result_id = result_id
        super().__init__(message or f"Session {session_id} is already submitted")


class SessionAlreadySubmittedError(SessionClosedError):
    """A second submission for a session that already produced a result."""


class SessionExpiredError(SessionClosedError):
    """Time ran out; only the pending forced submission may be retried."""

    def __init__(self, session_id: str):
        super().__init__(
            session_id,
            message=f"Time is up for session {session_id}; answers are locked",
        )


class SubmissionInProgressError(SessionError):
    """A submission for this session is already pending."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Submission already in progress for session {session_id}")


# Submission errors


class SubmissionError(SessionError):
    """Persisting the result failed; the session remains open for retry."""

    def __init__(self, session_id: str, reason: str):
        self.session_id = session_id
        self.reason = reason
        super().__init__(f"Failed to submit session {session_id}: {reason}")
