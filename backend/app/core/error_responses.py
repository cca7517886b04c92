"""
Standardized error response messages and builders.

This module provides consistent error messages and HTTPException builders
for the entire API. Using these utilities ensures:

1. Consistent message format across all endpoints
2. User-friendly error messages without leaking implementation details
3. Clear separation of user-facing messages from log messages

Error Message Format Guidelines:
- Use sentence case (capitalize first letter only)
- End with a period for complete sentences
- Include relevant IDs in parentheses when helpful for debugging: "(ID: 123)"
- Use "Please try again later." for transient server errors

Usage:
    from app.core.error_responses import ErrorMessages, raise_not_found, raise_conflict

    if result is None:
        raise_not_found(ErrorMessages.result_not_found(result_id))

    raise_conflict(ErrorMessages.already_attempted(result_id="abc"))
"""

from typing import NoReturn, Optional

from fastapi import HTTPException, status


class ErrorMessages:
    """Centralized error message constants and templates.

    Naming Convention:
    - Constants: SCREAMING_SNAKE_CASE for static messages
    - Methods: snake_case for templates that accept parameters
    """

    # ==========================================================================
    # Not Found Errors (404)
    # ==========================================================================
    TEST_NOT_FOUND = "Test not found."
    TEST_SESSION_NOT_FOUND = "Test session not found."

    # ==========================================================================
    # Conflict Errors (409)
    # ==========================================================================
    SUBMISSION_IN_PROGRESS = (
        "A submission for this test session is already in progress."
    )
    SESSION_ALREADY_SUBMITTED = "Test session has already been submitted."

    # ==========================================================================
    # Bad Request Errors (400)
    # ==========================================================================
    NO_QUESTIONS_AVAILABLE = "This test has no questions available."
    SESSION_NOT_ACTIVE = "Only active test sessions can be modified."
    TIME_EXPIRED = (
        "Time is up for this test session; answers can no longer be changed. "
        "Submit to save them."
    )

    # ==========================================================================
    # Service Unavailable Errors (503)
    # ==========================================================================
    SUBMISSION_FAILED = (
        "Failed to save your test. Your answers are kept; please try again."
    )

    # ==========================================================================
    # Server Errors (500)
    # ==========================================================================
    INTERNAL_ERROR = "An unexpected error occurred. Please try again later."

    # ==========================================================================
    # Template Methods for Dynamic Messages
    # ==========================================================================
    @staticmethod
    def already_attempted(result_id: str) -> str:
        """Message for a start request on a test the student already took.

        Includes result_id so clients can redirect to the existing result.
        """
        return f"You have already attempted this test (Result ID: {result_id})."

    @staticmethod
    def active_session_exists(session_id: str) -> str:
        """Message for when the student already has a live session for the test."""
        return (
            f"A session for this test is already active (ID: {session_id}). "
            "Please continue or submit the existing session."
        )

    @staticmethod
    def invalid_question_index(index: int, question_count: int) -> str:
        """Message when navigation targets a slot that does not exist."""
        return (
            f"Question index {index} is out of range. "
            f"This test has {question_count} questions."
        )

    @staticmethod
    def unknown_section(section_id: str, subsection_id: Optional[str] = None) -> str:
        """Message when section navigation targets an empty or unknown group."""
        if subsection_id is None:
            return f"Section {section_id} has no questions."
        return f"Subsection {subsection_id} of section {section_id} has no questions."

    @staticmethod
    def session_submitted(result_id: Optional[str]) -> str:
        """Message when a session was submitted and only its result remains."""
        if result_id is None:
            return "Test session has already been submitted."
        return f"Test session has already been submitted. Result ID: {result_id}"

    @staticmethod
    def result_not_found(result_id: str) -> str:
        """Message when a specific test result is not found."""
        return f"Test result {result_id} not found."


# ==============================================================================
# HTTPException Builder Functions
# ==============================================================================


def raise_bad_request(detail: str) -> NoReturn:
    """Raise a 400 Bad Request exception.

    Use for client errors where the request is malformed or invalid.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 400 Bad Request
    """
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_not_found(detail: str) -> NoReturn:
    """Raise a 404 Not Found exception.

    Use when a requested resource doesn't exist.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 404 Not Found
    """
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )


def raise_conflict(detail: str) -> NoReturn:
    """Raise a 409 Conflict exception.

    Use when the request conflicts with current state (e.g., a second attempt).

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 409 Conflict
    """
    raise HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=detail,
    )


def raise_service_unavailable(detail: str) -> NoReturn:
    """Raise a 503 Service Unavailable exception.

    Use when a backing store failed and the client may retry.

    Args:
        detail: User-facing error message

    Raises:
        HTTPException: 503 Service Unavailable
    """
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
    )
