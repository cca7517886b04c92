"""
Analytics and event tracking for test sessions and API errors.

Events are emitted as structured log records; an external analytics sink
can be attached by handling the ``app.core.analytics`` logger.
"""
import logging
from enum import Enum
from typing import Any, Dict, Optional

from app.core.config import settings
from app.core.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Analytics event types."""

    # Test session events
    TEST_STARTED = "test.started"
    TEST_SUBMITTED = "test.submitted"
    TEST_AUTO_SUBMITTED = "test.auto_submitted"
    TEST_SUBMISSION_FAILED = "test.submission_failed"
    TEST_ALREADY_ATTEMPTED = "test.already_attempted"

    # Report events
    REPORT_EXPORTED = "report.exported"

    # Performance events
    API_ERROR = "api.error"


class AnalyticsTracker:
    """
    Analytics event tracker for logging and monitoring student actions.

    In production, this can be extended to send events to external
    analytics platforms.
    """

    @staticmethod
    def track_event(
        event_type: EventType,
        student_id: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Track an analytics event.

        Args:
            event_type: Type of event being tracked
            student_id: Optional student ID associated with the event
            properties: Optional dictionary of event properties

        Example:
            AnalyticsTracker.track_event(
                EventType.TEST_SUBMITTED,
                student_id="s-1",
                properties={"result_id": "abc", "correct_answers": 12}
            )
        """
        event_data = {
            "event": event_type.value,
            "timestamp": utc_now().isoformat(),
            "student_id": student_id,
            "properties": properties or {},
            "environment": settings.ENV,
        }

        logger.info(
            f"Analytics Event: {event_type.value}",
            extra={
                "event_data": event_data,
                "student_id": student_id,
            },
        )

    @staticmethod
    def track_test_started(
        student_id: str, test_id: str, session_id: str, question_count: int
    ) -> None:
        """Track test session start."""
        AnalyticsTracker.track_event(
            EventType.TEST_STARTED,
            student_id=student_id,
            properties={
                "test_id": test_id,
                "session_id": session_id,
                "question_count": question_count,
            },
        )

    @staticmethod
    def track_test_submitted(
        student_id: str,
        test_id: str,
        session_id: str,
        result_id: str,
        correct_answers: int,
        total_questions: int,
        time_spent_seconds: int,
        auto_submitted: bool = False,
    ) -> None:
        """Track a successful submission, manual or forced by the timer."""
        AnalyticsTracker.track_event(
            (
                EventType.TEST_AUTO_SUBMITTED
                if auto_submitted
                else EventType.TEST_SUBMITTED
            ),
            student_id=student_id,
            properties={
                "test_id": test_id,
                "session_id": session_id,
                "result_id": result_id,
                "correct_answers": correct_answers,
                "total_questions": total_questions,
                "time_spent_seconds": time_spent_seconds,
            },
        )

    @staticmethod
    def track_submission_failed(
        student_id: str, test_id: str, session_id: str, reason: str
    ) -> None:
        """Track a submission whose result could not be stored."""
        AnalyticsTracker.track_event(
            EventType.TEST_SUBMISSION_FAILED,
            student_id=student_id,
            properties={
                "test_id": test_id,
                "session_id": session_id,
                "reason": reason,
            },
        )

    @staticmethod
    def track_already_attempted(student_id: str, test_id: str, result_id: str) -> None:
        """Track a start request rejected because a result already exists."""
        AnalyticsTracker.track_event(
            EventType.TEST_ALREADY_ATTEMPTED,
            student_id=student_id,
            properties={"test_id": test_id, "result_id": result_id},
        )

    @staticmethod
    def track_report_exported(student_id: str, results_count: int) -> None:
        """Track a CSV report download."""
        AnalyticsTracker.track_event(
            EventType.REPORT_EXPORTED,
            student_id=student_id,
            properties={"results_count": results_count},
        )

    @staticmethod
    def track_api_error(
        method: str,
        path: str,
        error_type: str,
        error_message: str,
        student_id: Optional[str] = None,
    ) -> None:
        """Track API error."""
        AnalyticsTracker.track_event(
            EventType.API_ERROR,
            student_id=student_id,
            properties={
                "method": method,
                "path": path,
                "error_type": error_type,
                "error_message": error_message,
            },
        )
