"""
Pydantic schemas for request/response validation.
"""
from .reports import (
    AttemptHistoryResponse,
    AttemptSummaryResponse,
    CombinedReportResponse,
    SingleTestReportResponse,
    TopicStatisticResponse,
)
from .test_sessions import (
    AnswerRequest,
    ResponseRecordResponse,
    SectionNavigationRequest,
    SlotIndexRequest,
    SlotResponse,
    StartTestRequest,
    StatusCountsResponse,
    TestResultResponse,
    TestSessionSnapshotResponse,
)

__all__ = [
    "AnswerRequest",
    "AttemptHistoryResponse",
    "AttemptSummaryResponse",
    "CombinedReportResponse",
    "ResponseRecordResponse",
    "SectionNavigationRequest",
    "SingleTestReportResponse",
    "SlotIndexRequest",
    "SlotResponse",
    "StartTestRequest",
    "StatusCountsResponse",
    "TestResultResponse",
    "TestSessionSnapshotResponse",
    "TopicStatisticResponse",
]
