"""
Pydantic schemas for performance report endpoints.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from app.core.performance_analysis import (
    AttemptSummary,
    CombinedReportData,
    SingleTestReport,
    TopicStatistic,
    classify_strength,
    get_strengths,
    get_strongest_weakest,
    get_weaknesses,
)
from libs.domain_types import PerformanceBand


class TopicStatisticResponse(BaseModel):
    """
    Schema for one bucket of the classification tree.

    ``band`` is derived from accuracy at response time using the configured
    strong/weak thresholds.
    """

    subject: str = Field(..., description="Subject (or section name)")
    topic: Optional[str] = Field(None, description="Topic, for topic and subtopic rows")
    subtopic: Optional[str] = Field(None, description="Subtopic, for subtopic rows")
    total: int = Field(..., ge=0)
    correct: int = Field(..., ge=0)
    incorrect: int = Field(..., ge=0)
    not_answered: int = Field(..., ge=0)
    answered: int = Field(..., ge=0)
    marks_obtained: float
    marks_possible: float
    accuracy: float = Field(..., description="Correct / total x 100, 2 decimals")
    score_percentage: float = Field(
        ..., description="Marks obtained / marks possible x 100, 2 decimals"
    )
    band: PerformanceBand = Field(..., description="strong, neutral or weak")

    @classmethod
    def from_statistic(cls, stat: TopicStatistic) -> "TopicStatisticResponse":
        return cls(
            subject=stat.subject,
            topic=stat.topic,
            subtopic=stat.subtopic,
            total=stat.total,
            correct=stat.correct,
            incorrect=stat.incorrect,
            not_answered=stat.not_answered,
            answered=stat.answered,
            marks_obtained=round(stat.marks_obtained, 2),
            marks_possible=round(stat.marks_possible, 2),
            accuracy=round(stat.accuracy, 2),
            score_percentage=round(stat.score_percentage, 2),
            band=classify_strength(stat.accuracy),
        )


def _statistics(stats: List[TopicStatistic]) -> List[TopicStatisticResponse]:
    return [TopicStatisticResponse.from_statistic(s) for s in stats]


class CombinedReportResponse(BaseModel):
    """Schema for a student's report across all attempts."""

    student_id: str = Field(..., description="Student ID")
    results_count: int = Field(..., description="Number of results aggregated")
    overall: TopicStatisticResponse
    by_subject: List[TopicStatisticResponse]
    by_topic: List[TopicStatisticResponse]
    by_subtopic: List[TopicStatisticResponse]
    strengths: List[TopicStatisticResponse] = Field(
        ..., description="Topics in the strong band, best first"
    )
    weaknesses: List[TopicStatisticResponse] = Field(
        ..., description="Topics in the weak band, worst first"
    )
    strongest_subject: Optional[str] = None
    weakest_subject: Optional[str] = None
    unresolved_question_ids: List[str] = Field(
        default_factory=list,
        description="Question IDs counted under the default classification",
    )

    @classmethod
    def from_report(
        cls, student_id: str, report: CombinedReportData
    ) -> "CombinedReportResponse":
        extremes = get_strongest_weakest(report.by_subject)
        return cls(
            student_id=student_id,
            results_count=report.results_count,
            overall=TopicStatisticResponse.from_statistic(report.overall),
            by_subject=_statistics(report.by_subject),
            by_topic=_statistics(report.by_topic),
            by_subtopic=_statistics(report.by_subtopic),
            strengths=_statistics(get_strengths(report.by_topic)),
            weaknesses=_statistics(get_weaknesses(report.by_topic)),
            strongest_subject=extremes["strongest"],
            weakest_subject=extremes["weakest"],
            unresolved_question_ids=report.unresolved_question_ids,
        )


class SingleTestReportResponse(BaseModel):
    """Schema for the report of one attempt."""

    result_id: str
    test_id: str
    test_title: str
    overall: TopicStatisticResponse
    by_subject: List[TopicStatisticResponse]
    by_topic: List[TopicStatisticResponse]
    by_subtopic: List[TopicStatisticResponse]
    by_section: Dict[str, TopicStatisticResponse] = Field(
        default_factory=dict, description="Totals per section, keyed by section ID"
    )
    strengths: List[TopicStatisticResponse]
    weaknesses: List[TopicStatisticResponse]
    unresolved_question_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_report(cls, single: SingleTestReport) -> "SingleTestReportResponse":
        report = single.report
        return cls(
            result_id=single.result_id,
            test_id=single.test_id,
            test_title=single.test_title,
            overall=TopicStatisticResponse.from_statistic(report.overall),
            by_subject=_statistics(report.by_subject),
            by_topic=_statistics(report.by_topic),
            by_subtopic=_statistics(report.by_subtopic),
            by_section={
                section_id: TopicStatisticResponse.from_statistic(stat)
                for section_id, stat in single.by_section.items()
            },
            strengths=_statistics(get_strengths(report.by_topic)),
            weaknesses=_statistics(get_weaknesses(report.by_topic)),
            unresolved_question_ids=report.unresolved_question_ids,
        )


class AttemptSummaryResponse(BaseModel):
    """Schema for one row of the attempt history."""

    result_id: str
    test_id: str
    test_title: str
    submitted_at: datetime
    score_percentage: float
    accuracy: float
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    not_answered: int
    total_marks_obtained: float
    total_marks_possible: float
    time_spent_seconds: int
    auto_submitted: bool = False

    @classmethod
    def from_summary(cls, summary: AttemptSummary) -> "AttemptSummaryResponse":
        return cls(
            result_id=summary.result_id,
            test_id=summary.test_id,
            test_title=summary.test_title,
            submitted_at=summary.submitted_at,
            score_percentage=round(summary.score_percentage, 2),
            accuracy=round(summary.accuracy, 2),
            total_questions=summary.total_questions,
            correct_answers=summary.correct_answers,
            incorrect_answers=summary.incorrect_answers,
            not_answered=summary.not_answered,
            total_marks_obtained=summary.total_marks_obtained,
            total_marks_possible=summary.total_marks_possible,
            time_spent_seconds=summary.time_spent_seconds,
            auto_submitted=summary.auto_submitted,
        )


class AttemptHistoryResponse(BaseModel):
    """Schema for a student's attempt history, newest first."""

    student_id: str
    attempts: List[AttemptSummaryResponse]
    total_count: int
