"""
Performance report endpoints: single-test report, combined report,
attempt history and CSV export.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.api.deps import get_question_bank, get_result_store, get_test_store
from app.core.analytics import AnalyticsTracker
from app.core.error_responses import ErrorMessages, raise_not_found
from app.core.graceful_failure import graceful_failure
from app.core.performance_analysis import (
    aggregate_results,
    analyze_test_result,
    build_attempt_history,
    collect_binding_marks,
    collect_report_questions,
)
from app.core.report_export import generate_csv_report
from app.schemas.reports import (
    AttemptHistoryResponse,
    AttemptSummaryResponse,
    CombinedReportResponse,
    SingleTestReportResponse,
)
from app.services.stores import QuestionBank, ResultStore, TestDefinitionStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/results/{result_id}", response_model=SingleTestReportResponse)
async def get_test_report(
    result_id: str,
    result_store: ResultStore = Depends(get_result_store),
    question_bank: QuestionBank = Depends(get_question_bank),
    test_store: TestDefinitionStore = Depends(get_test_store),
):
    """
    Subject/topic/subtopic and per-section analysis of one attempt.

    Section names come from the current test definition; if the test no
    longer exists sections are labelled by ID.
    """
    result = await result_store.get_result(result_id)
    if result is None:
        raise_not_found(ErrorMessages.result_not_found(result_id))

    questions = await collect_report_questions(question_bank, [result])
    binding_marks = await collect_binding_marks(test_store, [result])
    test = await test_store.get_test(result.test_id)
    sections = test.sections if test is not None else ()

    return SingleTestReportResponse.from_report(
        analyze_test_result(result, questions, sections, binding_marks)
    )


@router.get(
    "/students/{student_id}/combined", response_model=CombinedReportResponse
)
async def get_combined_report(
    student_id: str,
    result_store: ResultStore = Depends(get_result_store),
    question_bank: QuestionBank = Depends(get_question_bank),
    test_store: TestDefinitionStore = Depends(get_test_store),
):
    """
    Analysis across every attempt of a student, with strengths and
    weaknesses. A student with no attempts gets an empty report.
    """
    results = await result_store.fetch_results_for_student(student_id)
    questions = await collect_report_questions(question_bank, results)
    binding_marks = await collect_binding_marks(test_store, results)
    report = aggregate_results(results, questions, binding_marks)

    logger.info(
        f"Combined report for student {student_id}: "
        f"{report.results_count} results, {report.overall.total} responses"
    )
    return CombinedReportResponse.from_report(student_id, report)


@router.get(
    "/students/{student_id}/history", response_model=AttemptHistoryResponse
)
async def get_attempt_history(
    student_id: str,
    result_store: ResultStore = Depends(get_result_store),
):
    """Per-attempt summaries, newest submission first."""
    results = await result_store.fetch_results_for_student(student_id)
    attempts = [
        AttemptSummaryResponse.from_summary(summary)
        for summary in build_attempt_history(results)
    ]
    return AttemptHistoryResponse(
        student_id=student_id, attempts=attempts, total_count=len(attempts)
    )


@router.get("/students/{student_id}/combined.csv")
async def export_combined_report(
    student_id: str,
    student_name: Optional[str] = Query(
        None, description="Name printed in the report header (defaults to the ID)"
    ),
    result_store: ResultStore = Depends(get_result_store),
    question_bank: QuestionBank = Depends(get_question_bank),
    test_store: TestDefinitionStore = Depends(get_test_store),
):
    """Download the combined report as CSV."""
    results = await result_store.fetch_results_for_student(student_id)
    questions = await collect_report_questions(question_bank, results)
    binding_marks = await collect_binding_marks(test_store, results)
    report = aggregate_results(results, questions, binding_marks)

    content = generate_csv_report(report, student_name=student_name or student_id)

    with graceful_failure(
        "track report export", logger, context={"student_id": student_id}
    ):
        AnalyticsTracker.track_report_exported(student_id, report.results_count)

    filename = f"performance-report-{student_id}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
