"""
CSV export of performance reports.

Layout:
    Student Performance Report
    Student Name: <name>
    Test: <title>                       (or "Report Type: Combined (All Tests)")
    Generated At: <ISO timestamp>
    <blank>
    SUBJECT-WISE ANALYSIS / TOPIC-WISE ANALYSIS / SUBTOPIC-WISE ANALYSIS
    tables, each followed by a blank row. Empty tables are omitted.

Accuracy and marks are written with two decimals.
"""
import csv
import io
import logging
from datetime import datetime
from typing import Any, List, Optional, Sequence

from app.core.datetime_utils import ensure_timezone_aware, utc_now
from app.core.performance_analysis import CombinedReportData, TopicStatistic

logger = logging.getLogger(__name__)

COUNT_HEADERS = [
    "Total Questions",
    "Correct",
    "Incorrect",
    "Unanswered",
    "Accuracy (%)",
    "Marks Obtained",
    "Marks Possible",
]


def _count_columns(stat: TopicStatistic) -> List[Any]:
    return [
        stat.total,
        stat.correct,
        stat.incorrect,
        stat.not_answered,
        f"{stat.accuracy:.2f}",
        f"{stat.marks_obtained:.2f}",
        f"{stat.marks_possible:.2f}",
    ]


def _write_table(
    writer: Any,
    title: str,
    key_headers: List[str],
    stats: Sequence[TopicStatistic],
) -> None:
    if not stats:
        return
    writer.writerow([title])
    writer.writerow(key_headers + COUNT_HEADERS)
    for stat in stats:
        keys = [stat.subject, stat.topic, stat.subtopic][: len(key_headers)]
        writer.writerow(keys + _count_columns(stat))
    writer.writerow([])


def generate_csv_report(
    report: CombinedReportData,
    student_name: str,
    test_title: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Render a report as CSV text.

    Args:
        report: Aggregated statistics to render
        student_name: Name printed in the header block
        test_title: Title for a single-test report; None for a combined one
        generated_at: Timestamp printed in the header; defaults to now

    Returns:
        CSV document as a string
    """
    generated_at = ensure_timezone_aware(generated_at or utc_now())

    output = io.StringIO()
    writer = csv.writer(output, lineterminator="\n")

    writer.writerow(["Student Performance Report"])
    writer.writerow([f"Student Name: {student_name}"])
    if test_title:
        writer.writerow([f"Test: {test_title}"])
    else:
        writer.writerow(["Report Type: Combined (All Tests)"])
    writer.writerow([f"Generated At: {generated_at.isoformat()}"])
    writer.writerow([])

    _write_table(writer, "SUBJECT-WISE ANALYSIS", ["Subject"], report.by_subject)
    _write_table(writer, "TOPIC-WISE ANALYSIS", ["Subject", "Topic"], report.by_topic)
    _write_table(
        writer,
        "SUBTOPIC-WISE ANALYSIS",
        ["Subject", "Topic", "Subtopic"],
        report.by_subtopic,
    )

    logger.debug(
        f"Generated CSV report for {student_name}: "
        f"{len(report.by_subject)} subjects, {len(report.by_topic)} topics, "
        f"{len(report.by_subtopic)} subtopics"
    )
    return output.getvalue()
