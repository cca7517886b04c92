"""
Performance analysis: rolls scored responses up into subject, topic and
subtopic statistics.

The same fold serves a single attempt (result page) and every attempt of a
student (combined report). The functions here are pure; question lookups are
done up front by ``collect_report_questions`` so the fold never awaits.

Classification
==============
Each response is bucketed by its question's (subject, topic, subtopic) tags.
Missing tags fall back to DEFAULT_CLASSIFICATION. A response whose question
no longer resolves is still counted, under the default classification at
every level, and its id is reported in ``unresolved_question_ids``.

Marks possible
==============
Per response, the first positive value of: the marks recorded on the
response, the marks of the question's binding in the result's test, the
question's default marks, ``|marks_obtained|``, then 1. Binding marks are
looked up front by ``collect_binding_marks``.

Strength bands
==============
Accuracy >= STRONG_ACCURACY_THRESHOLD is strong, below
WEAK_ACCURACY_THRESHOLD is weak, anything in between is neutral. Bands are
computed on demand and never stored on a statistic.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from app.core.config import settings
from app.core.datetime_utils import to_instant
from app.models.models import (
    QuestionDefinition,
    ResponseRecord,
    TestResult,
    TestSection,
)
from app.services.stores import QuestionBank, TestDefinitionStore
from libs.domain_types import PerformanceBand

logger = logging.getLogger(__name__)

OVERALL_LABEL = "Overall"

ClassificationKey = Tuple[str, str, str]

# Per-test marks keyed by (test_id, question_id)
BindingMarks = Mapping[Tuple[str, str], float]


def _percentage(numerator: float, denominator: float) -> float:
    if denominator <= 0:
        return 0.0
    return numerator / denominator * 100


@dataclass
class TopicStatistic:
    """
    Counters for one bucket of the classification tree.

    ``topic`` and ``subtopic`` are None for buckets above that level.
    ``accuracy`` is filled in once the fold is complete.
    """

    subject: str
    topic: Optional[str] = None
    subtopic: Optional[str] = None
    total: int = 0
    correct: int = 0
    incorrect: int = 0
    not_answered: int = 0
    marks_obtained: float = 0.0
    marks_possible: float = 0.0
    accuracy: float = 0.0

    @property
    def answered(self) -> int:
        return self.correct + self.incorrect

    @property
    def score_percentage(self) -> float:
        return _percentage(self.marks_obtained, self.marks_possible)

    @property
    def label(self) -> str:
        """Most specific name of the bucket."""
        return self.subtopic or self.topic or self.subject

    def record(self, response: ResponseRecord, marks_possible: float) -> None:
        """Fold one response into the counters."""
        self.total += 1
        if not response.is_answered:
            self.not_answered += 1
        elif response.is_correct:
            self.correct += 1
        else:
            self.incorrect += 1
        self.marks_obtained += response.marks_obtained
        self.marks_possible += marks_possible

    def finalize(self) -> None:
        self.accuracy = _percentage(self.correct, self.total)


@dataclass
class CombinedReportData:
    """Hierarchical statistics for one or many results."""

    overall: TopicStatistic
    by_subject: List[TopicStatistic] = field(default_factory=list)
    by_topic: List[TopicStatistic] = field(default_factory=list)
    by_subtopic: List[TopicStatistic] = field(default_factory=list)
    results_count: int = 0
    unresolved_question_ids: List[str] = field(default_factory=list)


@dataclass
class SingleTestReport:
    """
    Statistics for one attempt, plus a per-section breakdown.

    ``by_section`` is keyed by section id; each statistic's ``subject``
    carries the section's display name.
    """

    result_id: str
    test_id: str
    test_title: str
    report: CombinedReportData
    by_section: Dict[str, TopicStatistic] = field(default_factory=dict)


@dataclass(frozen=True)
class AttemptSummary:
    """One row of a student's attempt history."""

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


def resolve_classification(
    question: Optional[QuestionDefinition],
) -> ClassificationKey:
    """
    Classification tags of a question, with missing tags defaulted.

    Args:
        question: Resolved question, or None if it could not be resolved

    Returns:
        (subject, topic, subtopic)
    """
    default = settings.DEFAULT_CLASSIFICATION
    if question is None:
        return (default, default, default)
    return (
        question.subject or default,
        question.topic or default,
        question.subtopic or default,
    )


def resolve_marks_possible(
    response: ResponseRecord,
    question: Optional[QuestionDefinition],
    binding_marks: Optional[float] = None,
) -> float:
    """Marks a response could have earned, using the fallback chain above."""
    question_marks = question.marks if question is not None else None
    return (
        response.marks_possible
        or binding_marks
        or question_marks
        or abs(response.marks_obtained)
        or 1
    )


def aggregate_results(
    results: Iterable[TestResult],
    questions: Mapping[str, QuestionDefinition],
    binding_marks: Optional[BindingMarks] = None,
) -> CombinedReportData:
    """
    Fold every response of every result into the classification tree.

    Args:
        results: Results to aggregate (one for a test report, all of a
            student's for a combined report)
        questions: Question definitions keyed by id; ids missing from the
            mapping are counted under the default classification
        binding_marks: Per-test marks keyed by (test_id, question_id), used
            for responses recorded without marks

    Returns:
        CombinedReportData with deterministic ordering:
        subjects by total desc then name; topics by subject, total desc,
        topic; subtopics by subject, topic, total desc, subtopic.

    Example:
        >>> report = aggregate_results([result], questions)
        >>> report.overall.total == sum(s.total for s in report.by_subject)
        True
    """
    binding_marks = binding_marks or {}
    overall = TopicStatistic(subject=OVERALL_LABEL)
    subjects: Dict[str, TopicStatistic] = {}
    topics: Dict[Tuple[str, str], TopicStatistic] = {}
    subtopics: Dict[ClassificationKey, TopicStatistic] = {}
    unresolved: Set[str] = set()
    results_count = 0

    for result in results:
        results_count += 1
        for response in result.responses:
            question = questions.get(response.question_id)
            if question is None:
                unresolved.add(response.question_id)

            subject, topic, subtopic = resolve_classification(question)
            marks_possible = resolve_marks_possible(
                response,
                question,
                binding_marks.get((result.test_id, response.question_id)),
            )

            overall.record(response, marks_possible)
            if subject not in subjects:
                subjects[subject] = TopicStatistic(subject=subject)
            subjects[subject].record(response, marks_possible)

            if (subject, topic) not in topics:
                topics[(subject, topic)] = TopicStatistic(subject=subject, topic=topic)
            topics[(subject, topic)].record(response, marks_possible)

            key = (subject, topic, subtopic)
            if key not in subtopics:
                subtopics[key] = TopicStatistic(
                    subject=subject, topic=topic, subtopic=subtopic
                )
            subtopics[key].record(response, marks_possible)

    for stat in (overall, *subjects.values(), *topics.values(), *subtopics.values()):
        stat.finalize()

    if unresolved:
        logger.warning(
            f"Aggregated {len(unresolved)} unresolvable question(s) under "
            f"'{settings.DEFAULT_CLASSIFICATION}': {', '.join(sorted(unresolved))}"
        )

    return CombinedReportData(
        overall=overall,
        by_subject=sorted(subjects.values(), key=lambda s: (-s.total, s.subject)),
        by_topic=sorted(
            topics.values(), key=lambda s: (s.subject, -s.total, s.topic)
        ),
        by_subtopic=sorted(
            subtopics.values(),
            key=lambda s: (s.subject, s.topic, -s.total, s.subtopic),
        ),
        results_count=results_count,
        unresolved_question_ids=sorted(unresolved),
    )


def analyze_test_result(
    result: TestResult,
    questions: Mapping[str, QuestionDefinition],
    sections: Sequence[TestSection] = (),
    binding_marks: Optional[BindingMarks] = None,
) -> SingleTestReport:
    """
    Build the report for a single attempt.

    Args:
        result: The attempt's result
        questions: Question definitions keyed by id
        sections: The test's sections, used for display names; responses
            outside any known section are grouped under their raw id
        binding_marks: Per-test marks keyed by (test_id, question_id)

    Returns:
        SingleTestReport with classification tree and per-section totals
    """
    binding_marks = binding_marks or {}
    names = {section.id: section.name for section in sections}
    by_section: Dict[str, TopicStatistic] = {}
    for response in result.responses:
        if not response.section_id:
            continue
        if response.section_id not in by_section:
            by_section[response.section_id] = TopicStatistic(
                subject=names.get(response.section_id, response.section_id)
            )
        by_section[response.section_id].record(
            response,
            resolve_marks_possible(
                response,
                questions.get(response.question_id),
                binding_marks.get((result.test_id, response.question_id)),
            ),
        )
    for stat in by_section.values():
        stat.finalize()

    return SingleTestReport(
        result_id=result.id,
        test_id=result.test_id,
        test_title=result.test_title,
        report=aggregate_results([result], questions, binding_marks),
        by_section=by_section,
    )


def classify_strength(
    accuracy: float,
    strong_threshold: Optional[float] = None,
    weak_threshold: Optional[float] = None,
) -> PerformanceBand:
    """
    Band an accuracy percentage.

    Args:
        accuracy: Accuracy in percent
        strong_threshold: Defaults to STRONG_ACCURACY_THRESHOLD
        weak_threshold: Defaults to WEAK_ACCURACY_THRESHOLD

    Returns:
        PerformanceBand.STRONG, NEUTRAL or WEAK

    Example:
        >>> classify_strength(70.0)
        <PerformanceBand.STRONG: 'strong'>
        >>> classify_strength(49.99)
        <PerformanceBand.WEAK: 'weak'>
    """
    if strong_threshold is None:
        strong_threshold = settings.STRONG_ACCURACY_THRESHOLD
    if weak_threshold is None:
        weak_threshold = settings.WEAK_ACCURACY_THRESHOLD
    if accuracy >= strong_threshold:
        return PerformanceBand.STRONG
    if accuracy < weak_threshold:
        return PerformanceBand.WEAK
    return PerformanceBand.NEUTRAL


def get_strengths(stats: Iterable[TopicStatistic]) -> List[TopicStatistic]:
    """Buckets in the strong band, best accuracy first."""
    strong = [
        s
        for s in stats
        if s.total and classify_strength(s.accuracy) == PerformanceBand.STRONG
    ]
    return sorted(strong, key=lambda s: (-s.accuracy, s.label))


def get_weaknesses(stats: Iterable[TopicStatistic]) -> List[TopicStatistic]:
    """Buckets in the weak band, worst accuracy first."""
    weak = [
        s
        for s in stats
        if s.total and classify_strength(s.accuracy) == PerformanceBand.WEAK
    ]
    return sorted(weak, key=lambda s: (s.accuracy, s.label))


def get_strongest_weakest(
    stats: Iterable[TopicStatistic],
) -> Dict[str, Optional[str]]:
    """
    Identify the strongest and weakest buckets by accuracy.

    Buckets with no questions are ignored. In case of ties, the bucket that
    appears first is selected.

    Returns:
        Dictionary with ``strongest`` and ``weakest`` labels (None when
        there are no buckets)
    """
    strongest: Optional[TopicStatistic] = None
    weakest: Optional[TopicStatistic] = None

    for stat in stats:
        if not stat.total:
            continue
        if strongest is None or stat.accuracy > strongest.accuracy:
            strongest = stat
        if weakest is None or stat.accuracy < weakest.accuracy:
            weakest = stat

    return {
        "strongest": strongest.label if strongest else None,
        "weakest": weakest.label if weakest else None,
    }


def summarize_attempt(result: TestResult) -> AttemptSummary:
    """Flatten one result into an attempt history row."""
    return AttemptSummary(
        result_id=result.id,
        test_id=result.test_id,
        test_title=result.test_title,
        submitted_at=to_instant(result.submitted_at),
        score_percentage=result.score_percentage,
        accuracy=_percentage(result.correct_answers, result.total_questions),
        total_questions=result.total_questions,
        correct_answers=result.correct_answers,
        incorrect_answers=result.incorrect_answers,
        not_answered=result.not_answered,
        total_marks_obtained=result.total_marks_obtained,
        total_marks_possible=result.total_marks_possible,
        time_spent_seconds=result.time_spent_seconds,
        auto_submitted=result.auto_submitted,
    )


def build_attempt_history(results: Iterable[TestResult]) -> List[AttemptSummary]:
    """Attempt summaries ordered newest submission first."""
    summaries = [summarize_attempt(result) for result in results]
    return sorted(summaries, key=lambda s: (s.submitted_at, s.result_id), reverse=True)


async def collect_report_questions(
    question_bank: QuestionBank, results: Iterable[TestResult]
) -> Dict[str, QuestionDefinition]:
    """
    Resolve every question referenced by ``results``.

    Ids that no longer resolve are left out of the mapping; the aggregation
    counts them under the default classification.
    """
    question_ids: List[str] = []
    seen: Set[str] = set()
    for result in results:
        for response in result.responses:
            if response.question_id not in seen:
                seen.add(response.question_id)
                question_ids.append(response.question_id)
    return await question_bank.get_questions(question_ids)


async def collect_binding_marks(
    test_store: TestDefinitionStore, results: Iterable[TestResult]
) -> Dict[Tuple[str, str], float]:
    """
    Per-test marks of every question bound in the tests behind ``results``.

    Tests that no longer exist contribute nothing; their responses fall back
    to the question's default marks.
    """
    marks: Dict[Tuple[str, str], float] = {}
    test_ids: List[str] = []
    for result in results:
        if result.test_id not in test_ids:
            test_ids.append(result.test_id)
    for test_id in test_ids:
        test = await test_store.get_test(test_id)
        if test is None:
            logger.debug(f"Test {test_id} not found; using question default marks")
            continue
        for binding in test.bindings:
            marks[(test_id, binding.question_id)] = binding.marks
    return marks
