"""
Collaborator interfaces for question, test and result storage.

The session engine and the report views only talk to these abstract
interfaces. The in-memory backends serve the default application and tests;
a database-backed implementation plugs in by subclassing the same ABCs.
"""
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from app.core.datetime_utils import to_instant
from app.models.models import QuestionDefinition, TestDefinition, TestResult


class QuestionBank(ABC):
    """Read access to authored questions."""

    @abstractmethod
    async def get_question(self, question_id: str) -> Optional[QuestionDefinition]:
        """
        Resolve a question by id.

        Args:
            question_id: Question identifier

        Returns:
            The question definition, or None if it does not exist
        """
        pass

    async def get_questions(
        self, question_ids: Iterable[str]
    ) -> Dict[str, QuestionDefinition]:
        """Resolve many questions; ids that do not exist are left out."""
        resolved: Dict[str, QuestionDefinition] = {}
        for question_id in question_ids:
            question = await self.get_question(question_id)
            if question is not None:
                resolved[question_id] = question
        return resolved


class TestDefinitionStore(ABC):
    """Read access to assembled tests."""

    __test__ = False

    @abstractmethod
    async def get_test(self, test_id: str) -> Optional[TestDefinition]:
        """
        Resolve a test by id.

        Args:
            test_id: Test identifier

        Returns:
            The test definition, or None if it does not exist
        """
        pass


class ResultStore(ABC):
    """Persistence for submitted results."""

    @abstractmethod
    async def find_existing_result(
        self, student_id: str, test_id: str
    ) -> Optional[TestResult]:
        """Return the student's result for a test, if one exists."""
        pass

    @abstractmethod
    async def persist_result(self, result: TestResult) -> str:
        """
        Store a new result.

        Args:
            result: Result to store

        Returns:
            The stored result's id
        """
        pass

    @abstractmethod
    async def get_result(self, result_id: str) -> Optional[TestResult]:
        """Return a result by id, or None if it does not exist."""
        pass

    @abstractmethod
    async def fetch_results_for_student(self, student_id: str) -> List[TestResult]:
        """Return all of a student's results, newest submission first."""
        pass


class InMemoryQuestionBank(QuestionBank):
    """Dictionary-backed question bank."""

    def __init__(self, questions: Iterable[QuestionDefinition] = ()):
        self._questions: Dict[str, QuestionDefinition] = {}
        self._lock = threading.RLock()
        for question in questions:
            self.add_question(question)

    def add_question(self, question: QuestionDefinition) -> None:
        with self._lock:
            self._questions[question.id] = question

    async def get_question(self, question_id: str) -> Optional[QuestionDefinition]:
        with self._lock:
            return self._questions.get(question_id)


class InMemoryTestDefinitionStore(TestDefinitionStore):
    """Dictionary-backed test definitions."""

    def __init__(self, tests: Iterable[TestDefinition] = ()):
        self._tests: Dict[str, TestDefinition] = {}
        self._lock = threading.RLock()
        for test in tests:
            self.add_test(test)

    def add_test(self, test: TestDefinition) -> None:
        with self._lock:
            self._tests[test.id] = test

    async def get_test(self, test_id: str) -> Optional[TestDefinition]:
        with self._lock:
            return self._tests.get(test_id)


class InMemoryResultStore(ResultStore):
    """
    Dictionary-backed result store.

    Enforces one result per (student, test): persisting a second one raises
    ValueError.

    Note: Data is lost on process restart.
    """

    def __init__(self):
        self._results: Dict[str, TestResult] = {}
        self._by_attempt: Dict[Tuple[str, str], str] = {}
        self._lock = threading.RLock()

    async def find_existing_result(
        self, student_id: str, test_id: str
    ) -> Optional[TestResult]:
        with self._lock:
            result_id = self._by_attempt.get((student_id, test_id))
            return self._results.get(result_id) if result_id else None

    async def persist_result(self, result: TestResult) -> str:
        key = (result.student_id, result.test_id)
        with self._lock:
            if key in self._by_attempt:
                raise ValueError(
                    f"Student {result.student_id} already has a result for "
                    f"test {result.test_id}"
                )
            self._results[result.id] = result
            self._by_attempt[key] = result.id
        return result.id

    async def get_result(self, result_id: str) -> Optional[TestResult]:
        with self._lock:
            return self._results.get(result_id)

    async def fetch_results_for_student(self, student_id: str) -> List[TestResult]:
        with self._lock:
            results = [
                result
                for result in self._results.values()
                if result.student_id == student_id
            ]
        return sorted(
            results, key=lambda result: to_instant(result.submitted_at), reverse=True
        )

    def clear(self) -> None:
        """Clear all stored results."""
        with self._lock:
            self._results.clear()
            self._by_attempt.clear()
