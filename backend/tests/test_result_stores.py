"""
Tests for the in-memory question, test and result stores.
"""
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from app.core.datetime_utils import MillisTimestamp, NativeTimestamp, to_epoch_millis
from app.models.models import TestDefinition, TestQuestionBinding
from app.services.stores import (
    InMemoryResultStore,
    InMemoryTestDefinitionStore,
    QuestionBank,
)
from tests.conftest import make_response, make_result


class TestInMemoryQuestionBank:
    """Tests for InMemoryQuestionBank."""

    @pytest.mark.asyncio
    async def test_get_question(self, question_bank):
        question = await question_bank.get_question("q-moles")

        assert question.subject == "Chemistry"
        assert await question_bank.get_question("missing") is None

    @pytest.mark.asyncio
    async def test_get_questions_skips_missing(self, question_bank):
        questions = await question_bank.get_questions(
            ["q-moles", "missing", "q-forces"]
        )

        assert list(questions) == ["q-moles", "q-forces"]

    def test_abstract_bank_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            QuestionBank()


class TestInMemoryTestDefinitionStore:
    """Tests for InMemoryTestDefinitionStore."""

    @pytest.mark.asyncio
    async def test_get_test(self, sample_test):
        store = InMemoryTestDefinitionStore([sample_test])

        assert await store.get_test("test-1") is sample_test
        assert await store.get_test("missing") is None

    def test_question_bound_twice_rejected(self):
        bindings = (
            TestQuestionBinding(question_id="q1", order=0, marks=4),
            TestQuestionBinding(question_id="q1", order=1, marks=2),
        )

        with pytest.raises(ValueError, match="q1 is bound twice"):
            TestDefinition(
                id="dup", title="Dup", duration_minutes=10, bindings=bindings
            )


class TestInMemoryResultStore:
    """Tests for InMemoryResultStore."""

    @pytest.mark.asyncio
    async def test_persist_and_get(self):
        store = InMemoryResultStore()
        result = make_result("r-1", [make_response("q1")])

        assert await store.persist_result(result) == "r-1"
        assert await store.get_result("r-1") is result
        assert await store.find_existing_result("student-1", "test-1") is result
        assert await store.find_existing_result("student-1", "test-2") is None

    @pytest.mark.asyncio
    async def test_duplicate_attempt_rejected(self):
        store = InMemoryResultStore()
        await store.persist_result(make_result("r-1", [make_response("q1")]))

        with pytest.raises(ValueError):
            await store.persist_result(make_result("r-2", [make_response("q1")]))

        assert await store.get_result("r-2") is None

    @pytest.mark.asyncio
    async def test_fetch_newest_first_across_timestamp_shapes(self):
        store = InMemoryResultStore()
        base = datetime(2024, 3, 1, tzinfo=timezone.utc)
        older = make_result("older", [make_response("q1")], submitted_at=base)
        newer = make_result(
            "newer",
            [make_response("q1")],
            test_id="test-2",
            submitted_at=base + timedelta(hours=1),
        )
        # Same instant as base + 30 minutes, stored as epoch millis
        middle_millis = to_epoch_millis(
            NativeTimestamp(base + timedelta(minutes=30))
        )
        middle = replace(
            make_result("middle", [make_response("q1")], test_id="test-3"),
            submitted_at=MillisTimestamp(middle_millis),
        )
        other_student = make_result(
            "other", [make_response("q1")], student_id="student-2"
        )
        for result in (older, newer, middle, other_student):
            await store.persist_result(result)

        results = await store.fetch_results_for_student("student-1")

        assert [r.id for r in results] == ["newer", "middle", "older"]

    @pytest.mark.asyncio
    async def test_clear(self):
        store = InMemoryResultStore()
        await store.persist_result(make_result("r-1", [make_response("q1")]))

        store.clear()

        assert await store.get_result("r-1") is None
        assert await store.fetch_results_for_student("student-1") == []
