"""
Shared FastAPI dependencies.

The process-wide stores and session manager live here. The in-memory stores
start empty; ``seed_stores`` fills them from SEED_DATA_PATH at startup.
Deployments backed by real storage (and tests) swap the collaborators
through ``app.dependency_overrides``.
"""
from typing import Tuple

from app.core.session import TestSessionManager
from app.services.seed import load_seed_data
from app.services.stores import (
    InMemoryQuestionBank,
    InMemoryResultStore,
    InMemoryTestDefinitionStore,
    QuestionBank,
    ResultStore,
    TestDefinitionStore,
)

_question_bank = InMemoryQuestionBank()
_test_store = InMemoryTestDefinitionStore()
_result_store = InMemoryResultStore()
_session_manager = TestSessionManager(_question_bank, _test_store, _result_store)


def get_question_bank() -> QuestionBank:
    return _question_bank


def get_test_store() -> TestDefinitionStore:
    return _test_store


def get_result_store() -> ResultStore:
    return _result_store


def get_session_manager() -> TestSessionManager:
    return _session_manager


def seed_stores(path: str) -> Tuple[int, int]:
    """Load a seed file into the default in-memory question bank and tests."""
    return load_seed_data(path, _question_bank, _test_store)
