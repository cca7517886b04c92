"""
Services package: storage collaborators for questions, tests and results.
"""

from .stores import (
    InMemoryQuestionBank,
    InMemoryResultStore,
    InMemoryTestDefinitionStore,
    QuestionBank,
    ResultStore,
    TestDefinitionStore,
)

__all__ = [
    "InMemoryQuestionBank",
    "InMemoryResultStore",
    "InMemoryTestDefinitionStore",
    "QuestionBank",
    "ResultStore",
    "TestDefinitionStore",
]
