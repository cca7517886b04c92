"""
Models package for the test-prep backend.
"""
from .models import (
    CanonicalAnswer,
    CapturedAnswer,
    QuestionDefinition,
    ResponseRecord,
    TestDefinition,
    TestQuestionBinding,
    TestResult,
    TestSection,
    TestSubsection,
)

__all__ = [
    "CanonicalAnswer",
    "CapturedAnswer",
    "QuestionDefinition",
    "ResponseRecord",
    "TestDefinition",
    "TestQuestionBinding",
    "TestResult",
    "TestSection",
    "TestSubsection",
]
