"""Shared domain types for the test-prep services.

This package is the single source of truth for domain enums used by the
backend session engine, the analytics pipeline, and (indirectly via OpenAPI)
the web client.

Usage:
    from libs.domain_types import QuestionType, SlotStatus
"""

import enum


class QuestionType(str, enum.Enum):
    """Answer formats a question can take."""

    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    NUMERIC = "numeric"


class SlotStatus(str, enum.Enum):
    """Navigation/answer status of one question slot during a test attempt."""

    NOT_VISITED = "not_visited"
    NOT_ANSWERED = "not_answered"
    ANSWERED = "answered"
    MARKED_FOR_REVIEW = "marked_for_review"
    ANSWERED_AND_MARKED = "answered_and_marked"


class SessionStatus(str, enum.Enum):
    """Lifecycle of a live test session."""

    ACTIVE = "active"
    SUBMITTING = "submitting"
    EXPIRED = "expired"
    SUBMITTED = "submitted"


class PerformanceBand(str, enum.Enum):
    """Display-time strength classification derived from accuracy."""

    STRONG = "strong"
    NEUTRAL = "neutral"
    WEAK = "weak"


__all__ = [
    "QuestionType",
    "SlotStatus",
    "SessionStatus",
    "PerformanceBand",
]
