"""
Graceful failure utilities.

Reusable context manager for non-critical operations that must not block the
main flow, such as analytics events emitted after a submission has already
been stored. It centralizes the pattern of:
1. Attempting an operation
2. Logging any exception with context
3. Continuing execution without raising

Usage:
    from app.core.graceful_failure import graceful_failure

    with graceful_failure("track submission", logger):
        AnalyticsTracker.track_test_submitted(...)

    # With custom log level (default is WARNING) and stack trace:
    with graceful_failure(
        "track submission", logger, log_level=logging.ERROR, exc_info=True
    ):
        AnalyticsTracker.track_test_submitted(...)
"""

import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    On exception the error is logged with context and execution continues
    after the ``with`` block. It does NOT raise HTTPException.

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "track submission").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log. Defaults to False.
        context: Optional dictionary of additional context to include in log message
            (e.g., {"session_id": "abc", "result_id": "def"}).

    Yields:
        None - the context manager is used for its side effects only.

    Example:
        >>> with graceful_failure(
        ...     "track submission",
        ...     logger,
        ...     context={"session_id": session.id}
        ... ):
        ...     AnalyticsTracker.track_test_submitted(...)
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)
