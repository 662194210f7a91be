"""
Error Recovery Module

Provides error classification and retry logic for resilient execution of
chain reads and wallet submissions.
"""

from .errors import (
    CATEGORY_POLICIES,
    CategorizedError,
    ErrorCategory,
    RetryableError,
    RetryCancelledError,
    build_categorized_error,
    categorize_error,
    get_user_action,
    get_user_friendly_error_message,
    is_retryable_error,
)
from .executor import RetryPolicy, run_with_retry
from .strategies import DEFAULT_RETRY_CONFIG, RetryConfig

__all__ = [
    # Errors
    "CATEGORY_POLICIES",
    "CategorizedError",
    "ErrorCategory",
    "RetryableError",
    "RetryCancelledError",
    "build_categorized_error",
    "categorize_error",
    "get_user_action",
    "get_user_friendly_error_message",
    "is_retryable_error",
    # Executor
    "RetryPolicy",
    "run_with_retry",
    # Strategies
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
]
