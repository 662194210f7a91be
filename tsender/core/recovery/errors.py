"""
Error Classification

Maps arbitrary failures from the chain, the wallet or the RPC transport into a
fixed set of categories, each carrying its retry policy and user-facing copy.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple


class ErrorCategory(str, Enum):
    """Categories of errors for retry decisions."""

    NETWORK = "network"                        # RPC / connectivity issues
    USER_REJECTION = "user_rejection"          # Wallet prompt declined
    INSUFFICIENT_FUNDS = "insufficient_funds"  # Balance or allowance shortfall
    VALIDATION = "validation"                  # Malformed input
    CONTRACT_EXECUTION = "contract"            # Revert, out of gas
    UNKNOWN = "unknown"                        # Unclassified error


@dataclass(frozen=True)
class CategorizedError:
    """A classified failure, immutable once produced."""

    category: ErrorCategory
    message: str
    retryable: bool
    auto_retry: bool
    max_retries: int
    user_action: Optional[str] = None
    technical_detail: Optional[str] = None
    original_error: Optional[BaseException] = field(
        default=None, compare=False, repr=False
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "retryable": self.retryable,
            "autoRetry": self.auto_retry,
            "maxRetries": self.max_retries,
            "userAction": self.user_action,
            "technicalDetail": self.technical_detail,
        }


@dataclass(frozen=True)
class CategoryPolicy:
    """Fixed retry policy and copy for a category."""

    retryable: bool
    auto_retry: bool
    max_retries: int
    message: str
    user_action: str


CATEGORY_POLICIES: Dict[ErrorCategory, CategoryPolicy] = {
    ErrorCategory.NETWORK: CategoryPolicy(
        retryable=True,
        auto_retry=True,
        max_retries=3,
        message="Network connection failed. Please check your internet connection.",
        user_action="Check your internet connection and try again.",
    ),
    ErrorCategory.USER_REJECTION: CategoryPolicy(
        retryable=True,
        auto_retry=False,
        max_retries=1,
        message="Transaction was rejected by user.",
        user_action="Please approve the transaction in your wallet to continue.",
    ),
    ErrorCategory.INSUFFICIENT_FUNDS: CategoryPolicy(
        retryable=False,
        auto_retry=False,
        max_retries=0,
        message="Insufficient funds or token allowance.",
        user_action="Please ensure you have sufficient balance and token allowance.",
    ),
    ErrorCategory.VALIDATION: CategoryPolicy(
        retryable=False,
        auto_retry=False,
        max_retries=0,
        message="Invalid input data provided.",
        user_action="Please check your input and correct any errors.",
    ),
    ErrorCategory.CONTRACT_EXECUTION: CategoryPolicy(
        retryable=True,
        auto_retry=False,
        max_retries=2,
        message="Smart contract execution failed.",
        user_action="Transaction failed. You may try again or contact support.",
    ),
    ErrorCategory.UNKNOWN: CategoryPolicy(
        retryable=True,
        auto_retry=False,
        max_retries=1,
        message="An unexpected error occurred.",
        user_action="Please try again. If the problem persists, contact support.",
    ),
}


def _matches_any(*patterns: str) -> Callable[[str], bool]:
    compiled: List[Pattern[str]] = [re.compile(p, re.IGNORECASE) for p in patterns]

    def predicate(message: str) -> bool:
        return any(p.search(message) for p in compiled)

    return predicate


# Evaluated top to bottom, first match wins.
ERROR_MATCHERS: List[Tuple[Callable[[str], bool], ErrorCategory]] = [
    (
        _matches_any(
            r"network error",
            r"fetch failed",
            r"connection refused",
            r"timeout",
            r"network request failed",
            r"failed to fetch",
        ),
        ErrorCategory.NETWORK,
    ),
    (
        _matches_any(
            r"user rejected",
            r"user denied",
            r"user cancelled",
            r"rejected by user",
            r"transaction was rejected",
            r"metamask tx signature: user denied",
        ),
        ErrorCategory.USER_REJECTION,
    ),
    (
        _matches_any(
            r"insufficient funds",
            r"insufficient balance",
            r"not enough",
            r"exceeds balance",
            r"insufficient allowance",
        ),
        ErrorCategory.INSUFFICIENT_FUNDS,
    ),
    (
        _matches_any(
            r"invalid address",
            r"invalid amount",
            r"validation failed",
            r"invalid input",
            r"malformed",
        ),
        ErrorCategory.VALIDATION,
    ),
    (
        _matches_any(
            r"execution reverted",
            r"contract call failed",
            r"transaction failed",
            r"revert",
            r"out of gas",
        ),
        ErrorCategory.CONTRACT_EXECUTION,
    ),
]


class RetryableError(Exception):
    """
    Raised when an operation fails for good.

    Carries the CategorizedError describing the final failure so callers
    can decide whether to offer a manual retry.
    """

    def __init__(self, error: CategorizedError):
        super().__init__(error.message)
        self.message = error.message
        self.error = error
        self.category = error.category
        self.retryable = error.retryable
        self.auto_retry = error.auto_retry
        self.max_retries = error.max_retries
        self.user_action = error.user_action


class RetryCancelledError(RetryableError):
    """Raised when the caller abandoned the run while a retry was pending."""


def _technical_detail(error: BaseException) -> str:
    return f"{type(error).__name__}: {error}"


def build_categorized_error(
    category: ErrorCategory,
    error: BaseException,
    message: Optional[str] = None,
    user_action: Optional[str] = None,
) -> CategorizedError:
    """Create a CategorizedError for a known category, applying its policy."""
    policy = CATEGORY_POLICIES[category]
    return CategorizedError(
        category=category,
        message=message or policy.message,
        retryable=policy.retryable,
        auto_retry=policy.auto_retry,
        max_retries=policy.max_retries,
        user_action=user_action or policy.user_action,
        technical_detail=_technical_detail(error),
        original_error=error,
    )


def categorize_error(error: BaseException) -> CategorizedError:
    """
    Classify an exception by its message.

    Errors that were already classified are returned as-is.
    """
    if isinstance(error, RetryableError):
        return error.error

    message = str(error).lower()
    for predicate, category in ERROR_MATCHERS:
        if predicate(message):
            return build_categorized_error(category, error)

    return build_categorized_error(ErrorCategory.UNKNOWN, error)


def is_retryable_error(error: object) -> bool:
    """Return True if the error is a classified failure that may be retried."""
    return isinstance(error, RetryableError) and error.retryable


def get_user_friendly_error_message(error: object) -> str:
    if isinstance(error, RetryableError):
        return error.message
    if isinstance(error, BaseException):
        return categorize_error(error).message
    return "An unexpected error occurred. Please try again."


def get_user_action(error: object) -> Optional[str]:
    if isinstance(error, RetryableError):
        return error.user_action
    if isinstance(error, BaseException):
        return categorize_error(error).user_action
    return None
