"""
Retry Executor

Runs a fallible async operation, classifying each failure and retrying
automatically with exponential backoff when the category allows it.
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Coroutine, Optional, TypeVar, Union

from .errors import CategorizedError, RetryableError, RetryCancelledError, categorize_error
from .strategies import DEFAULT_RETRY_CONFIG, RetryConfig

T = TypeVar("T")

# Observer invoked before each automatic retry with (attempt_number, error)
RetryObserver = Callable[[int, CategorizedError], Union[None, Awaitable[None]]]
SleepFunc = Callable[[float], Awaitable[Any]]
CancelCheck = Callable[[], bool]


class RetryPolicy:
    """
    Bounded retry with backoff, driven by error classification.

    - Non-retryable categories fail on the first attempt.
    - Retryable categories without auto_retry fail immediately too; the
      retry is left to an explicit user action.
    - The config's max_retries governs the loop. The category's own
      max_retries is informational only.
    - When is_cancelled() turns true no further attempt is made, whether
      the failure is still being handled or the backoff sleep is running.
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep or asyncio.sleep

    async def run(
        self,
        operation: Callable[[], Coroutine[Any, Any, T]],
        config: Optional[RetryConfig] = None,
        on_retry: Optional[RetryObserver] = None,
        operation_name: str = "operation",
        is_cancelled: Optional[CancelCheck] = None,
    ) -> T:
        """
        Execute an operation with retries.

        Args:
            operation: Async operation to execute
            config: Retry limits and backoff
            on_retry: Called with (attempt_number, error) before each retry
            operation_name: Name for logging
            is_cancelled: Checked before each retry; true abandons the loop

        Returns:
            The operation's result

        Raises:
            RetryableError: carrying the final CategorizedError
            RetryCancelledError: if is_cancelled() was true before a retry
        """
        config = config or DEFAULT_RETRY_CONFIG
        attempt = 0

        while True:
            try:
                return await operation()
            except Exception as e:
                categorized = categorize_error(e)

                if not categorized.retryable or attempt >= config.max_retries:
                    self.logger.error(
                        f"{operation_name} failed after {attempt + 1} attempt(s) "
                        f"[{categorized.category.value}]: {e}"
                    )
                    raise RetryableError(categorized) from e

                if not categorized.auto_retry:
                    self.logger.error(
                        f"{operation_name} failed [{categorized.category.value}], "
                        f"manual retry required: {e}"
                    )
                    raise RetryableError(categorized) from e

                if is_cancelled and is_cancelled():
                    raise self._cancelled(operation_name, categorized) from e

                delay = config.get_delay(attempt)
                attempt += 1
                self.logger.warning(
                    f"{operation_name} attempt {attempt}/{config.max_retries + 1} "
                    f"failed: {e}. Retrying in {delay:.1f}s"
                )

                if on_retry:
                    outcome = on_retry(attempt, categorized)
                    if inspect.isawaitable(outcome):
                        await outcome

                await self._sleep(delay)

                if is_cancelled and is_cancelled():
                    raise self._cancelled(operation_name, categorized) from e

    def _cancelled(self, operation_name: str, error: CategorizedError) -> RetryCancelledError:
        self.logger.info(f"{operation_name} retry abandoned, run was cancelled")
        return RetryCancelledError(error)


# Convenience function for simple usage
async def run_with_retry(
    operation: Callable[[], Coroutine[Any, Any, T]],
    config: Optional[RetryConfig] = None,
    on_retry: Optional[RetryObserver] = None,
    operation_name: str = "operation",
    is_cancelled: Optional[CancelCheck] = None,
) -> T:
    """Execute an operation with a default RetryPolicy."""
    return await RetryPolicy().run(
        operation,
        config=config,
        on_retry=on_retry,
        operation_name=operation_name,
        is_cancelled=is_cancelled,
    )
