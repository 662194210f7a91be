"""
Retry Strategies

Backoff configuration for the retry executor. Per-operation limits come from
Settings.retry_config_for.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    base_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    backoff_factor: float = 2.0

    def get_delay(self, attempt: int) -> float:
        """Calculate delay before retrying after the given (zero-based) attempt."""
        delay = min(
            self.base_delay_seconds * (self.backoff_factor ** attempt),
            self.max_delay_seconds,
        )
        return max(delay, 0.0)


DEFAULT_RETRY_CONFIG = RetryConfig()
