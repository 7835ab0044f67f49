"""
Retry policies for RemoteTreeLib.

This module decides, per failed resolution attempt, whether the engine
should try again and how long it should wait first. The engine owns the
retry loop; policies only answer questions about it.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..config import RetryConfig
from ..errors import ResolutionError, RateLimitedError


class ErrorPolicy(ABC):
    """
    Base class for retry policies.

    Subclasses implement different strategies for handling retryable
    errors raised by a resolver.
    """

    @abstractmethod
    def should_retry(self, error: ResolutionError, attempt: int) -> bool:
        """
        Decide whether a failed attempt should be retried.

        Args:
            error: The error raised by the attempt
            attempt: 1-based number of the attempt that just failed

        Returns:
            True if the engine should sleep and try again
        """
        pass

    @abstractmethod
    def delay_for(self, error: ResolutionError, attempt: int) -> float:
        """
        Seconds to wait before the next attempt.

        Args:
            error: The error raised by the attempt
            attempt: 1-based number of the attempt that just failed
        """
        pass


class NoRetryPolicy(ErrorPolicy):
    """
    Policy that never retries.

    Every failure becomes terminal for its node immediately.
    """

    def should_retry(self, error: ResolutionError, attempt: int) -> bool:
        return False

    def delay_for(self, error: ResolutionError, attempt: int) -> float:
        return 0.0


class RetryPolicy(ErrorPolicy):
    """
    Policy that retries rate-limited and transient failures with
    bounded exponential backoff.

    A retry-after hint from the remote takes precedence over the
    computed delay. NotFound, Fatal and UnknownShape errors are never
    retried.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay: float = 0.5,
        multiplier: float = 2.0,
        max_delay: float = 30.0
    ):
        """
        Initialize retry policy.

        Args:
            max_attempts: Total attempts per node, including the first
            base_delay: Delay after the first failed attempt
            multiplier: Multiplier for exponential backoff
            max_delay: Cap on computed delays (hints are not capped)
        """
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay

    @classmethod
    def from_config(cls, config: RetryConfig) -> 'RetryPolicy':
        return cls(
            max_attempts=config.max_attempts,
            base_delay=config.base_delay,
            multiplier=config.multiplier,
            max_delay=config.max_delay,
        )

    def should_retry(self, error: ResolutionError, attempt: int) -> bool:
        return error.retryable and attempt < self.max_attempts

    def delay_for(self, error: ResolutionError, attempt: int) -> float:
        hint = self.retry_after_hint(error)
        if hint is not None:
            return hint
        return min(self.base_delay * (self.multiplier ** (attempt - 1)), self.max_delay)

    @staticmethod
    def retry_after_hint(error: ResolutionError) -> Optional[float]:
        """Extract a non-negative retry-after hint, if the error has one."""
        if isinstance(error, RateLimitedError) and error.retry_after is not None:
            return max(0.0, float(error.retry_after))
        return None

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, base_delay={self.base_delay}, "
            f"multiplier={self.multiplier}, max_delay={self.max_delay})"
        )
