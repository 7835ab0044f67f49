"""Error taxonomy for remote object resolution.

Every failure a resolver can report derives from ResolutionError. The
traversal engine collects these per node; they are never raised to the
caller of a traversal.
"""

from typing import Optional


class ResolutionError(Exception):
    """Base class for failures resolving a single remote object."""

    #: Whether the engine may retry the call that raised this error.
    retryable = False

    def __init__(self, message: str = "", cause: Optional[BaseException] = None):
        super().__init__(message or (str(cause) if cause else self.__class__.__name__))
        self.cause = cause


class NotFoundError(ResolutionError):
    """The referenced object (or repository) does not exist upstream."""


class RateLimitedError(ResolutionError):
    """The remote interface refused the call because of a quota.

    Attributes:
        retry_after: Seconds the remote asked us to wait, if it said so
    """

    retryable = True

    def __init__(
        self,
        message: str = "",
        retry_after: Optional[float] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message or "rate limited", cause)
        self.retry_after = retry_after


class TransientError(ResolutionError):
    """A temporary failure (network hiccup, 5xx) worth retrying."""

    retryable = True


class FatalError(ResolutionError):
    """A failure that will not go away by retrying."""


class UnknownShapeError(ResolutionError):
    """The remote object is neither a leaf nor a directory."""

    def __init__(self, kind: str):
        super().__init__(f"unexpected object: {kind}")
        self.kind = kind


class RetryExhaustedError(ResolutionError):
    """A retryable failure persisted through every allowed attempt.

    Attributes:
        last_error: The error raised by the final attempt
        attempts: Number of attempts made
    """

    def __init__(self, last_error: ResolutionError, attempts: int):
        super().__init__(
            f"gave up after {attempts} attempts: {last_error}",
            cause=last_error
        )
        self.last_error = last_error
        self.attempts = attempts
