"""Configuration system for RemoteTreeLib.

This module defines how users specify their traversal requirements:
how wide to fan out, how hard to retry, and how to reach the remote API.
"""

import os
from dataclasses import dataclass, field
from typing import Optional, List


DEFAULT_ENDPOINT = "https://api.github.com/graphql"


@dataclass
class RetryConfig:
    """Bounded exponential backoff for retryable failures."""

    max_attempts: int = 5        # Total attempts, including the first
    base_delay: float = 0.5      # Delay before the second attempt
    multiplier: float = 2.0      # Growth factor per attempt
    max_delay: float = 30.0      # Cap on computed delays

    @classmethod
    def no_retry(cls) -> 'RetryConfig':
        """Create config that gives up after the first failure."""
        return cls(max_attempts=1)

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.max_attempts < 1:
            errors.append("max_attempts must be at least 1")
        if self.base_delay < 0:
            errors.append("base_delay cannot be negative")
        if self.multiplier < 1:
            errors.append("multiplier must be >= 1")
        if self.max_delay < self.base_delay:
            errors.append("max_delay cannot be less than base_delay")
        return errors


@dataclass
class TraversalConfig:
    """Complete configuration for one traversal run.

    This is the primary way users tune the engine. The rate limiter is
    not part of the config because it is a live object that may be
    shared between runs.
    """

    concurrency_limit: int = 8
    retry: RetryConfig = field(default_factory=RetryConfig)
    sort_snapshot: bool = True  # Iterate snapshot and failures by path

    @classmethod
    def sequential(cls) -> 'TraversalConfig':
        """Create config resolving one object at a time."""
        return cls(concurrency_limit=1)

    def validate(self) -> List[str]:
        """Validate configuration for consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []
        if self.concurrency_limit < 1:
            errors.append("concurrency_limit must be a positive integer")
        errors.extend(self.retry.validate())
        return errors

    def check(self) -> 'TraversalConfig':
        """Raise ValueError if the configuration is invalid."""
        errors = self.validate()
        if errors:
            raise ValueError("Invalid traversal config: " + "; ".join(errors))
        return self


@dataclass
class ClientConfig:
    """How to reach the remote GraphQL endpoint."""

    endpoint: str = DEFAULT_ENDPOINT
    token: Optional[str] = None
    timeout: float = 30.0
    user_agent: str = "remotetreelib"

    @classmethod
    def from_env(cls, **overrides) -> 'ClientConfig':
        """Build a config from environment variables.

        REMOTETREE_GITHUB_TOKEN wins over GITHUB_TOKEN; REMOTETREE_ENDPOINT
        overrides the public GitHub endpoint. Keyword overrides that are
        not None win over the environment.
        """
        config = cls(
            endpoint=os.environ.get('REMOTETREE_ENDPOINT') or DEFAULT_ENDPOINT,
            token=os.environ.get('REMOTETREE_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN'),
        )
        for key, value in overrides.items():
            if value is not None:
                setattr(config, key, value)
        return config

    def validate(self) -> List[str]:
        errors = []
        if not self.endpoint:
            errors.append("endpoint is required")
        if self.timeout <= 0:
            errors.append("timeout must be positive")
        return errors

    def check(self) -> 'ClientConfig':
        """Raise ValueError if the configuration is invalid."""
        errors = self.validate()
        if errors:
            raise ValueError("Invalid client config: " + "; ".join(errors))
        return self
