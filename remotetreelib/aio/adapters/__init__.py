"""Async resolvers for remote object graphs.

This module contains adapters that bridge specific remote APIs to the
generic resolver interface used by the traversal engine.
"""

from .github import (
    GitHubGraphQLResolver,
    RateLimitStatus,
    START_QUERY,
    CONT_QUERY,
)

__all__ = [
    'GitHubGraphQLResolver',
    'RateLimitStatus',
    'START_QUERY',
    'CONT_QUERY',
]
