"""High-level async API for RemoteTreeLib.

This module provides simple, user-friendly async functions for
snapshotting remote trees. They wire resolvers, retry policies and the
traversal engine together.
"""

import logging
from typing import Any, Optional

from .core import ByRevision, ObjectReference, TraversalEngine, TraversalResult
from .core.adapter import AsyncObjectResolver
from .adapters import GitHubGraphQLResolver
from .error_policies import ErrorPolicy, RetryPolicy
from .rate_limit import RequestLimiter
from ..config import ClientConfig, TraversalConfig


logger = logging.getLogger(__name__)


def build_revision_expression(commit_ish: str, path: str = '') -> str:
    """Build a `<commit-ish>:<path>` revision expression.

    Absolute paths are taken relative to the repository root, so '/docs',
    'docs', 'docs/' and './docs' all name the same directory. An empty
    path names the root tree of the commit.

    Example:
        >>> build_revision_expression('main', '/src/lib')
        'main:src/lib'
    """
    if not commit_ish:
        raise ValueError("commit_ish is required")
    segments = [
        part for part in path.replace('\\', '/').split('/')
        if part and part != '.'
    ]
    return f"{commit_ish}:{'/'.join(segments)}"


async def traverse_async(
    root: ObjectReference,
    resolver: AsyncObjectResolver,
    concurrency_limit: int = 8,
    cancel_event: Any = None,
    retry_policy: Optional[ErrorPolicy] = None,
    limiter: Optional[RequestLimiter] = None,
    sort: bool = True
) -> TraversalResult:
    """Snapshot the tree below a root reference.

    Args:
        root: Root reference
        resolver: Resolver to fetch objects through
        concurrency_limit: Maximum resolutions in flight
        cancel_event: Optional event; once set, no new resolutions start
        retry_policy: Retry policy (defaults to RetryPolicy())
        limiter: Optional shared rate limiter
        sort: Order snapshot and failures by path

    Returns:
        TraversalResult(snapshot, failures, completed, cancelled)
    """
    engine = TraversalEngine(resolver, retry_policy=retry_policy, limiter=limiter, sort=sort)
    return await engine.traverse(root, concurrency_limit, cancel_event)


async def traverse_repository_async(
    owner: str,
    repo: str,
    revision: str,
    concurrency_limit: Optional[int] = None,
    cancel_event: Any = None,
    resolver: Optional[AsyncObjectResolver] = None,
    path: str = '',
    config: Optional[TraversalConfig] = None,
    client_config: Optional[ClientConfig] = None,
    limiter: Optional[RequestLimiter] = None
) -> TraversalResult:
    """Snapshot a repository tree at a revision.

    Args:
        owner: Repository owner
        repo: Repository name
        revision: Commit-ish (branch, tag, sha)
        concurrency_limit: Maximum resolutions in flight (overrides config)
        cancel_event: Optional event; once set, no new resolutions start
        resolver: Resolver to use; a GitHubGraphQLResolver built from
            client_config (or the environment) is created and closed if None
        path: Sub-directory to root the snapshot at
        config: Traversal configuration
        client_config: Endpoint and credentials for the default resolver
        limiter: Optional shared rate limiter

    Returns:
        TraversalResult(snapshot, failures, completed, cancelled)

    Example:
        >>> result = await traverse_repository_async('octo', 'hello', 'main', 4)
        >>> result.snapshot.as_dict()
        {'README.md': '...'}
    """
    config = (config or TraversalConfig()).check()
    if concurrency_limit is None:
        concurrency_limit = config.concurrency_limit

    root = ByRevision(owner, repo, build_revision_expression(revision, path))
    retry_policy = RetryPolicy.from_config(config.retry)

    if resolver is not None:
        return await traverse_async(
            root, resolver, concurrency_limit, cancel_event,
            retry_policy, limiter, config.sort_snapshot
        )

    client_config = (client_config or ClientConfig.from_env()).check()
    if not client_config.token:
        logger.warning("No GitHub token configured; the GraphQL API will reject anonymous calls")
    async with GitHubGraphQLResolver.from_config(client_config) as owned:
        return await traverse_async(
            root, owned, concurrency_limit, cancel_event,
            retry_policy, limiter, config.sort_snapshot
        )
