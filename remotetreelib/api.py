"""High-level synchronous API for RemoteTreeLib.

This module provides blocking wrappers around the async API for callers
that are not running an event loop. The call suspends until the whole
frontier has drained, the root fails, or the cancel signal is observed.
"""

import asyncio
from typing import Any, Optional

from .aio.api import build_revision_expression, traverse_repository_async
from .aio.core import TraversalResult
from .aio.core.adapter import AsyncObjectResolver
from .config import ClientConfig, TraversalConfig


def traverse_repository(
    owner: str,
    repo: str,
    revision: str,
    concurrency_limit: Optional[int] = None,
    cancel_event: Any = None,
    resolver: Optional[AsyncObjectResolver] = None,
    path: str = '',
    config: Optional[TraversalConfig] = None,
    client_config: Optional[ClientConfig] = None
) -> TraversalResult:
    """Snapshot a repository tree at a revision, blocking until done.

    Args:
        owner: Repository owner
        repo: Repository name
        revision: Commit-ish (branch, tag, sha)
        concurrency_limit: Maximum resolutions in flight
        cancel_event: Optional threading.Event; set it from another
            thread to stop starting new resolutions
        resolver: Resolver to use (defaults to GitHub GraphQL)
        path: Sub-directory to root the snapshot at
        config: Traversal configuration
        client_config: Endpoint and credentials for the default resolver

    Returns:
        TraversalResult(snapshot, failures, completed, cancelled)

    Example:
        >>> snapshot, failures, completed, cancelled = traverse_repository(
        ...     'octo', 'hello', 'main', concurrency_limit=4)
        >>> for path, text in snapshot.as_dict().items():
        ...     print(path, len(text))
    """
    return asyncio.run(traverse_repository_async(
        owner,
        repo,
        revision,
        concurrency_limit=concurrency_limit,
        cancel_event=cancel_event,
        resolver=resolver,
        path=path,
        config=config,
        client_config=client_config,
    ))


__all__ = [
    'build_revision_expression',
    'traverse_repository',
]
