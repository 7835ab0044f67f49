"""Asynchronous implementation of RemoteTreeLib.

This package contains the native async/await traversal engine and the
resolvers it pulls remote objects through. Remote calls run concurrently
up to a configurable bound.
"""

# Core abstractions
from .core import (
    TreePath,
    ByRevision,
    ByIdentifier,
    ObjectReference,
    DirectoryEntry,
    ResolvedObject,
    Leaf,
    Directory,
    UnrecognizedObject,
    FrontierEntry,
    AsyncObjectResolver,
    ROOT_PATH,
    join_path,
    format_path,
    split_path,
    VisitedSet,
    Snapshot,
    SnapshotAssembler,
    TraversalResult,
    TraversalEngine,
)

# Resolvers
from .adapters import GitHubGraphQLResolver, RateLimitStatus

# Retry and rate limiting
from .error_policies import ErrorPolicy, NoRetryPolicy, RetryPolicy
from .rate_limit import RequestLimiter

# High-level API
from .api import (
    build_revision_expression,
    traverse_async,
    traverse_repository_async,
)

# Configuration
from ..config import (
    TraversalConfig,
    RetryConfig,
    ClientConfig,
)

__all__ = [
    # References and objects
    'TreePath',
    'ByRevision',
    'ByIdentifier',
    'ObjectReference',
    'DirectoryEntry',
    'ResolvedObject',
    'Leaf',
    'Directory',
    'UnrecognizedObject',
    'FrontierEntry',
    # Resolvers
    'AsyncObjectResolver',
    'GitHubGraphQLResolver',
    'RateLimitStatus',
    # Paths
    'ROOT_PATH',
    'join_path',
    'format_path',
    'split_path',
    # Bookkeeping
    'VisitedSet',
    'Snapshot',
    'SnapshotAssembler',
    'TraversalResult',
    # Engine
    'TraversalEngine',
    # Policies
    'ErrorPolicy',
    'NoRetryPolicy',
    'RetryPolicy',
    'RequestLimiter',
    # Configuration
    'TraversalConfig',
    'RetryConfig',
    'ClientConfig',
    # High-level API
    'build_revision_expression',
    'traverse_async',
    'traverse_repository_async',
]
