"""RemoteTreeLib - Snapshot remote repository trees one level at a time.

RemoteTreeLib walks a remote source-control tree through an object-graph
interface that only answers "what is at this revision?" and "what is
this object?", and assembles the answers into a complete snapshot.

Choose your entry point:
━━━━━━━━━━━━━━━━━━━━━━━━━━
Synchronous:
    from remotetreelib import traverse_repository

Asynchronous:
    from remotetreelib.aio import traverse_repository_async
━━━━━━━━━━━━━━━━━━━━━━━━━━
"""

__version__ = "0.1.0"

from . import aio
from .api import build_revision_expression, traverse_repository
from .errors import (
    ResolutionError,
    NotFoundError,
    RateLimitedError,
    TransientError,
    FatalError,
    UnknownShapeError,
    RetryExhaustedError,
)

__all__ = [
    "__version__",
    "aio",
    "build_revision_expression",
    "traverse_repository",
    "ResolutionError",
    "NotFoundError",
    "RateLimitedError",
    "TransientError",
    "FatalError",
    "UnknownShapeError",
    "RetryExhaustedError",
]
