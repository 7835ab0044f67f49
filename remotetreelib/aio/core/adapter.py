"""Async remote object resolver abstraction.

Defines how a remote object-graph interface is adapted for the traversal
engine. The interface exposes exactly two lookups: by revision expression
(for the root) and by content identifier (for everything below it).
"""

from abc import ABC, abstractmethod

from .reference import ByIdentifier, ByRevision, ObjectReference, ResolvedObject


class AsyncObjectResolver(ABC):
    """Abstract base class for async remote object resolvers.

    Resolvers bridge between the generic traversal engine and a specific
    remote API. Each call returns one directory level (or one leaf) and
    either returns a ResolvedObject or raises a ResolutionError subclass:

    - NotFoundError: the object does not exist
    - RateLimitedError: quota exceeded, optionally with a retry-after hint
    - TransientError: temporary failure, safe to retry
    - FatalError: anything that retrying will not fix

    Both lookups must be idempotent.
    """

    @abstractmethod
    async def resolve_by_revision(self, owner: str, repo: str, expression: str) -> ResolvedObject:
        """Resolve the root object named by a revision expression.

        Args:
            owner: Repository owner
            repo: Repository name
            expression: Revision expression such as 'main:' or 'v1.0:docs'

        Returns:
            Leaf, Directory or UnrecognizedObject
        """
        pass

    @abstractmethod
    async def resolve_by_identifier(self, owner: str, repo: str, oid: str) -> ResolvedObject:
        """Resolve an object by its content identifier.

        Args:
            owner: Repository owner
            repo: Repository name
            oid: Opaque content identifier taken from a directory listing

        Returns:
            Leaf, Directory or UnrecognizedObject
        """
        pass

    async def resolve(self, reference: ObjectReference) -> ResolvedObject:
        """Resolve any reference, dispatching on its variant."""
        if isinstance(reference, ByRevision):
            return await self.resolve_by_revision(reference.owner, reference.repo, reference.expression)
        if isinstance(reference, ByIdentifier):
            return await self.resolve_by_identifier(reference.owner, reference.repo, reference.oid)
        raise TypeError(f"Unsupported reference: {reference!r}")

    async def get_stats(self) -> dict:
        """Get resolver statistics.

        Returns:
            Dictionary of statistics (call counts, etc.)
        """
        return {}

    async def close(self):
        """Clean up resolver resources.

        Override if the resolver holds connections.
        """
        pass

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
