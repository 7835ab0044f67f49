"""Test fixtures for RemoteTreeLib consumers.

These fixtures provide a controllable, in-memory stand-in for a remote
object graph so traversal behavior can be verified without a network.
"""

import asyncio
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

from ..aio.core.adapter import AsyncObjectResolver
from ..aio.core.reference import (
    ByIdentifier,
    ByRevision,
    Directory,
    Leaf,
    ObjectReference,
    ResolvedObject,
)
from ..errors import NotFoundError, ResolutionError


class InMemoryObjectStore(AsyncObjectResolver):
    """Resolver serving objects from dictionaries, recording every call.

    Example:
        store = InMemoryObjectStore()
        store.add_tree('root', [('a.txt', 'id1')])
        store.add_blob('id1', 'hello')
        store.add_revision('main:', 'root')

        result = await TraversalEngine(store).traverse(ByRevision('o', 'r', 'main:'))
        assert store.calls_for('id1') == 1
    """

    def __init__(
        self,
        latency: float = 0.0,
        on_call: Optional[Callable[[ObjectReference], Awaitable[Any]]] = None
    ):
        """Initialize an empty store.

        Args:
            latency: Seconds every call sleeps before answering
            on_call: Async hook awaited at the start of every call;
                use it to gate or observe concurrent resolutions
        """
        self.objects: Dict[str, ResolvedObject] = {}
        self.revisions: Dict[str, str] = {}
        self.latency = latency
        self.on_call = on_call
        self.calls: List[ObjectReference] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._failures: Dict[str, Deque[ResolutionError]] = defaultdict(deque)

    # Building the graph

    def add_blob(self, oid: str, text: str) -> 'InMemoryObjectStore':
        self.objects[oid] = Leaf(text)
        return self

    def add_tree(self, oid: str, entries) -> 'InMemoryObjectStore':
        """Add a directory from an iterable of (name, oid) pairs."""
        self.objects[oid] = Directory.of(*entries)
        return self

    def add_object(self, oid: str, obj: ResolvedObject) -> 'InMemoryObjectStore':
        self.objects[oid] = obj
        return self

    def add_revision(self, expression: str, oid: str) -> 'InMemoryObjectStore':
        """Make a revision expression resolve to an existing object."""
        self.revisions[expression] = oid
        return self

    def fail(self, key: str, *errors: ResolutionError) -> 'InMemoryObjectStore':
        """Queue errors raised by the next calls for an oid or expression.

        Once the queue drains, calls succeed again. Use a NotFoundError
        with an absent object for permanent failures instead.
        """
        self._failures[key].extend(errors)
        return self

    @classmethod
    def from_nested(cls, tree: Union[str, Dict[str, Any]], revision: str = 'main:') -> 'InMemoryObjectStore':
        """Build a store from nested dicts (directories) and strings (files).

        Identical content gets the same identifier, like a real
        content-addressed store.
        """
        store = cls()
        root = store._add_nested(tree)
        store.add_revision(revision, root)
        return store

    def _add_nested(self, node: Union[str, Dict[str, Any]]) -> str:
        if isinstance(node, str):
            oid = f"blob:{node}"
            self.add_blob(oid, node)
            return oid
        entries = [(name, self._add_nested(child)) for name, child in node.items()]
        oid = "tree:" + ",".join(f"{name}={child}" for name, child in entries)
        self.add_tree(oid, entries)
        return oid

    # Resolver interface

    async def resolve_by_revision(self, owner: str, repo: str, expression: str) -> ResolvedObject:
        await self._enter(ByRevision(owner, repo, expression), expression)
        try:
            oid = self.revisions.get(expression)
            if oid is None or oid not in self.objects:
                raise NotFoundError(f"no object for {expression}")
            return self.objects[oid]
        finally:
            self.in_flight -= 1

    async def resolve_by_identifier(self, owner: str, repo: str, oid: str) -> ResolvedObject:
        await self._enter(ByIdentifier(owner, repo, oid), oid)
        try:
            if oid not in self.objects:
                raise NotFoundError(f"no object {oid}")
            return self.objects[oid]
        finally:
            self.in_flight -= 1

    async def _enter(self, reference: ObjectReference, key: str) -> None:
        self.calls.append(reference)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.on_call is not None:
                await self.on_call(reference)
            await asyncio.sleep(self.latency)
            if self._failures[key]:
                raise self._failures[key].popleft()
        except BaseException:
            self.in_flight -= 1
            raise

    # Introspection

    def calls_for(self, key: str) -> int:
        """Number of calls made for an oid or revision expression."""
        return sum(
            1 for ref in self.calls
            if getattr(ref, 'oid', None) == key or getattr(ref, 'expression', None) == key
        )

    @property
    def revision_calls(self) -> int:
        return sum(1 for ref in self.calls if isinstance(ref, ByRevision))

    @property
    def identifier_calls(self) -> int:
        return sum(1 for ref in self.calls if isinstance(ref, ByIdentifier))

    async def get_stats(self) -> dict:
        return {
            'calls': len(self.calls),
            'revision_calls': self.revision_calls,
            'identifier_calls': self.identifier_calls,
            'max_in_flight': self.max_in_flight,
        }
