"""Async traversal engine for remote object trees.

Walks a remote tree one directory level per call. Work is kept on an
explicit frontier (never the call stack), drained by a bounded pool of
worker tasks, with identifiers deduplicated so each remote object is
fetched at most once per run.
"""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, FrozenSet, Optional, Tuple

from .adapter import AsyncObjectResolver
from .collector import SnapshotAssembler, TraversalResult
from .paths import ROOT_PATH, format_path, join_path
from .reference import (
    Directory,
    FrontierEntry,
    Leaf,
    ObjectReference,
    TreePath,
    UnrecognizedObject,
)
from .visited import Outcome, VisitedSet
from ..error_policies import ErrorPolicy, RetryPolicy
from ..rate_limit import RequestLimiter, sleep_unless_set
from ...errors import (
    FatalError,
    ResolutionError,
    RetryExhaustedError,
    UnknownShapeError,
)


logger = logging.getLogger(__name__)

# Returned by _resolve when a cancellation signal stopped the attempt.
_CANCELLED = object()


class _TraversalRun:
    """Mutable state of one traversal call.

    Never shared between traversals; the engine creates a fresh run for
    every call to traverse().
    """

    def __init__(self, root: ObjectReference, cancel_event: Any, sort: bool):
        self.root = root
        self.cancel_event = cancel_event
        self.visited = VisitedSet()
        self.assembler = SnapshotAssembler(sort=sort)
        self.frontier: Deque[FrontierEntry] = deque()
        self.condition = asyncio.Condition()
        self.in_flight = 0
        self.started = 0
        self.cancelled = False

    def is_cancelled(self) -> bool:
        if not self.cancelled and self.cancel_event is not None and self.cancel_event.is_set():
            self.cancelled = True
            logger.info(
                f"Cancellation observed: {self.started} resolutions started, "
                f"{len(self.frontier)} pending entries dropped"
            )
        return self.cancelled

    def settle(self, entry: FrontierEntry, outcome: Outcome) -> None:
        """Record an outcome at its own path and at every alias path."""
        aliases = []
        if entry.oid is not None:
            aliases = self.visited.settle(entry.oid, outcome)
        self.apply(entry.path, outcome, entry.oid)
        for path in aliases:
            logger.debug(f"Fanning out {entry.oid} to {format_path(path)!r}")
            self.apply(path, outcome, entry.oid)

    def apply(self, path: TreePath, outcome: Outcome, oid: Optional[str]) -> None:
        """Turn one outcome into snapshot entries, failures or new work.

        Directory outcomes shared by several paths are re-expanded under
        each path; children already fetched are fanned out from the
        visited set without another remote call. Uses a work list so deep
        shared subtrees do not recurse.
        """
        ancestors: FrozenSet[str] = frozenset([oid]) if oid is not None else frozenset()
        work: Deque[Tuple[TreePath, Outcome, FrozenSet[str]]] = deque([(path, outcome, ancestors)])

        while work:
            path, outcome, ancestors = work.popleft()

            if isinstance(outcome, ResolutionError):
                self.assembler.record_failure(path, outcome)
            elif isinstance(outcome, Leaf):
                self.assembler.record(path, outcome.text)
            elif isinstance(outcome, Directory):
                for entry in outcome.entries:
                    child_path = join_path(path, entry.name)
                    if entry.oid in ancestors:
                        self.assembler.record_failure(
                            child_path, FatalError(f"object {entry.oid} contains itself")
                        )
                    elif self.visited.mark_if_absent(entry.oid):
                        self.frontier.append(
                            FrontierEntry(child_path, self.root.child(entry.oid))
                        )
                    else:
                        known = self.visited.add_alias(entry.oid, child_path)
                        if known is not None:
                            work.append((child_path, known, ancestors | {entry.oid}))
            elif isinstance(outcome, UnrecognizedObject):
                self.assembler.record_failure(path, UnknownShapeError(outcome.kind))
            else:
                self.assembler.record_failure(
                    path, UnknownShapeError(type(outcome).__name__)
                )


class TraversalEngine:
    """Resolves a whole remote tree into a snapshot.

    The engine itself holds only configuration; every traverse() call
    gets its own frontier, visited set and assembler, so one engine can
    serve several concurrent traversals of different roots.

    Example:
        engine = TraversalEngine(resolver, retry_policy=RetryPolicy(max_attempts=3))
        result = await engine.traverse(ByRevision('owner', 'repo', 'main:'), 8)
        if result.completed:
            print(result.snapshot.as_dict())
    """

    def __init__(
        self,
        resolver: AsyncObjectResolver,
        retry_policy: Optional[ErrorPolicy] = None,
        limiter: Optional[RequestLimiter] = None,
        sort: bool = True,
        sleep=asyncio.sleep
    ):
        """Initialize the engine.

        Args:
            resolver: Remote object resolver to pull objects through
            retry_policy: Retry policy for retryable failures (default RetryPolicy())
            limiter: Optional shared limiter wrapped around every remote call
            sort: Return snapshot and failures ordered by path
            sleep: Async sleep used for backoff, injectable for tests
        """
        self.resolver = resolver
        self.retry_policy = retry_policy or RetryPolicy()
        self.limiter = limiter
        self.sort = sort
        self._sleep = sleep

    async def traverse(
        self,
        root: ObjectReference,
        concurrency_limit: int = 8,
        cancel_event: Any = None
    ) -> TraversalResult:
        """Resolve everything reachable from root.

        Args:
            root: Root reference (normally ByRevision)
            concurrency_limit: Maximum resolutions in flight
            cancel_event: Anything with is_set() (asyncio.Event or
                threading.Event); once set, no new resolutions start

        Returns:
            TraversalResult with snapshot, per-path failures and flags
        """
        if not isinstance(concurrency_limit, int) or concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be a positive integer, got {concurrency_limit!r}")

        run = _TraversalRun(root, cancel_event, self.sort)
        logger.info(f"Traversal of {root} started (concurrency {concurrency_limit})")

        root_entry = FrontierEntry(ROOT_PATH, root)
        if root_entry.oid is not None:
            run.visited.mark_if_absent(root_entry.oid)

        outcome = await self._resolve(root_entry, run)
        if outcome is _CANCELLED:
            return self._finish(run)

        run.settle(root_entry, outcome)
        if not isinstance(outcome, Directory):
            # Nothing to fan out from: a leaf is the whole snapshot,
            # anything else aborts the traversal.
            return self._finish(run)

        workers = [
            asyncio.ensure_future(self._worker(run))
            for _ in range(concurrency_limit)
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            raise

        return self._finish(run)

    def _finish(self, run: _TraversalRun) -> TraversalResult:
        result = run.assembler.get_result(cancelled=run.cancelled)
        logger.info(
            f"Traversal of {run.root} finished: {len(result.snapshot)} leaves, "
            f"{len(result.failures)} failures, {run.started} resolutions, "
            f"completed={result.completed}"
        )
        return result

    async def _worker(self, run: _TraversalRun) -> None:
        """Pull entries off the shared frontier until it drains."""
        while True:
            async with run.condition:
                while not run.frontier and run.in_flight and not run.is_cancelled():
                    await run.condition.wait()
                if run.is_cancelled() or not run.frontier:
                    run.condition.notify_all()
                    return
                entry = run.frontier.popleft()
                run.in_flight += 1

            try:
                outcome = await self._resolve(entry, run)
                if outcome is not _CANCELLED:
                    run.settle(entry, outcome)
            finally:
                async with run.condition:
                    run.in_flight -= 1
                    run.condition.notify_all()

    async def _resolve(self, entry: FrontierEntry, run: _TraversalRun):
        """Resolve one entry, retrying per policy.

        Returns:
            A ResolvedObject, a terminal ResolutionError, or _CANCELLED
        """
        attempt = 0
        while True:
            attempt += 1
            if run.is_cancelled():
                return _CANCELLED

            try:
                return await self._call(entry, run)
            except ResolutionError as e:
                error = e
            except Exception as e:
                error = FatalError(f"{type(e).__name__}: {e}", cause=e)

            path = format_path(entry.path) or '<root>'
            if not self.retry_policy.should_retry(error, attempt):
                if error.retryable:
                    error = RetryExhaustedError(error, attempt)
                logger.warning(f"Failed to resolve {path!r}: {error}")
                return error

            delay = self.retry_policy.delay_for(error, attempt)
            hint = RetryPolicy.retry_after_hint(error)
            if hint is not None and self.limiter is not None:
                self.limiter.pause(hint)
            logger.info(f"Retrying {path!r} in {delay:.2f}s (attempt {attempt}): {error}")
            # A cancel signal cuts the backoff short.
            await sleep_unless_set(delay, run.cancel_event, self._sleep)

    async def _call(self, entry: FrontierEntry, run: _TraversalRun):
        if self.limiter is None:
            run.started += 1
            return await self.resolver.resolve(entry.reference)

        async with self.limiter.slot(run.cancel_event):
            # The wait for a slot may have outlived a cancellation signal.
            if run.is_cancelled():
                return _CANCELLED
            run.started += 1
            return await self.resolver.resolve(entry.reference)
