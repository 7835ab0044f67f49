"""Snapshot assembly for tree traversal.

The assembler accumulates (path, content) pairs and per-path failures
produced by concurrent workers and turns them into the final result.
"""

import threading
from collections.abc import Mapping
from typing import Any, Dict, Iterator, List, NamedTuple, Tuple, Union

from .paths import format_path, split_path
from .reference import TreePath
from ...errors import ResolutionError


Failure = Tuple[TreePath, ResolutionError]


class Snapshot(Mapping):
    """Read-only mapping from tree path to leaf content.

    Keys are path tuples; lookups also accept '/'-separated strings.
    """

    def __init__(self, entries: Dict[TreePath, str] = None, sort: bool = True):
        entries = dict(entries or {})
        if sort:
            entries = dict(sorted(entries.items()))
        self._entries = entries

    def __getitem__(self, key: Union[TreePath, str]) -> str:
        if isinstance(key, str):
            key = split_path(key)
        return self._entries[key]

    def __iter__(self) -> Iterator[TreePath]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Snapshot):
            return self._entries == other._entries
        return super().__eq__(other)

    def as_dict(self, separator: str = '/') -> Dict[str, str]:
        """Render with string keys. A leaf root is keyed by ''."""
        return {format_path(path, separator): text for path, text in self._entries.items()}

    def to_tree(self) -> Union[str, Dict[str, Any]]:
        """Render as nested dicts: directories are dicts, files are text.

        A snapshot of a single root leaf renders as that leaf's text.
        """
        if () in self._entries:
            return self._entries[()]

        tree: Dict[str, Any] = {}
        for path, text in self._entries.items():
            node = tree
            for segment in path[:-1]:
                node = node.setdefault(segment, {})
            node[path[-1]] = text
        return tree

    def __repr__(self) -> str:
        return f"Snapshot({self.as_dict()!r})"


class TraversalResult(NamedTuple):
    """Outcome of one traversal run.

    `completed` is True only if every frontier entry resolved and the
    run was not cancelled; a partial snapshot is never mistaken for a
    full one.
    """

    snapshot: Snapshot
    failures: List[Failure]
    completed: bool
    cancelled: bool = False

    def failure_dict(self, separator: str = '/') -> Dict[str, ResolutionError]:
        return {format_path(path, separator): error for path, error in self.failures}


class SnapshotAssembler:
    """Collects leaves and failures from concurrent resolutions.

    Both record methods are lock protected so workers may call them
    from any task or thread.
    """

    def __init__(self, sort: bool = True):
        self.sort = sort
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        """Reset collected state.

        Called before starting a new traversal.
        """
        with self._lock:
            self.entries: Dict[TreePath, str] = {}
            self.failures: List[Failure] = []

    def record(self, path: TreePath, content: str) -> None:
        with self._lock:
            self.entries[path] = content

    def record_failure(self, path: TreePath, error: ResolutionError) -> None:
        with self._lock:
            self.failures.append((path, error))

    @property
    def leaf_count(self) -> int:
        with self._lock:
            return len(self.entries)

    def get_result(self, cancelled: bool = False) -> TraversalResult:
        """Get final collected result.

        Args:
            cancelled: Whether the run stopped on a cancellation signal

        Returns:
            TraversalResult with snapshot, failures and completion flags
        """
        with self._lock:
            failures = list(self.failures)
            if self.sort:
                failures.sort(key=lambda item: item[0])
            return TraversalResult(
                snapshot=Snapshot(self.entries, sort=self.sort),
                failures=failures,
                completed=not failures and not cancelled,
                cancelled=cancelled,
            )
