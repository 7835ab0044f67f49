"""Identifier deduplication for one traversal run.

Content-addressed trees share objects: two directory entries may name the
same identifier. The visited set makes sure each identifier is fetched at
most once and remembers which other paths are waiting on that fetch, so
its outcome can be fanned out to them without another remote call.
"""

import threading
from collections import defaultdict
from typing import Dict, List, Optional, Union

from .reference import ResolvedObject, TreePath
from ...errors import ResolutionError


Outcome = Union[ResolvedObject, ResolutionError]


class VisitedSet:
    """Thread-safe set of identifiers already scheduled for resolution.

    All operations are test-and-set under a single lock, so the set is
    safe to share between workers on one event loop or across threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seen = set()
        self._outcomes: Dict[str, Outcome] = {}
        self._aliases: Dict[str, List[TreePath]] = defaultdict(list)

    def mark_if_absent(self, oid: str) -> bool:
        """Mark an identifier as scheduled.

        Returns:
            True if the caller is the first to see it and must fetch it
        """
        with self._lock:
            if oid in self._seen:
                return False
            self._seen.add(oid)
            return True

    def add_alias(self, oid: str, path: TreePath) -> Optional[Outcome]:
        """Attach another path to an already scheduled identifier.

        Returns:
            The identifier's outcome if it has settled (the caller fans it
            out right away), or None if the fetch is still pending (the
            path is queued and handed back by settle()).
        """
        with self._lock:
            if oid in self._outcomes:
                return self._outcomes[oid]
            self._aliases[oid].append(path)
            return None

    def settle(self, oid: str, outcome: Outcome) -> List[TreePath]:
        """Store the outcome of a fetch and drain its waiting paths."""
        with self._lock:
            self._outcomes[oid] = outcome
            return self._aliases.pop(oid, [])

    def outcome(self, oid: str) -> Optional[Outcome]:
        with self._lock:
            return self._outcomes.get(oid)

    def __contains__(self, oid: str) -> bool:
        with self._lock:
            return oid in self._seen

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)

    def __repr__(self) -> str:
        return f"VisitedSet(seen={len(self)}, settled={len(self._outcomes)})"
