"""Value types exchanged between the traversal engine and resolvers.

References say *which* remote object to fetch, resolved objects say *what*
came back. Both are immutable once constructed.
"""

from dataclasses import dataclass
from typing import Tuple, Union


# Tree paths are tuples of name segments; the root path is ().
TreePath = Tuple[str, ...]


@dataclass(frozen=True)
class ByRevision:
    """Reference to the root object through a revision expression.

    Used exactly once per traversal; every descendant is addressed
    by identifier.
    """

    owner: str
    repo: str
    expression: str

    def child(self, oid: str) -> 'ByIdentifier':
        return ByIdentifier(self.owner, self.repo, oid)


@dataclass(frozen=True)
class ByIdentifier:
    """Reference to an object through its content identifier."""

    owner: str
    repo: str
    oid: str

    def child(self, oid: str) -> 'ByIdentifier':
        return ByIdentifier(self.owner, self.repo, oid)


ObjectReference = Union[ByRevision, ByIdentifier]


@dataclass(frozen=True)
class DirectoryEntry:
    """One named child in a directory listing."""

    name: str
    oid: str


class ResolvedObject:
    """Base class of the three outcomes a resolver may return."""

    __slots__ = ()


@dataclass(frozen=True)
class Leaf(ResolvedObject):
    """Terminal object holding text content."""

    text: str


@dataclass(frozen=True)
class Directory(ResolvedObject):
    """Non-terminal object listing named children in remote order."""

    entries: Tuple[DirectoryEntry, ...] = ()

    @classmethod
    def of(cls, *pairs: Tuple[str, str]) -> 'Directory':
        """Build a directory from (name, oid) pairs."""
        return cls(tuple(DirectoryEntry(name, oid) for name, oid in pairs))


@dataclass(frozen=True)
class UnrecognizedObject(ResolvedObject):
    """Remote object of a kind the engine does not know how to walk.

    Attributes:
        kind: The remote type name (e.g. 'Commit', 'Tag')
    """

    kind: str


@dataclass(frozen=True)
class FrontierEntry:
    """A (path, reference) pair awaiting resolution."""

    path: TreePath
    reference: ObjectReference

    @property
    def oid(self):
        """Identifier of the referenced object, None for the root."""
        return getattr(self.reference, 'oid', None)
