"""Core abstractions for async remote tree traversal.

This module defines the fundamental interfaces for resolving a remote
tree: references, resolved objects, the resolver adapter, and the
engine that walks them.
"""

from .reference import (
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
)
from .adapter import AsyncObjectResolver
from .paths import ROOT_PATH, join_path, format_path, split_path
from .visited import VisitedSet
from .collector import Snapshot, SnapshotAssembler, TraversalResult
from .traverser import TraversalEngine

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
    # Resolver
    'AsyncObjectResolver',
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
]
