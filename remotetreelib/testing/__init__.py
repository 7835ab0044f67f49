"""Testing utilities for RemoteTreeLib consumers."""

from .fixtures import InMemoryObjectStore

__all__ = ['InMemoryObjectStore']
