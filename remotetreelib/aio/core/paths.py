"""Path accumulation helpers.

Pure functions; no state. Paths are tuples so they hash, sort and
compare segment by segment.
"""

from .reference import TreePath


ROOT_PATH: TreePath = ()


def join_path(parent: TreePath, name: str) -> TreePath:
    """Return the path of child `name` under `parent`."""
    return parent + (name,)


def format_path(path: TreePath, separator: str = '/') -> str:
    """Render a path as a string. The root renders as ''."""
    return separator.join(path)


def split_path(text: str, separator: str = '/') -> TreePath:
    """Parse a rendered path back into segments.

    Empty segments are dropped, so '', '/' and 'a//b' behave sensibly.
    """
    return tuple(part for part in text.split(separator) if part)
