"""Path lookups into decoded JSON documents.

This module provides the resolver used to capture values from JSON
response bodies. Paths use a small dotted notation:

- an optional leading `$` for the document root;
- dot-separated mapping keys;
- list indexes either as numeric segments (`items.0`) or in brackets
  (`items[0]`).
"""

from re import compile as regexp
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pytest_relay.values import Value

_INDEX_PATTERN = regexp(r'\[(\d+)\]')


class Missing:
    """Marker of a path that does not exist in a document."""

    def __repr__(self) -> str:
        """String representation."""
        return '<missing>'

    def __bool__(self) -> bool:
        """Missing values are falsy."""
        return False


MISSING = Missing()


class JsonPathLookup:
    """Resolver for dotted-path access into JSON documents.

    Resolves values from nested data structures (dicts and lists). Unlike
    a plain `None`, a path that can not be followed resolves to `MISSING`,
    so that an explicit JSON `null` stays distinguishable.
    """

    def __init__(self, path: str) -> None:
        """Initialize the resolver with a path.

        Args:
            path: Path describing how to traverse a document.

        Raises:
            ValueError: If the path holds an empty segment.
        """
        self.source = path

        path = path.strip()
        if path.startswith('$'):
            path = path[1:]

        path = _INDEX_PATTERN.sub(r'.\1', path).lstrip('.')

        self.path = path.split('.') if path else []
        if any(not key for key in self.path):
            raise ValueError(f'Invalid JSON path {self.source!r}')

    def __call__(self, document: 'Value') -> 'Value | Missing':
        """Resolve the path against a document."""
        return self.resolve(document)

    def resolve(self, val: 'Value | Missing', depth: int = 1) -> 'Value | Missing':
        """Resolve the path against a value.

        Traverses the provided value according to the configured path.
        Resolution stops early if a segment can not be applied.

        Args:
            val: Current value being resolved.
            depth: Current depth of traversal (used internally).

        Returns:
            The resolved value if the full path is valid, otherwise `MISSING`.
        """
        if val is MISSING or depth > len(self.path):
            return val

        key = self.path[depth - 1]

        next_val: Value | Missing = MISSING
        if isinstance(val, (list, tuple)):
            if key.isdecimal() and 0 <= int(key) < len(val):
                next_val = val[int(key)]
        elif isinstance(val, dict):
            next_val = val.get(key, MISSING)

        return self.resolve(next_val, depth + 1)
