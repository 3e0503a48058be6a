"""Compile-time placeholder substitution.

Templates use a single placeholder form, `{{ $name }}`, resolved
against a mapping of case arguments. There are no expressions, filters
or control structures.
"""

from typing import TYPE_CHECKING

from pytest_relay.names import PLACEHOLDER_PATTERN
from pytest_relay.values import to_text

if TYPE_CHECKING:
    from collections.abc import Collection, Mapping
    from re import Match

if TYPE_CHECKING:
    from pytest_relay.values import Value


class PlaceholderError(LookupError):
    """Raised when a placeholder has no argument to resolve to."""

    def __init__(self, name: str) -> None:
        """Initialize the error.

        Args:
            name: Name of the unresolved placeholder.
        """
        self.name = name

        super().__init__(name)


class Template:
    """Argument set applied to templates of a single case.

    Substitution is single pass: text produced by an argument is never
    scanned for placeholders again.
    """

    def __init__(self, arguments: 'Mapping[str, Value]', *,
                 reserved: 'Collection[str]' = ()) -> None:
        """Initialize the argument set.

        Args:
            arguments: Case arguments by name.
            reserved: Names of run-time variables. Placeholders naming
                them are left in place when no argument matches.
        """
        self.arguments = arguments
        self.reserved = frozenset(reserved)

    def _replace(self, match: 'Match[str]') -> str:
        """Resolve a single placeholder match."""
        name = match.group('name')

        if name in self.arguments:
            return to_text(self.arguments[name])

        if name in self.reserved:
            return match.group(0)

        raise PlaceholderError(name)

    def render(self, template: str) -> str:
        """Substitute arguments into a template.

        Args:
            template: Template text.

        Returns:
            Rendered text.

        Raises:
            PlaceholderError: If a placeholder is neither an argument nor
                a reserved run-time variable.
        """
        return PLACEHOLDER_PATTERN.sub(self._replace, template)

    def render_map(self, templates: 'Mapping[str, str]') -> dict[str, str]:
        """Substitute arguments into every value of a mapping."""
        return {
            key: self.render(value)
            for key, value in templates.items()
        }
