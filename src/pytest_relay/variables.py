"""Run-scoped variable store.

Variables are named strings referenced as `{{ $name }}` in any template
field of a compiled test. They are declared with defaults by tests,
overwritten by values captured from responses, and substituted into
every following test of the run.

The store is mutated only between sequential test executions and needs
no locking.
"""

from json import JSONDecodeError, loads
from typing import TYPE_CHECKING

from pytest_relay.builtins.lookups import MISSING, JsonPathLookup
from pytest_relay.errors import CaptureError
from pytest_relay.names import placeholder_pattern
from pytest_relay.values import to_text

if TYPE_CHECKING:
    from collections.abc import Mapping
    from re import Pattern

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest


class Variable:
    """A named variable with a current and a default value."""

    __slots__ = ('default', 'name', 'pattern', 'value')

    def __init__(self, name: str, value: str) -> None:
        """Initialize a variable.

        Args:
            name: Variable name.
            value: Initial value, also kept as the default.
        """
        self.name = name
        self.value = value
        self.default = value
        self.pattern: Pattern[str] = placeholder_pattern(name)

    def __repr__(self) -> str:
        """String representation."""
        return f'Variable(name={self.name!r}, value={self.value!r})'

    def perform(self, text: str) -> str:
        """Replace every placeholder of the variable with its value."""
        return self.pattern.sub(lambda _: self.value, text)


class VariableStore:
    """Store of run-scoped variables."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._variables: dict[str, Variable] = {}

    def __contains__(self, name: object) -> bool:
        """Whether a variable is known."""
        return name in self._variables

    def __len__(self) -> int:
        """Number of known variables."""
        return len(self._variables)

    @property
    def names(self) -> tuple[str, ...]:
        """Names of known variables in registration order."""
        return tuple(self._variables)

    def get(self, name: str, default: str | None = None) -> str | None:
        """Return the current value of a variable."""
        if (variable := self._variables.get(name)) is None:
            return default

        return variable.value

    def load(self, bindings: 'Mapping[str, str]') -> None:
        """Register declared variables.

        A name that is already known keeps its current and default values:
        the first declaration wins, later values come from captures only.

        Args:
            bindings: Variable names with their default values.
        """
        for name, value in bindings.items():
            if name not in self._variables:
                self._variables[name] = Variable(name, value)

    def merge(self, captured: 'Mapping[str, str]') -> None:
        """Overwrite current values of variables, creating unknown ones.

        Default values are left untouched.

        Args:
            captured: Variable names with their new values.
        """
        for name, value in captured.items():
            if (variable := self._variables.get(name)) is None:
                self._variables[name] = Variable(name, value)
            else:
                variable.value = value

    def perform(self, text: str) -> str:
        """Substitute every known variable into a text."""
        for variable in self._variables.values():
            text = variable.perform(text)

        return text

    def apply(self, test: 'CompiledTest') -> 'CompiledTest':
        """Return a copy of a test with known variables substituted.

        Args:
            test: Compiled test.

        Returns:
            A new compiled test; the given one is left unchanged.
        """
        if not self._variables:
            return test

        return test.transform(self.perform)

    @staticmethod
    def from_response(bindings: 'Mapping[str, str] | None',
                      body: str, is_json: bool) -> dict[str, str] | None:
        """Capture variables from a response body.

        An empty path captures the raw body text verbatim. A non-empty
        path is evaluated against the decoded JSON body and the result is
        rendered as text: strings as they are, other values as JSON.

        Args:
            bindings: Variable names with their extraction paths.
            body: Raw response body.
            is_json: Whether the body holds JSON.

        Returns:
            Captured values by variable name, or `None` if there are no
            bindings.

        Raises:
            CaptureError: If a path is used on a non-JSON body, the body
                can not be decoded, or a path does not exist in the body.
        """
        if not bindings:
            return None

        document = MISSING
        captured = {}

        for name, path in bindings.items():
            if not path:
                captured[name] = body
                continue

            if not is_json:
                raise CaptureError(
                    f'Unable to capture {name!r} by path {path!r}: response is not JSON',
                )

            if document is MISSING:
                try:
                    document = loads(body)
                except JSONDecodeError as base:
                    raise CaptureError(f'Unable to decode JSON response: {base}') from base

            try:
                value = JsonPathLookup(path)(document)
            except ValueError as base:
                raise CaptureError(f'Unable to capture {name!r}: {base}') from base

            if value is MISSING:
                raise CaptureError(f'Path {path!r} does not exist in response for {name!r}')

            captured[name] = to_text(value)

        return captured
