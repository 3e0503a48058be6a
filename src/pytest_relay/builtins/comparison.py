"""JSON-aware deep comparison of expected and actual documents.

The comparison walks the expected document and reports every difference
it finds, each with the JSON path where it was found. Comparison is
tuned by the flags of a test:

- `ignore_values`: only structure and value types are compared;
- `ignore_arrays_ordering`: array items may appear in any order;
- `disallow_extra_fields`: mapping keys that are not expected are reported.

An expected string of the form `$matchRegexp(<pattern>)` matches any
scalar whose text contains a match of the pattern.
"""

from json import dumps
from re import DOTALL, UNICODE, search
from re import compile as regexp
from re import error as PatternError
from typing import TYPE_CHECKING

from pytest_relay.schema import ComparisonParams, Mismatch
from pytest_relay.values import MAPPINGS, SEQUENCES, to_text

if TYPE_CHECKING:
    from pytest_relay.values import Value

REGEXP_PATTERN = regexp(r'^\$matchRegexp\((?P<pattern>.*)\)$', flags=DOTALL)

ROOT_PATH = '$'


def type_name(value: 'Value') -> str:
    """Return the JSON type name of a value."""
    if value is None:
        return 'null'
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, (int, float)):
        return 'number'
    if isinstance(value, str):
        return 'string'
    if isinstance(value, MAPPINGS):
        return 'object'
    if isinstance(value, SEQUENCES):
        return 'array'

    return type(value).__name__


def _render(value: 'Value') -> str:
    """Render a value for a mismatch message."""
    return dumps(value, ensure_ascii=False)


class Comparator:
    """Deep comparator of decoded JSON documents."""

    def __init__(self, params: ComparisonParams | None = None, *,
                 checker: str | None = None) -> None:
        """Initialize a comparator.

        Args:
            params: Comparison flags.
            checker: Checker name recorded on every mismatch.
        """
        self.params = params or ComparisonParams()
        self.checker = checker

    def mismatch(self, path: str, message: str) -> Mismatch:
        """Build a mismatch found at a path."""
        return Mismatch(message=message, field=path, checker=self.checker)

    def compare(self, expected: 'Value', actual: 'Value',
                path: str = ROOT_PATH) -> list[Mismatch]:
        """Compare an expected value with an actual one.

        Args:
            expected: Expected value.
            actual: Actual value.
            path: JSON path of the compared values.

        Returns:
            Every mismatch found, empty if the values match.
        """
        if isinstance(expected, str) and (match := REGEXP_PATTERN.match(expected)):
            return self._compare_regexp(match.group('pattern'), actual, path)

        expected_type, actual_type = type_name(expected), type_name(actual)
        if expected_type != actual_type:
            return [self.mismatch(
                path,
                f'type mismatch: expected {expected_type}, got {actual_type}',
            )]

        if isinstance(expected, MAPPINGS):
            return self._compare_mappings(expected, actual, path)  # type: ignore[arg-type]

        if isinstance(expected, SEQUENCES):
            return self._compare_sequences(expected, actual, path)  # type: ignore[arg-type]

        if self.params.ignore_values or expected == actual:
            return []

        return [self.mismatch(
            path,
            f'value mismatch: expected {_render(expected)}, got {_render(actual)}',
        )]

    def _compare_regexp(self, pattern: str, actual: 'Value', path: str) -> list[Mismatch]:
        """Match a scalar against a regular expression."""
        if self.params.ignore_values:
            return []

        if isinstance(actual, (*MAPPINGS, *SEQUENCES)):
            return [self.mismatch(
                path,
                f'type mismatch: expected a scalar, got {type_name(actual)}',
            )]

        try:
            matched = search(pattern, to_text(actual), UNICODE) is not None
        except PatternError as base:
            return [self.mismatch(path, f'invalid regular expression {pattern!r}: {base}')]

        if matched:
            return []

        return [self.mismatch(
            path,
            f'value {_render(actual)} does not match regular expression {pattern!r}',
        )]

    def _compare_mappings(self, expected: dict, actual: dict, path: str) -> list[Mismatch]:
        """Compare mappings key by key."""
        mismatches = []

        for key, value in expected.items():
            key_path = f'{path}.{key}'
            if key not in actual:
                mismatches.append(self.mismatch(key_path, 'field is missing'))
            else:
                mismatches.extend(self.compare(value, actual[key], key_path))

        if self.params.disallow_extra_fields:
            mismatches.extend(
                self.mismatch(f'{path}.{key}', 'unexpected field')
                for key in actual
                if key not in expected
            )

        return mismatches

    def _compare_sequences(self, expected: list, actual: list, path: str) -> list[Mismatch]:
        """Compare arrays, honoring the ordering flag."""
        if len(expected) != len(actual):
            return [self.mismatch(
                path,
                f'array length mismatch: expected {len(expected)}, got {len(actual)}',
            )]

        if not self.params.ignore_arrays_ordering:
            return [
                mismatch
                for index, (expected_item, actual_item) in enumerate(zip(expected, actual, strict=True))
                for mismatch in self.compare(expected_item, actual_item, f'{path}[{index}]')
            ]

        candidates = [
            [
                position
                for position, actual_item in enumerate(actual)
                if not self.compare(expected_item, actual_item, f'{path}[{position}]')
            ]
            for expected_item in expected
        ]

        #: Index of the expected item every matched actual position is taken by
        owners: dict[int, int] = {}

        def assign(index: int, visited: set[int]) -> bool:
            for position in candidates[index]:
                if position in visited:
                    continue
                visited.add(position)
                if position not in owners or assign(owners[position], visited):
                    owners[position] = index
                    return True
            return False

        mismatches = []
        for index, expected_item in enumerate(expected):
            if not assign(index, set()):
                mismatches.append(self.mismatch(
                    f'{path}[{index}]',
                    f'no matching item for {_render(expected_item)}',
                ))

        return mismatches
