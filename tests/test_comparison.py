"""Tests for JSON-aware deep comparison."""

from typing import Any

import pytest

from pytest_relay.builtins.comparison import Comparator
from pytest_relay.schema import ComparisonParams


@pytest.mark.parametrize('expected, actual', (
    pytest.param({'a': 1}, {'a': 1}, id='equal mappings'),
    pytest.param({'a': 1}, {'a': 1, 'b': 2}, id='extra fields allowed'),
    pytest.param([1, {'b': [True, None]}], [1, {'b': [True, None]}], id='nested'),
    pytest.param('$matchRegexp(^ab+c$)', 'abbbc', id='regexp'),
    pytest.param({'id': '$matchRegexp(\\d+)'}, {'id': 42}, id='regexp on number'),
    pytest.param(1, 1.0, id='numbers'),
))
def test_compare_equal(expected: Any, actual: Any) -> None:
    """Report no mismatch for matching documents."""
    assert Comparator().compare(expected, actual) == []


@pytest.mark.parametrize('expected, actual, field, message', (
    pytest.param({'a': 1}, {'a': 2}, '$.a', 'value mismatch: expected 1, got 2', id='value'),
    pytest.param({'a': 1}, {}, '$.a', 'field is missing', id='missing field'),
    pytest.param({'a': 1}, {'a': '1'}, '$.a', 'type mismatch: expected number, got string', id='type'),
    pytest.param([1, 2], [1], '$', 'array length mismatch: expected 2, got 1', id='length'),
    pytest.param({'a': [1, 2]}, {'a': [1, 3]}, '$.a[1]', 'value mismatch: expected 2, got 3', id='item'),
    pytest.param(True, 1, '$', 'type mismatch: expected boolean, got number', id='boolean'),
    pytest.param(
        '$matchRegexp(^a$)', 'b', '$',
        "value \"b\" does not match regular expression '^a$'",
        id='regexp',
    ),
    pytest.param(
        '$matchRegexp(.*)', {'a': 1}, '$',
        'type mismatch: expected a scalar, got object',
        id='regexp on object',
    ),
))
def test_compare_mismatch(expected: Any, actual: Any, field: str, message: str) -> None:
    """Report a single mismatch with its JSON path."""
    mismatch, = Comparator(checker='body').compare(expected, actual)

    assert mismatch.field == field
    assert mismatch.message == message
    assert mismatch.checker == 'body'


def test_compare_every_mismatch() -> None:
    """Report every mismatch, not just the first one."""
    mismatches = Comparator().compare(
        {'a': 1, 'b': {'c': 'x'}, 'd': [1]},
        {'a': 2, 'b': {'c': 'y'}, 'd': []},
    )

    assert [mismatch.field for mismatch in mismatches] == ['$.a', '$.b.c', '$.d']


def test_compare_disallow_extra_fields() -> None:
    """Report unexpected fields when extra fields are disallowed."""
    params = ComparisonParams(disallow_extra_fields=True)

    mismatch, = Comparator(params).compare({'a': 1}, {'a': 1, 'b': 2})

    assert mismatch.field == '$.b'
    assert mismatch.message == 'unexpected field'

    assert Comparator().compare({'a': 1}, {'a': 1, 'b': 2}) == []


def test_compare_ignore_arrays_ordering() -> None:
    """Match array items in any order."""
    params = ComparisonParams(ignore_arrays_ordering=True)
    comparator = Comparator(params)

    assert comparator.compare([{'id': 1}, {'id': 2}, 2], [2, {'id': 2}, {'id': 1}]) == []

    mismatch, = comparator.compare([1, 1], [1, 2])
    assert mismatch.field == '$[1]'
    assert mismatch.message == 'no matching item for 1'

    assert len(Comparator().compare([1, 2], [2, 1])) == 2


@pytest.mark.parametrize('expected, actual', (
    pytest.param(['$matchRegexp(.*)', 'a'], ['a', 'b'], id='scalars'),
    pytest.param(
        [{'role': '$matchRegexp(^(admin|user)$)'}, {'role': 'admin'}],
        [{'role': 'admin'}, {'role': 'user'}],
        id='objects',
    ),
    pytest.param([[1, '$matchRegexp(.+)'], [1, 'x']], [[1, 'x'], [1, 'y']], id='arrays'),
))
def test_compare_ignore_arrays_ordering_reassigns(expected: list, actual: list) -> None:
    """Find a matching of array items when a broad item takes an item first."""
    comparator = Comparator(ComparisonParams(ignore_arrays_ordering=True))

    assert comparator.compare(expected, actual) == []


def test_compare_ignore_arrays_ordering_unmatched() -> None:
    """Report only the expected items left without a match."""
    comparator = Comparator(ComparisonParams(ignore_arrays_ordering=True))

    mismatch, = comparator.compare(['$matchRegexp(.*)', 'a', 'a'], ['a', 'b', 'c'])

    assert mismatch.field == '$[2]'
    assert mismatch.message == 'no matching item for "a"'


def test_compare_ignore_values() -> None:
    """Compare structure and types only when values are ignored."""
    comparator = Comparator(ComparisonParams(ignore_values=True))

    assert comparator.compare({'a': 1, 'b': ['x']}, {'a': 2, 'b': ['y']}) == []
    assert comparator.compare('$matchRegexp(^a$)', 'b') == []

    mismatch, = comparator.compare({'a': 1}, {'a': 'one'})
    assert mismatch.message == 'type mismatch: expected number, got string'
