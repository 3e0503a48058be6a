"""Tests for JSON path resolvers."""

from typing import Any

import pytest

from pytest_relay.builtins.lookups import MISSING, JsonPathLookup


@pytest.mark.parametrize('path, document, expected', (
    pytest.param(
        '$.token',
        {'token': 'abc'},
        'abc',
        id='root key',
    ),
    pytest.param(
        'token',
        {'token': 'abc'},
        'abc',
        id='key without root',
    ),
    pytest.param(
        '$.items[1].id',
        {'items': [{'id': 1}, {'id': 2}]},
        2,
        id='bracket index',
    ),
    pytest.param(
        'items.0.tags',
        {'items': [{'tags': ['a']}]},
        ['a'],
        id='numeric segment',
    ),
    pytest.param(
        '$[0]',
        [{'id': 1}],
        {'id': 1},
        id='root array',
    ),
    pytest.param(
        '$.owner',
        {'owner': None},
        None,
        id='explicit null',
    ),
    pytest.param(
        '$',
        {'a': 1},
        {'a': 1},
        id='whole document',
    ),
))
def test_resolve(path: str, document: Any, expected: Any) -> None:
    """Resolve values by path."""
    assert JsonPathLookup(path)(document) == expected


@pytest.mark.parametrize('path, document', (
    pytest.param('$.absent', {'a': 1}, id='missing key'),
    pytest.param('$.items[5]', {'items': [1]}, id='index out of range'),
    pytest.param('$.items.first', {'items': [1]}, id='key on array'),
    pytest.param('$.a.b', {'a': 42}, id='key on scalar'),
))
def test_resolve_missing(path: str, document: Any) -> None:
    """Resolve paths that can not be followed to a marker."""
    resolved = JsonPathLookup(path)(document)

    assert resolved is MISSING
    assert not resolved


@pytest.mark.parametrize('path', (
    pytest.param('$.a..b', id='empty segment'),
    pytest.param('a.', id='trailing dot'),
))
def test_invalid_path(path: str) -> None:
    """Reject paths with empty segments."""
    with pytest.raises(ValueError, match=r'^Invalid JSON path'):
        JsonPathLookup(path)
