"""Tests for the database state checker."""

import sqlite3
from typing import TYPE_CHECKING, Any

import pytest

from pytest_relay.builtins.database import DatabaseChecker
from pytest_relay.schema import CompiledTest, Result

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def connection() -> 'Iterator[sqlite3.Connection]':
    """Provide an in-memory database with a users table."""
    connection = sqlite3.connect(':memory:')
    connection.executescript('''
        CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, tags TEXT);
        INSERT INTO users (id, name, tags) VALUES (1, 'John', 'admin');
        INSERT INTO users (id, name, tags) VALUES (2, 'Jane', NULL);
    ''')

    yield connection

    connection.close()


def make_test(**fields: Any) -> CompiledTest:
    """Build a compiled test from source notation."""
    return CompiledTest.model_validate({'name': 'checked', **fields})


def test_database_match(connection: sqlite3.Connection) -> None:
    """Accept rows equal to the expected ones and record them."""
    test = make_test(
        db_query='SELECT id, name FROM users ORDER BY id',
        db_response=['{"id": 1, "name": "John"}', '{"id": 2, "name": "Jane"}'],
    )
    result = Result(test=test)

    assert DatabaseChecker(connection).check(test, result) == []
    assert result.db_query == 'SELECT id, name FROM users ORDER BY id'
    assert result.db_response == ['{"id":1,"name":"John"}', '{"id":2,"name":"Jane"}']


def test_database_mismatch(connection: sqlite3.Connection) -> None:
    """Report every differing column."""
    test = make_test(
        db_query='SELECT id, name, tags FROM users ORDER BY id',
        db_response=['{"id": 1, "name": "Jim", "tags": "admin"}', '{"id": 2, "name": "Jane", "tags": "user"}'],
    )

    mismatches = DatabaseChecker(connection).check(test, Result(test=test))

    assert [(mismatch.field, mismatch.checker) for mismatch in mismatches] == [
        ('$[0].name', 'database'),
        ('$[1].tags', 'database'),
    ]


def test_database_row_count(connection: sqlite3.Connection) -> None:
    """Report a different number of rows."""
    test = make_test(
        db_query='SELECT name FROM users',
        db_response=['{"name": "John"}'],
    )

    mismatch, = DatabaseChecker(connection).check(test, Result(test=test))

    assert mismatch.message == 'array length mismatch: expected 1, got 2'


def test_database_ignore_ordering(connection: sqlite3.Connection) -> None:
    """Honor the comparison flags of the test."""
    test = make_test(
        db_query='SELECT name FROM users ORDER BY id DESC',
        db_response=['{"name": "John"}', '{"name": "Jane"}'],
        comparison={'ignoreArraysOrdering': True},
    )

    assert DatabaseChecker(connection).check(test, Result(test=test)) == []


def test_database_not_declared(connection: sqlite3.Connection) -> None:
    """Skip tests without a database query."""
    test = make_test()
    result = Result(test=test)

    assert DatabaseChecker(connection).check(test, result) == []
    assert result.db_query == ''


def test_database_query_error(connection: sqlite3.Connection) -> None:
    """Fail hard on query errors."""
    test = make_test(db_query='SELECT * FROM absent')

    with pytest.raises(sqlite3.OperationalError):
        DatabaseChecker(connection).check(test, Result(test=test))


def test_database_invalid_row(connection: sqlite3.Connection) -> None:
    """Fail hard on expected rows that are not JSON."""
    test = make_test(db_query='SELECT 1', db_response=['{broken'])

    with pytest.raises(ValueError, match=r'^Expected database row #0 is not valid JSON'):
        DatabaseChecker(connection).check(test, Result(test=test))
