"""Tests for test source tree traversal."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pytest_relay.core import TestLoader
from pytest_relay.errors import CompileError

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem
    from pytest_mock import MockerFixture


def make_tree(fs: 'FakeFilesystem') -> None:
    """Create a tree of test sources."""
    fs.create_file('/suite/b/test_orders.yml', contents='- name: orders\n')
    fs.create_file('/suite/a/test_users.yaml', contents='- name: users 1\n- name: users 2\n')
    fs.create_file('/suite/a/body.json', contents='{}')
    fs.create_file('/suite/readme.md', contents='# not a source')
    fs.create_file('/suite/c.yaml', contents='- name: c\n')


def test_discover(fs: 'FakeFilesystem') -> None:
    """List YAML sources in lexicographic order."""
    make_tree(fs)

    files = TestLoader('/suite').discover()

    assert [path.as_posix() for path in files] == [
        '/suite/a/test_users.yaml',
        '/suite/b/test_orders.yml',
        '/suite/c.yaml',
    ]


def test_discover_filtered(fs: 'FakeFilesystem') -> None:
    """Narrow sources down by a path substring."""
    make_tree(fs)

    files = TestLoader('/suite', file_filter='orders').discover()

    assert files == [Path('/suite/b/test_orders.yml')]


def test_discover_single_file(fs: 'FakeFilesystem') -> None:
    """Accept a single source file."""
    make_tree(fs)

    assert TestLoader('/suite/c.yaml').discover() == [Path('/suite/c.yaml')]


def test_discover_missing(fs: 'FakeFilesystem') -> None:  # noqa: ARG001
    """Reject a location that does not exist."""
    with pytest.raises(CompileError, match=r'^Tests location does not exist'):
        TestLoader('/absent').discover()


def test_load(fs: 'FakeFilesystem') -> None:
    """Yield compiled tests of every source in traversal order."""
    make_tree(fs)

    names = [test.name for test in TestLoader('/suite')]

    assert names == ['users 1', 'users 2', 'orders', 'c']


def test_load_lazily(fs: 'FakeFilesystem', mocker: 'MockerFixture') -> None:
    """Parse a source only when its tests are reached."""
    make_tree(fs)
    fs.create_file('/suite/d.yaml', contents='- name: [broken\n')

    loader = TestLoader('/suite')
    parse_file = mocker.spy(loader.compiler, 'parse_file')

    tests = iter(loader)
    assert next(tests).name == 'users 1'
    assert parse_file.call_count == 1

    names = []
    with pytest.raises(CompileError, match=r'^Invalid YAML'):
        for test in tests:
            names.append(test.name)  # noqa: PERF401

    assert names == ['users 2', 'orders', 'c']


def test_load_variables_across_sources(fs: 'FakeFilesystem') -> None:
    """Keep placeholders of variables captured by an earlier source."""
    fs.create_file('/suite/a_login.yaml', contents=(
        '- name: login\n'
        '  method: POST\n'
        '  path: /login\n'
        '  variables_to_set:\n'
        '    200:\n'
        '      token: $.token\n'
    ))
    fs.create_file('/suite/b_users.yaml', contents=(
        '- name: users\n'
        '  path: /users/{{ $id }}\n'
        '  headers:\n'
        '    Authorization: Bearer {{ $token }}\n'
        '  cases:\n'
        '    - requestArgs:\n'
        '        id: 1\n'
        '    - requestArgs:\n'
        '        id: 2\n'
    ))

    login, first, second = TestLoader('/suite')

    assert login.name == 'login'
    assert first.path == '/users/1'
    assert second.path == '/users/2'
    assert first.headers == {'Authorization': 'Bearer {{ $token }}'}


def test_load_variables_of_later_sources(fs: 'FakeFilesystem') -> None:
    """Reject placeholders of variables set only by a later source."""
    fs.create_file('/suite/a_users.yaml', contents=(
        '- name: users\n'
        '  path: /users/{{ $token }}\n'
        '  cases:\n'
        '    - requestArgs: {}\n'
    ))
    fs.create_file('/suite/b_login.yaml', contents=(
        '- name: login\n'
        '  variables:\n'
        '    token: abc\n'
    ))

    with pytest.raises(CompileError, match=r'^Unresolved placeholder \{\{ \$token \}\}'):
        list(TestLoader('/suite'))
