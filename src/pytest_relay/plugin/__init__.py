"""Pytest plugin for collecting and executing YAML test sources.

This module integrates `pytest-relay` with pytest by:
- registering custom command-line options;
- configuring a shared compiler and a run-wide session;
- collecting YAML files as test sources.

YAML files matching the pattern `test_*.yml` or `test_*.yaml` are
automatically collected, and every compiled test becomes a pytest item.
All items of a pytest session share one runner and one variable store,
so values captured by a test are relayed to the tests collected after it.
"""

from re import match
from typing import TYPE_CHECKING

from pytest_relay.core import TestCompiler
from pytest_relay.settings import RelaySettings

from .session import RelaySession
from .spec import RelaySpec

if TYPE_CHECKING:
    from pathlib import Path

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.nodes import Node


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line options for pytest-relay.

    Args:
        parser: Pytest argument parser.
    """
    group = parser.getgroup('relay', 'HTTP API tests')
    group.addoption(
        '--relay-host',
        action='store',
        dest='relay_host',
        default=None,
        help='Base URL of the service under test (default: RELAY_HOST).',
    )
    group.addoption(
        '--relay-spec',
        action='store',
        dest='relay_spec',
        default=None,
        help=(
            'OpenAPI or Swagger document to validate responses against '
            '(default: RELAY_SPEC).'
        ),
    )
    group.addoption(
        '--relay-timeout',
        action='store',
        dest='relay_timeout',
        type=float,
        default=None,
        help='Seconds to wait for every response (default: RELAY_TIMEOUT).',
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-relay integration.

    This hook attaches a shared `TestCompiler` as `config.relay_compiler`
    and a run-wide `RelaySession` as `config.relay_session`. Options take
    precedence over settings from the environment.

    Args:
        config: Pytest configuration object.
    """
    settings = RelaySettings()

    spec = config.getoption('relay_spec', default=None) or settings.spec

    config.relay_compiler = TestCompiler()  # type: ignore[attr-defined]
    config.relay_session = RelaySession(  # type: ignore[attr-defined]
        host=config.getoption('relay_host', default=None) or settings.host,
        spec=f'{spec}' if spec else None,
        timeout=config.getoption('relay_timeout', default=None) or settings.timeout,
    )


def pytest_unconfigure(config: 'Config') -> None:
    """Release the HTTP client of the session."""
    if session := getattr(config, 'relay_session', None):
        session.close()


def pytest_collect_file(parent: 'Node', file_path: 'Path') -> RelaySpec | None:
    """Collect YAML test source files.

    Files matching the pattern `test_*.yml` or `test_*.yaml` are treated
    as test sources and collected using `RelaySpec`.

    Args:
        parent: Parent pytest collection node.
        file_path: Path to the file being considered.

    Returns:
        A `RelaySpec` collector if the file matches the pattern, otherwise `None`.
    """
    if match(r'^test_.+\.ya?ml$', file_path.name):
        return RelaySpec.from_parent(
            parent,
            path=file_path,
        )

    return None
