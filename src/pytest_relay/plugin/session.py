"""Run-wide state of a pytest session.

A session lazily builds one runner for all collected tests: its
variable store lives as long as the pytest session, and its HTTP client
is created on the first executed test only.
"""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pytest_relay.builtins.checkers import BodyChecker, HeaderChecker
from pytest_relay.builtins.openapi import SchemaChecker
from pytest_relay.runner import Runner, RunnerConfig

if TYPE_CHECKING:
    from httpx import BaseTransport

if TYPE_CHECKING:
    from pytest_relay.extensions import Checker, FixtureLoader
    from pytest_relay.schema import CompiledTest, Result


class RelaySession:
    """Shared runner of the tests of a pytest session.

    Attributes `transport`, `fixtures_loader` and `checkers` may be set
    from a `conftest.py` before the first test runs.
    """

    def __init__(self, *, host: str | None = None,
                 spec: str | None = None,
                 timeout: float | None = None) -> None:
        """Initialize a session.

        Args:
            host: Base URL of the service under test.
            spec: Path to an OpenAPI document.
            timeout: Seconds to wait for every response.
        """
        self.host = host
        self.spec = spec
        self.timeout = timeout

        self.transport: BaseTransport | None = None
        self.fixtures_loader: FixtureLoader | None = None
        self.checkers: list[Checker] = []

        #: Run-time variables of the sources collected so far
        self.variable_names: set[str] = set()

        self._runner: Runner | None = None

    @property
    def runner(self) -> Runner:
        """Runner shared by every test, built on first use.

        Raises:
            pytest.UsageError: If the target host is not configured.
        """
        if self._runner is None:
            if not self.host:
                raise pytest.UsageError('Missing target host: use --relay-host or RELAY_HOST')

            runner = Runner(RunnerConfig(
                host=self.host,
                timeout=self.timeout,
                transport=self.transport,
                fixtures_loader=self.fixtures_loader,
            ))
            runner.add_checkers(BodyChecker(), HeaderChecker())
            if self.spec:
                runner.add_checkers(SchemaChecker.from_file(Path(self.spec)))
            runner.add_checkers(*self.checkers)

            self._runner = runner

        return self._runner

    def execute(self, test: 'CompiledTest') -> 'Result':
        """Execute a compiled test with the shared runner."""
        return self.runner.execute(test)

    def close(self) -> None:
        """Close the runner if it was built."""
        if self._runner is not None:
            self._runner.close()
