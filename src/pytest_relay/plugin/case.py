"""Pytest item executing a single compiled test."""

from typing import TYPE_CHECKING

import pytest
from click import unstyle

from pytest_relay.builtins.reporters import ConsoleReporter
from pytest_relay.errors import RelayError, RunError

if TYPE_CHECKING:
    from typing import Any

if TYPE_CHECKING:
    from _pytest._code.code import ExceptionInfo, TerminalRepr

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest


class RelayCase(pytest.Item):
    """Pytest item executing a compiled test with the session runner.

    Mismatches fail the item only. A hard error fails the item and stops
    the pytest session, as tests collected after it may depend on state
    the failed test was expected to produce.
    """

    def __init__(self, *, test: 'CompiledTest', **kwargs: 'Any') -> None:
        """Initialize a pytest item backed by a compiled test.

        Args:
            test: Compiled test.
            **kwargs: Keyword pytest.Item arguments.
        """
        super().__init__(**kwargs)

        self.test = test

    def runtest(self) -> None:
        """Execute the compiled test.

        Raises:
            AssertionError: If any checker reported a mismatch.
            RunError: On a hard error.
        """
        try:
            result = self.config.relay_session.execute(self.test)  # type: ignore[attr-defined]
        except RunError:
            self.session.shouldstop = f'Hard error in test {self.test.name!r}'
            raise

        if not result.passed:
            raise AssertionError(unstyle(ConsoleReporter.render(self.test, result)))

    def repr_failure(self, excinfo: 'ExceptionInfo[BaseException]',
                     style: 'Any' = None) -> 'str | TerminalRepr':
        """Represent a failure without the runner traceback."""
        if isinstance(excinfo.value, (AssertionError, RelayError)):
            return f'{excinfo.value}'

        return super().repr_failure(excinfo, style=style)

    def reportinfo(self) -> 'tuple[Any, int | None, str]':
        """Location of the test for pytest reports."""
        return self.path, None, self.test.name
