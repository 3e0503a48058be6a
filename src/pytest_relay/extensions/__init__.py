"""Contracts of pluggable run collaborators.

This module defines the interfaces the runner relies on:

- checkers, validating a response and reporting mismatches;
- reporters, consuming every executed test and its result;
- fixture loaders, priming shared state before a request.

The contracts are structural: any object with a matching method can be
registered, no inheritance is required.
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest, Mismatch, Result

__all__ = (
    'Checker',
    'FixtureLoader',
    'Reporter',
)


@runtime_checkable
class Checker(Protocol):
    """Validator of a test response.

    A checker must report every mismatch it finds for the current test,
    not just the first one. A checker with no declared expectation for
    the current test or status returns no mismatches.

    Any exception raised by a checker is a hard error and aborts the run.
    """

    def check(self, test: 'CompiledTest', result: 'Result') -> 'Sequence[Mismatch]':
        """Validate a result of a test.

        Args:
            test: Executed test with variables applied.
            result: Result of the execution. Checkers may record extra
                telemetry on it.

        Returns:
            Mismatches found, empty on success.
        """
        ...  # pragma: no cover


@runtime_checkable
class Reporter(Protocol):
    """Consumer of executed tests.

    Reporters must not mutate what they receive. Any exception raised by
    a reporter is a hard error and aborts the run.
    """

    def process(self, test: 'CompiledTest', result: 'Result') -> None:
        """Process a result of a test."""
        ...  # pragma: no cover


@runtime_checkable
class FixtureLoader(Protocol):
    """Loader of named datasets.

    A loader resets and repopulates only the named datasets, is
    idempotent per call, and fails loudly on unknown names.
    """

    def load(self, names: 'Sequence[str]') -> None:
        """Load fixtures in order.

        Args:
            names: Fixture names.
        """
        ...  # pragma: no cover
