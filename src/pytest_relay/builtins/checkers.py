"""Built-in response checkers.

This module defines the checkers validating an HTTP response against the
expectations declared by a test:

- `BodyChecker` compares the response body with the expected body of
  the actual status code;
- `HeaderChecker` compares response headers with the expected headers
  of the actual status code.

Both checkers report every difference they find as a `Mismatch` and
never raise on a difference.
"""

from json import JSONDecodeError, loads
from typing import TYPE_CHECKING

from pytest_relay.schema import Mismatch

from .comparison import Comparator

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest, Result


class BodyChecker:
    """Response body checker.

    JSON bodies are compared structurally, honoring the comparison flags
    of the test. Plain text bodies are compared exactly, unless the
    expected text is a `$matchRegexp(...)` expression.

    A test declaring no expected bodies is not checked. A test declaring
    expected bodies, but none for the actual status code, fails with a
    single status mismatch.
    """

    name = 'body'

    def check(self, test: 'CompiledTest', result: 'Result') -> 'Sequence[Mismatch]':
        """Compare the response body with the expected one.

        Raises:
            ValueError: If the expected JSON body is not valid JSON.
        """
        if not test.responses:
            return []

        status = result.response_status_code
        expected = test.responses.get(status)
        if expected is None:
            declared = ', '.join(f'{code}' for code in sorted(test.responses))
            return [Mismatch(
                message=f'unexpected status code {status}, expected one of [{declared}]',
                field='status',
                checker=self.name,
            )]

        comparator = Comparator(test.comparison, checker=self.name)

        if not expected.is_json:
            return comparator.compare(expected.value, result.response_body)

        try:
            expected_document = loads(expected.value)
        except JSONDecodeError as base:
            raise ValueError(f'Expected body for status {status} is not valid JSON: {base}') from base

        try:
            actual_document = loads(result.response_body)
        except JSONDecodeError:
            return [Mismatch(
                message='response body is not valid JSON',
                field='$',
                checker=self.name,
            )]

        return comparator.compare(expected_document, actual_document)


class HeaderChecker:
    """Response headers checker.

    Header names are matched case-insensitively. A header sent more than
    once matches if any of its values equals the expected one.
    """

    name = 'headers'

    def check(self, test: 'CompiledTest', result: 'Result') -> 'Sequence[Mismatch]':
        """Compare response headers with the expected ones."""
        expected = test.response_headers.get(result.response_status_code)
        if not expected:
            return []

        mismatches = []
        for header, value in expected.items():
            actual = result.header_values(header)
            if not actual:
                mismatches.append(Mismatch(
                    message='header is missing',
                    field=header,
                    checker=self.name,
                ))
            elif value not in actual:
                mismatches.append(Mismatch(
                    message=f'value mismatch: expected {value!r}, got {', '.join(map(repr, actual))}',
                    field=header,
                    checker=self.name,
                ))

        return mismatches
