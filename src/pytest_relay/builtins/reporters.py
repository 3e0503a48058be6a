"""Console reporting of a run.

The console reporter prints a dot for every passed test and a detailed
block for every failed one: the request sent, the response received and
every mismatch found. In verbose mode the detailed block is printed for
every test.
"""

from typing import TYPE_CHECKING

from click import echo, style

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest, Result, Summary

DOTS_PER_LINE = 80


class ConsoleReporter:
    """Reporter printing run progress to standard output."""

    def __init__(self, *, verbose: bool = False) -> None:
        """Initialize a reporter.

        Args:
            verbose: Print details of passed tests too.
        """
        self.verbose = verbose
        self.dots = 0

    def process(self, test: 'CompiledTest', result: 'Result') -> None:
        """Print the outcome of a test."""
        if result.passed and not self.verbose:
            self._print_dot()
            return

        self._end_dots()
        echo(self.render(test, result))

    def _print_dot(self) -> None:
        echo(style('.', fg='green'), nl=False)

        self.dots += 1
        if self.dots % DOTS_PER_LINE == 0:
            echo()

    def _end_dots(self) -> None:
        if self.dots % DOTS_PER_LINE:
            echo()

        self.dots = 0

    @staticmethod
    def render(test: 'CompiledTest', result: 'Result') -> str:
        """Render the details of a test execution.

        Args:
            test: Executed test.
            result: Result of the execution.

        Returns:
            Multiline human-readable report.
        """
        status = style('PASSED', fg='green') if result.passed else style('FAILED', fg='red', bold=True)

        lines = [f'{status} {style(test.name, bold=True)}']
        if test.filename:
            lines.append(f'  File: {test.filename}')
        if test.description:
            lines.append(f'  Description: {test.description}')

        url = result.path
        if result.query:
            url = f'{url}?{result.query}'

        lines.append(f'  Request: {result.method} {url}')
        if result.request_body:
            lines.extend(f'    {line}' for line in result.request_body.splitlines())

        lines.append(f'  Response: {result.response_status}')
        if result.response_body:
            lines.extend(f'    {line}' for line in result.response_body.splitlines())

        if result.db_query:
            lines.append(f'  Database query: {result.db_query}')
            lines.extend(f'    {row}' for row in result.db_response)

        if result.errors:
            lines.append('  Errors:')
            lines.extend(
                f'    {style(f'{error}', fg='red')}'
                for error in result.errors
            )

        return '\n'.join(lines)

    def show_summary(self, summary: 'Summary') -> None:
        """Print the run summary."""
        self._end_dots()

        passed = summary.total - summary.failed
        color = 'green' if summary.success else 'red'

        echo(style(
            f'{summary.total} tests, {passed} passed, {summary.failed} failed',
            fg=color,
            bold=True,
        ))
