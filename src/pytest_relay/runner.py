"""Sequential execution engine.

This module drives a run: for every compiled test, in order, it applies
variables, loads fixtures, sends the request, runs checkers, captures
variables from the response and forwards the result to reporters.

Tests are executed strictly one after another: later tests may read
variables captured by earlier ones, and fixtures mutate shared state
that must never interleave with requests.
"""

from functools import partial
from logging import getLogger
from pathlib import Path
from time import sleep
from typing import TYPE_CHECKING, Any

from httpx import BaseTransport, Client, Request, Response
from pydantic import Field, PositiveFloat, field_validator

from pytest_relay.errors import CompileError, FixtureError, RunError
from pytest_relay.extensions import Checker, FixtureLoader, Reporter  # noqa: TC001
from pytest_relay.models import SchemaModel
from pytest_relay.schema import Result, Summary
from pytest_relay.variables import VariableStore

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest

JSON_CONTENT_TYPE = 'application/json'

logger = getLogger(__name__)


class RunnerConfig(SchemaModel):
    """Configuration of a run."""

    host: str = Field(
        title='Target host',
        description='Base URL of the service under test; `http://` is assumed without a scheme.',
    )

    fixtures_loader: FixtureLoader | None = Field(
        default=None,
        title='Fixtures loader',
    )

    variables: VariableStore = Field(
        default_factory=VariableStore,
        title='Variable store',
        description='Run-scoped variables shared by all tests of the run.',
    )

    timeout: PositiveFloat | None = Field(
        default=None,
        title='Request timeout',
        description='Seconds to wait for every response, unless a test overrides it.',
    )

    transport: BaseTransport | None = Field(
        default=None,
        title='HTTP transport',
        description='Custom transport of the HTTP client.',
    )

    @field_validator('host')
    @classmethod
    def normalize_host(cls, value: str) -> str:
        """Add a missing scheme and drop trailing slashes."""
        if not value.startswith(('http://', 'https://')):
            value = f'http://{value}'

        return value.rstrip('/')


class Runner:
    """Executor of compiled tests.

    A runner sends exactly one request at a time. Mismatches reported by
    checkers fail the current test only; any hard error aborts the run.
    """

    def __init__(self, config: RunnerConfig,
                 tests: 'Iterable[CompiledTest] | None' = None) -> None:
        """Initialize a runner.

        Args:
            config: Run configuration.
            tests: Compiled tests in execution order.
        """
        self.config = config
        self.tests = tests

        self.checkers: list[Checker] = []
        self.reporters: list[Reporter] = []

        self._client: Client | None = None

    def add_checkers(self, *checkers: Checker) -> None:
        """Register checkers, run in registration order."""
        self.checkers.extend(checkers)

    def add_reporters(self, *reporters: Reporter) -> None:
        """Register reporters, called in registration order."""
        self.reporters.extend(reporters)

    @property
    def client(self) -> Client:
        """HTTP client, created on first use."""
        if self._client is None:
            options: dict[str, Any] = {}
            if self.config.timeout is not None:
                options['timeout'] = self.config.timeout
            self._client = Client(transport=self.config.transport, **options)

        return self._client

    def close(self) -> None:
        """Close the HTTP client if it was created."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def run(self) -> Summary:
        """Execute every test and aggregate the outcome.

        Returns:
            Run summary: a test is failed when its result holds at least
            one mismatch.

        Raises:
            CompileError: If a lazily compiled test source is invalid.
            RunError: On any hard error; tests after the failing one are
                not executed.
        """
        if self.tests is None:
            return Summary()

        total = failed = 0

        try:
            for test in self.tests:
                result = self.execute(test)

                total += 1
                if not result.passed:
                    failed += 1

                for reporter in self.reporters:
                    self.run_callable(
                        partial(reporter.process, result.test, result),
                        result.test,
                        stage=f'reporting with {type(reporter).__name__}',
                    )

        finally:
            self.close()

        return Summary(success=failed == 0, failed=failed, total=total)

    def execute(self, test: 'CompiledTest') -> Result:
        """Execute a single test.

        Args:
            test: Compiled test.

        Returns:
            Result holding request and response telemetry and every
            mismatch reported by checkers.

        Raises:
            RunError: On any hard error.
        """
        logger.debug('Running test %r', test.name)

        variables = self.config.variables
        variables.load(test.variables)
        test = variables.apply(test)

        self.load_fixtures(test)

        if test.pause > 0:
            logger.info('Sleep %ss before request of %r', test.pause, test.name)
            sleep(test.pause)

        request = self.run_callable(
            partial(self.build_request, test),
            test,
            stage='building request',
        )
        response = self.run_callable(
            partial(self.client.send, request),
            test,
            stage='sending request',
        )

        result = self.make_result(test, request, response)

        for checker in self.checkers:
            mismatches = self.run_callable(
                partial(checker.check, test, result),
                test,
                stage=f'running {type(checker).__name__}',
            )
            result.errors.extend(mismatches)

        self.capture(test, result)

        return result

    def load_fixtures(self, test: 'CompiledTest') -> None:
        """Load fixtures declared by a test.

        Raises:
            FixtureError: If the fixture loader fails.
        """
        loader = self.config.fixtures_loader
        if loader is None or not test.fixtures:
            return

        try:
            loader.load(test.fixtures)

        except Exception as base:
            raise FixtureError.from_test(
                f'Unable to load fixtures [{', '.join(test.fixtures)}]: {base}',
                test_name=test.name,
                filename=test.filename,
                stage='loading fixtures',
                error=base,
            ) from base

    def build_request(self, test: 'CompiledTest') -> Request:
        """Build the HTTP request of a test.

        The URL is the host followed by the path and the query string.
        Cookies are sent as a single `Cookie` header. A JSON body without
        a declared content type is sent as `application/json`. A multipart
        form replaces the request body.

        Args:
            test: Compiled test with variables applied.

        Returns:
            HTTP request ready to be sent.
        """
        path = test.path
        if path and not path.startswith('/'):
            path = f'/{path}'

        query = test.query
        if query and not query.startswith('?'):
            query = f'?{query}'

        headers = dict(test.headers)
        if test.cookies:
            headers['Cookie'] = '; '.join(
                f'{name}={value}'
                for name, value in test.cookies.items()
            )

        options: dict[str, Any] = {}
        if test.timeout is not None:
            options['timeout'] = test.timeout

        if test.form is not None and test.form.files:
            options['files'] = {
                field: (Path(filepath).name, Path(filepath).read_bytes())
                for field, filepath in test.form.files.items()
            }
        elif test.request is not None and test.request.value:
            options['content'] = test.request.value.encode('utf-8')
            if test.request.is_json and not test.content_type:
                headers['Content-Type'] = JSON_CONTENT_TYPE

        request = self.client.build_request(
            test.method.upper(),
            f'{self.config.host}{path}{query}',
            headers=headers,
            **options,
        )
        request.read()

        return request

    @staticmethod
    def make_result(test: 'CompiledTest', request: Request, response: Response) -> Result:
        """Collect request and response telemetry into a result."""
        return Result(
            test=test,
            method=request.method,
            path=request.url.path,
            query=request.url.query.decode('utf-8', errors='replace'),
            request_body=request.content.decode('utf-8', errors='replace'),
            response_body=response.text,
            response_content_type=response.headers.get('content-type', ''),
            response_status_code=response.status_code,
            response_status=f'{response.status_code} {response.reason_phrase}'.strip(),
            response_headers={
                name: response.headers.get_list(name)
                for name in response.headers
            },
        )

    def capture(self, test: 'CompiledTest', result: Result) -> None:
        """Capture variables declared for the actual response status.

        A status without capture bindings is a no-op. A body is treated
        as JSON when its content type mentions JSON and it is not empty.

        Raises:
            RunError: If a variable can not be captured.
        """
        bindings = test.variables_to_set.get(result.response_status_code)
        if not bindings:
            return

        is_json = 'json' in result.response_content_type.lower() and result.response_body != ''

        captured = self.run_callable(
            partial(VariableStore.from_response, bindings, result.response_body, is_json),
            test,
            stage='capturing variables',
        )

        if captured:
            self.config.variables.merge(captured)

    def run_callable[T](self, executor: 'Callable[[], T]', test: 'CompiledTest', *,
                        stage: str) -> T:
        """Execute a callable with unified hard error handling.

        Args:
            executor: Callable performing the actual work.
            test: Test the work belongs to.
            stage: Name of the run stage for error reporting.

        Returns:
            Result of the callable execution.

        Raises:
            CompileError: Propagated as-is.
            RunError: Raised by the callable, or wrapping any other
                exception, with the test location attached.
        """
        try:
            return executor()

        except CompileError:
            raise

        except RunError as base:
            if base.context:
                raise
            raise type(base).from_test(
                base.message,
                test_name=test.name,
                filename=test.filename,
                stage=stage,
            ) from base

        except Exception as base:
            raise RunError.from_test(
                f'{base!r}',
                test_name=test.name,
                filename=test.filename,
                stage=stage,
                error=base,
            ) from base
