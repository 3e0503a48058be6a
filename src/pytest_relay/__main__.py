"""Command-line interface of pytest-relay.

Commands:
- `run` executes test sources against a service and exits with a
  nonzero code if any test fails or a hard error occurs;
- `schema` prints the JSON Schema of test source files;
- `vscode-configure` enables YAML validation of test sources in VSCode.
"""

from json import dumps
from logging import INFO, WARNING, basicConfig
from pathlib import Path
from typing import Any

from click import (
    BadParameter,
    ClickException,
    Context,
    Parameter,
    UsageError,
    echo,
    group,
    option,
    pass_context,
    style,
)
from click import Path as PathParam
from click import argument
from pydantic import ImportString, TypeAdapter, ValidationError
from yaml import YAMLError, safe_load

from pytest_relay.builtins.checkers import BodyChecker, HeaderChecker
from pytest_relay.builtins.database import DatabaseChecker
from pytest_relay.builtins.openapi import SchemaChecker
from pytest_relay.builtins.reporters import ConsoleReporter
from pytest_relay.core import TestLoader
from pytest_relay.errors import RelayError
from pytest_relay.jsonschema import SchemaGenerator
from pytest_relay.runner import Runner, RunnerConfig
from pytest_relay.settings import RelaySettings

SCHEMAS_OPTION = 'yaml.schemas'
SOURCE_PATTERNS = ('test_*.yaml', 'test_*.yml')

InputPath = PathParam(
    exists=True,
    readable=True,
    path_type=Path,
)

OutputFilepath = PathParam(
    dir_okay=False,
    readable=True,
    writable=True,
    path_type=Path,
)

FactoryAdapter: TypeAdapter[Any] = TypeAdapter(ImportString)


def import_factory(_ctx: Context, _param: Parameter, value: str | None) -> Any:  # noqa: ANN401
    """Import a `module:name` callable given on the command line."""
    if value is None:
        return None

    try:
        factory = FactoryAdapter.validate_python(value)
    except ValidationError as base:
        raise BadParameter(f'unable to import {value!r}') from base

    if not callable(factory):
        raise BadParameter(f'{value!r} is not callable')

    return factory


@group(help='Declarative HTTP API test runner.')
def cli() -> None:
    """Root CLI group for pytest-relay tools."""
    return None


@cli.command(
    name='run',
    help='Run test sources against a service.',
)
@option('-h', '--host', help='Base URL of the service under test.')
@option('-t', '--tests', type=InputPath, help='Test source file or directory.')
@option('-s', '--spec', type=InputPath, help='OpenAPI or Swagger document to validate responses against.')
@option('--timeout', type=float, help='Seconds to wait for every response.')
@option('-f', '--file-filter', help='Run only sources whose path contains this text.')
@option('-v', '--verbose', is_flag=True, default=None, help='Report passed tests in detail too.')
@option(
    '--db', callback=import_factory,
    help='`module:name` of a callable returning a DB-API connection for database checks.',
)
@option(
    '--fixtures-loader', callback=import_factory,
    help='`module:name` of a callable returning the fixtures loader.',
)
@option('--env-file', type=InputPath, help='File with `RELAY_*` settings.')
@pass_context
def run(ctx: Context, host: str | None, tests: Path | None, spec: Path | None,  # noqa: PLR0913
        timeout: float | None, file_filter: str | None, verbose: bool | None,
        db: Any, fixtures_loader: Any, env_file: Path | None) -> None:  # noqa: ANN401
    """Run test sources and report results.

    Options take precedence over settings from the environment. The
    database connection is closed when the run is over.
    """
    settings = RelaySettings(_env_file=env_file) if env_file else RelaySettings()  # type: ignore[call-arg]

    host = host or settings.host
    tests = tests or settings.tests
    if not host:
        raise UsageError('Missing target host: use --host or RELAY_HOST')
    if not tests:
        raise UsageError('Missing tests location: use --tests or RELAY_TESTS')

    verbose = settings.verbose if verbose is None else verbose
    basicConfig(level=INFO if verbose else WARNING)

    loader_factory = fixtures_loader or settings.fixtures_loader

    runner = Runner(
        RunnerConfig(
            host=host,
            timeout=timeout or settings.timeout,
            fixtures_loader=loader_factory() if loader_factory else None,
        ),
        TestLoader(tests, file_filter=file_filter or settings.file_filter),
    )
    runner.add_checkers(BodyChecker(), HeaderChecker())

    if spec := spec or settings.spec:
        try:
            runner.add_checkers(SchemaChecker.from_file(spec))
        except (OSError, ValueError, YAMLError) as base:
            raise ClickException(f'Unable to load API description {spec}: {base}') from base

    connection = None
    if connect := db or settings.db:
        try:
            connection = connect()
        except Exception as base:
            raise ClickException(f'Unable to connect to the database: {base}') from base
        runner.add_checkers(DatabaseChecker(connection))

    reporter = ConsoleReporter(verbose=verbose)
    runner.add_reporters(reporter)

    try:
        summary = runner.run()
    except RelayError as error:
        echo(style(f'{error}', fg='red'), err=True)
        ctx.exit(1)
    finally:
        if connection is not None:
            connection.close()

    reporter.show_summary(summary)
    if not summary.success:
        ctx.exit(1)


@cli.command(
    name='schema',
    help='Print the pytest-relay JSON Schema to standard output.',
)
def print_schema() -> None:
    """Generate and print the JSON Schema."""
    echo(SchemaGenerator.make_schema())


def _read_settings(path: Path) -> dict[str, Any]:
    """Read VSCode settings, an absent or empty file being no settings."""
    if not path.exists():
        return {}

    content = safe_load(path.read_text(encoding='utf-8'))
    if not isinstance(content, dict):
        return {}

    return content


@cli.command(
    name='vscode-configure',
    help=(
        'Write the JSON Schema of test sources to a file and register it '
        'in VSCode settings.json for `test_*.yaml` and `test_*.yml` files.'
    ),
)
@option(
    '-s', '--schema',
    type=OutputFilepath,
    default='.vscode/relay.schema.json',
    help='Where to write the JSON Schema file.',
)
@argument(
    'settings',
    type=OutputFilepath,
    default='.vscode/settings.json',
)
def configure_vscode(schema: Path, settings: Path) -> None:
    """Enable YAML validation of test sources in VSCode.

    Other settings, and schemas registered for other files, are kept.
    """
    schema.parent.mkdir(parents=True, exist_ok=True)
    schema.write_text(f'{SchemaGenerator.make_schema()}\n', encoding='utf-8')

    content = _read_settings(settings)

    schemas = content.get(SCHEMAS_OPTION)
    if not isinstance(schemas, dict):
        schemas = {}

    content[SCHEMAS_OPTION] = {**schemas, schema.as_posix(): list(SOURCE_PATTERNS)}

    settings.parent.mkdir(parents=True, exist_ok=True)
    settings.write_text(f'{dumps(content, ensure_ascii=False, indent=4)}\n', encoding='utf-8')


if __name__ == '__main__':
    cli()
