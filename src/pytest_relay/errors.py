"""Core exception hierarchy.

This module defines the error types used across the library to report
test source compilation failures and hard (infrastructure) failures of
a run, together with the formatter rendering their location and a YAML
snippet of the failing element.

Assertion-level mismatches found by checkers are not exceptions: they
are collected on results as `Mismatch` values and never abort a run.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump
from yaml.error import MarkedYAMLError

from pytest_relay.values import MAPPINGS, SCALARS, SEQUENCES

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

if TYPE_CHECKING:
    from pydantic_core import ValidationError

#: Placeholder rendered instead of objects that are not plain data.
OPAQUE_VALUE = '<runtime object>'
#: Source name rendered when the file is unknown.
UNKNOWN_SOURCE = '<unicode string>'

LOCATION_INDENT = 4
SNIPPET_INDENT = 8
YAML_INDENT = 2


class ErrorContext(TypedDict, total=False):
    """Location and data describing where an error occurred.

    Every key is optional: compile errors know the file, the position
    and the field, run errors know the test and the run stage.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: Zero-based line in the source file.
    line_num: int | None
    #: Zero-based column in the source file.
    column_num: int | None

    #: Position of the test definition in its source file.
    test_num: int | None
    #: Name of the test where the error occurred.
    test_name: str | None
    #: Dotted name of the field where the error occurred.
    field: str | None
    #: Run stage where the error occurred.
    stage: str | None

    #: Underlying exception.
    error: Exception | None

    #: Source fragment shown as a snippet.
    element: Any


def _indent_lines(text: str, indent: int) -> str:
    """Prefix every non-blank line of a text with spaces."""
    prefix = ' ' * indent

    return linesep.join(
        f'{prefix}{line}'
        for line in text.splitlines()
        if line.strip()
    )


def _plain_data(value: Any) -> Any:  # noqa: ANN401
    """Copy a value keeping plain data only.

    Mappings and sequences are copied recursively, anything that is not
    a scalar is replaced with `OPAQUE_VALUE`.
    """
    if value is None or isinstance(value, SCALARS):
        return value

    if isinstance(value, MAPPINGS):
        return {key: _plain_data(item) for key, item in value.items()}

    if isinstance(value, SEQUENCES):
        return [_plain_data(item) for item in value]

    return OPAQUE_VALUE


class ErrorFormatter:
    """Formatter of errors with a source location and a snippet.

    A formatted error is the message followed by the location lines and,
    when available, the YAML snippet of the failing source fragment:

        Invalid JSON
            in "test_users.yaml"
            on test #2, field 'response.200'
                 ...
                response:
                  200: '{broken'
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message with its context.

        Args:
            message: Human-readable error message.
            context: Optional location and data of the error.

        Returns:
            The message alone without a context, the full report otherwise.
        """
        if not context:
            return message

        return (
            f'{message}{linesep}'
            f'{cls.get_location_string(context)}'
            f'{cls.get_snippet_string(context)}'
        )

    @classmethod
    def get_location_string(cls, context: ErrorContext) -> str:
        """Render the source file line and, if known, the test line."""
        location = f'in "{context.get('filename') or UNKNOWN_SOURCE}"'

        if (line_num := context.get('line_num')) is not None:
            location += f', line {line_num + 1}'
            if (column_num := context.get('column_num')) is not None:
                location += f', column {column_num + 1}'

        lines = [location]

        test_name = context.get('test_name')
        test_num = context.get('test_num')
        if test_name is not None or test_num is not None:
            test = f'on test {test_name!r}' if test_name is not None else f'on test #{test_num}'
            if field := context.get('field'):
                test += f', field {field!r}'
            if stage := context.get('stage'):
                test += f', while {stage}'
            lines.append(test)

        return ''.join(
            f'{' ' * LOCATION_INDENT}{line}{linesep}'
            for line in lines
        )

    @classmethod
    def get_snippet_string(cls, context: ErrorContext) -> str:
        """Render the failing fragment.

        YAML errors show the source lines around the problem mark. Other
        errors show the failing element dumped as YAML.
        """
        error = context.get('error')
        if isinstance(error, MarkedYAMLError) and error.problem_mark:
            return _indent_lines(error.problem_mark.get_snippet(indent=0) or '', SNIPPET_INDENT)

        if element := context.get('element'):
            snippet = dump(
                _plain_data(element),
                indent=YAML_INDENT,
                sort_keys=False,
                allow_unicode=True,
            )
            return (
                f'{' ' * SNIPPET_INDENT} ...{linesep}'
                f'{_indent_lines(snippet, SNIPPET_INDENT)}{linesep}'
            )

        return ''


class RelayError(Exception, ErrorFormatter):
    """Base exception for all pytest-relay errors.

    All custom exceptions raised by the library inherit from this class
    to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String representation."""
        return self.format(self.message, self.context)


class CompileError(RelayError):
    """Error raised when a test source can not be compiled.

    Covers unreadable or malformed sources, invalid definitions, invalid
    JSON bodies, ambiguous body sources and unresolved placeholders. A
    compile error prevents every test of the offending file from being
    emitted.
    """

    @classmethod
    def from_yaml_error(cls, error: MarkedYAMLError,
                        filename: str | None = None) -> 'Self':
        """Create a compile error from a YAML parsing failure.

        Args:
            error: Exception raised by the YAML parser.
            filename: Name of the source file, if known.

        Returns:
            CompileError pointing at the problem mark.
        """
        mark = error.problem_mark or error.context_mark

        message = 'Invalid YAML'
        if error.problem:
            message += f'{linesep}{' ' * LOCATION_INDENT}{error.problem}'

        return cls(message, context=ErrorContext(
            filename=filename or (mark.name if mark else None),
            line_num=mark.line if mark else None,
            column_num=mark.column if mark else None,
            error=error,
        ))

    @classmethod
    def from_pydantic_error(cls, error: 'ValidationError', *,
                            data: Any = None,  # noqa: ANN401
                            filename: str | None = None,
                            test_num: int | None = None) -> 'Self':
        """Create a compile error from a test definition validation failure.

        The first validation issue gives the message and the field. The
        snippet shows the deepest part of the definition the field path
        still reaches.

        Args:
            error: ValidationError raised by Pydantic.
            data: Test definition data.
            filename: Name of the source file.
            test_num: Position of the test definition in the file.

        Returns:
            CompileError attributed to the failing test and field.
        """
        context = ErrorContext(filename=filename, test_num=test_num, error=error, element=data)

        if not isinstance(data, dict) or not data:
            return cls('Test definition must be a mapping', context=context)

        if isinstance(name := data.get('name'), str):
            context['test_name'] = name

        issues = error.errors(include_url=False, include_input=False)
        if not issues:
            return cls('Validation error', context=context)

        issue = issues[0]
        message = next(
            (line.strip() for line in issue['msg'].splitlines() if line.strip()),
            'Validation error',
        )

        context['field'] = '.'.join(f'{key}' for key in issue['loc'])
        context['element'] = cls._narrow_element(data, issue['loc'])

        return cls(message, context=context)

    @staticmethod
    def _narrow_element(data: dict, loc: 'Sequence[int | str]') -> Any:  # noqa: ANN401
        """Cut a definition down to the part reached by an error location.

        The location is followed while it exists in the data. The result
        keeps the last reached key inside its parent, so the snippet shows
        where the value belongs.
        """
        parent: Any = None
        key: int | str | None = None
        value: Any = data

        for step in loc:
            if isinstance(value, dict) and step in value:
                parent, key, value = value, step, value[step]
            elif isinstance(value, list) and isinstance(step, int) and 0 <= step < len(value):
                parent, key, value = value, step, value[step]
            else:
                break

        if key is None:
            return data

        if isinstance(parent, list):
            return [value]

        return {key: value}


class RunError(RelayError):
    """Error raised for hard failures during a run.

    Network failures, fixture loading failures, checker and reporter
    failures are hard errors: they abort the run immediately and are
    never retried.
    """

    @classmethod
    def from_test(cls, message: str, *,
                  test_name: str | None = None,
                  filename: str | None = None,
                  stage: str | None = None,
                  error: Exception | None = None) -> 'Self':
        """Create a run error attributed to a test.

        Args:
            message: Human-readable error message.
            test_name: Name of the failing test.
            filename: Source file of the failing test.
            stage: Run stage where the failure happened.
            error: Optional underlying exception.

        Returns:
            An initialized RunError with location context.
        """
        return cls(message, context=ErrorContext(
            filename=filename,
            test_name=test_name,
            stage=stage,
            error=error,
        ))


class FixtureError(RunError):
    """Error raised when fixtures of a test can not be loaded."""


class CaptureError(RunError):
    """Error raised when a variable can not be captured from a response."""
