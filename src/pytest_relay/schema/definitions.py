"""Test definition models as written in test sources.

This module defines the declarative elements of a test source file: test
definitions, their cases, comparison flags and capture bindings. These
models describe the source verbatim, before body files are resolved and
before cases are expanded.
"""

from typing import Any

from pydantic import AliasChoices, Field, NonNegativeFloat, PositiveFloat, field_validator

from pytest_relay.models import DescribedMixin, SchemaModel
from pytest_relay.names import Variable  # noqa: TC001
from pytest_relay.values import Value  # noqa: TC001

from .bodies import DataBody  # noqa: TC001

#: Capture bindings by status code: variable name to extraction path.
type CaptureBindings = dict[int, dict[str, str]]

#: Case arguments: argument name to value.
type Arguments = dict[str, Value]


class ComparisonParams(SchemaModel):
    """Flags tuning response comparison."""

    ignore_values: bool = Field(
        default=False,
        alias='ignoreValues',
        title='Ignore values',
        description='Compare structure and value types only, not the values themselves.',
    )

    ignore_arrays_ordering: bool = Field(
        default=False,
        alias='ignoreArraysOrdering',
        title='Ignore arrays ordering',
        description='Treat arrays as equal when they hold the same items in any order.',
    )

    disallow_extra_fields: bool = Field(
        default=False,
        alias='disallowExtraFields',
        title='Disallow extra fields',
        description='Report fields of the actual body that are not expected.',
    )


class Form(SchemaModel):
    """Multipart form sent instead of a request body."""

    files: dict[str, str] = Field(
        default_factory=dict,
        title='Form files',
        description=(
            'Form field name to file path. '
            'Paths are resolved relative to the test source directory.'
        ),
    )


class CaseData(SchemaModel):
    """A single case of a parameterized test definition.

    Each case produces one compiled test. Its arguments are substituted
    into the templates of the definition it belongs to.
    """

    request_args: Arguments = Field(
        default_factory=dict,
        alias='requestArgs',
        title='Request arguments',
        description='Arguments for path, query, headers, cookies and request body.',
    )

    response_args: dict[int, Arguments] = Field(
        default_factory=dict,
        alias='responseArgs',
        title='Response arguments',
        description='Arguments for the expected body and headers, by status code.',
    )

    db_query_args: Arguments = Field(
        default_factory=dict,
        alias='dbQueryArgs',
        title='Database query arguments',
        description='Arguments for the database query template.',
    )

    db_response_args: Arguments = Field(
        default_factory=dict,
        alias='dbResponseArgs',
        title='Database response arguments',
        description='Arguments for every templated expected database row.',
    )

    db_response: list[str] | None = Field(
        default=None,
        alias='dbResponse',
        title='Database response override',
        description='Expected database rows used as is, instead of the templated rows.',
    )


class TestDefinition(DescribedMixin, SchemaModel):
    """Test definition as declared in a test source.

    A definition describes one HTTP request, its expectations, fixtures,
    variables, and an optional ordered list of cases. Without cases it
    compiles into exactly one test, otherwise into one test per case.
    """

    __test__ = False

    name: str = Field(
        min_length=1,
        title='Test name',
        description='Name of the test. Case tests get the ` #<index>` suffix.',
    )

    method: str = Field(
        default='GET',
        min_length=1,
        title='HTTP method',
    )

    path: str = Field(
        default='',
        title='Request path',
        description='Path template appended to the target host.',
    )

    query: str = Field(
        default='',
        title='Query string',
        description='Raw query string template, the leading `?` is optional.',
    )

    headers: dict[str, str] = Field(
        default_factory=dict,
        title='Request headers',
    )

    cookies: dict[str, str] = Field(
        default_factory=dict,
        title='Request cookies',
    )

    request: DataBody | None = Field(
        default=None,
        title='Request body',
        description=(
            'Inline request body or a tagged body mapping. Inline text starting '
            'with `{` or `[` is JSON; tag plain text as `text:` instead.'
        ),
    )

    request_file: str | None = Field(
        default=None,
        alias='requestFile',
        title='Request body file',
        description='Request body file, relative to the test source directory.',
    )

    responses: dict[int, DataBody] = Field(
        default_factory=dict,
        alias='response',
        title='Expected response bodies',
        description=(
            'Expected response body by status code. Inline text starting '
            'with `{` or `[` is JSON; tag plain text as `text:` instead.'
        ),
    )

    response_files: dict[int, str] = Field(
        default_factory=dict,
        alias='responseFiles',
        title='Expected response body files',
        description='Expected response body file by status code.',
    )

    response_headers: dict[int, dict[str, str]] = Field(
        default_factory=dict,
        alias='responseHeaders',
        title='Expected response headers',
        description='Expected response headers by status code.',
    )

    comparison: ComparisonParams = Field(
        default_factory=ComparisonParams,
        alias='comparisonParams',
        title='Comparison parameters',
    )

    fixtures: list[str] = Field(
        default_factory=list,
        title='Fixtures',
        description='Names of fixtures loaded before the request.',
    )

    pause: NonNegativeFloat = Field(
        default=0,
        title='Pause',
        description='Seconds to wait before the request is sent.',
    )

    timeout: PositiveFloat | None = Field(
        default=None,
        title='Request timeout',
        description='Seconds to wait for the response, overriding the run-wide timeout.',
    )

    db_query: str = Field(
        default='',
        alias='dbQuery',
        title='Database query',
    )

    db_response: list[str] = Field(
        default_factory=list,
        alias='dbResponse',
        title='Expected database rows',
        description='Every row is a JSON object keyed by column name.',
    )

    variables: dict[Variable, str] = Field(
        default_factory=dict,
        title='Variables',
        description='Variables read by the test, with their default values.',
    )

    variables_to_set: CaptureBindings = Field(
        default_factory=dict,
        validation_alias=AliasChoices('variables_to_set', 'variablesToSet'),
        title='Variables to capture',
        description=(
            'Variables captured from the response, by status code. '
            'A plain name captures the whole body, a mapping captures '
            'values by JSON path.'
        ),
    )

    form: Form | None = Field(
        default=None,
        title='Multipart form',
    )

    cases: list[CaseData] = Field(
        default_factory=list,
        title='Cases',
        description='Cases producing one test each.',
    )

    @field_validator('variables', mode='before')
    @classmethod
    def stringify_defaults(cls, value: Any) -> Any:  # noqa: ANN401
        """Accept non-string YAML scalars as variable defaults."""
        if not isinstance(value, dict):
            return value

        return {
            key: '' if item is None else item if isinstance(item, str) else f'{item}'
            for key, item in value.items()
        }

    @field_validator('variables_to_set', mode='before')
    @classmethod
    def normalize_captures(cls, value: Any) -> Any:  # noqa: ANN401
        """Normalize capture bindings to the structured form.

        A binding is either a plain variable name, which captures the
        whole body, or a mapping of variable names to extraction paths.
        The structured form is taken as is; the plain form becomes a
        mapping with an empty path.

        Args:
            value: Raw capture bindings.

        Returns:
            Capture bindings in the structured form.
        """
        if not isinstance(value, dict):
            return value

        captures = {}
        for status, binding in value.items():
            if isinstance(binding, str):
                captures[status] = {binding: ''}
            elif isinstance(binding, dict):
                captures[status] = {name: path or '' for name, path in binding.items()}
            else:
                captures[status] = binding

        return captures

    @property
    def variable_names(self) -> set[str]:
        """Names of variables declared or captured by the test."""
        return {
            *self.variables,
            *(name for bindings in self.variables_to_set.values() for name in bindings),
        }
