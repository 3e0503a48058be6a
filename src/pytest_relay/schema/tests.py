"""Compiled test model.

A compiled test is one fully expanded, directly executable test. It owns
a full copy of the fields of the definition it was compiled from, with
body files resolved and case arguments substituted.
"""

from typing import TYPE_CHECKING

from pydantic import Field, NonNegativeFloat, PositiveFloat

from pytest_relay.models import DescribedMixin, SchemaModel

from .bodies import DataBody  # noqa: TC001
from .definitions import CaptureBindings, ComparisonParams, Form

if TYPE_CHECKING:
    from collections.abc import Callable

CONTENT_TYPE_HEADER = 'content-type'


class CompiledTest(DescribedMixin, SchemaModel):
    """Executable test produced by the compiler.

    Compiled tests are immutable: the variable store produces a new bound
    copy instead of editing a test in place.
    """

    name: str
    method: str = 'GET'
    path: str = ''
    query: str = ''
    headers: dict[str, str] = Field(default_factory=dict)
    cookies: dict[str, str] = Field(default_factory=dict)

    request: DataBody | None = None
    responses: dict[int, DataBody] = Field(default_factory=dict)
    response_headers: dict[int, dict[str, str]] = Field(default_factory=dict)
    comparison: ComparisonParams = Field(default_factory=ComparisonParams)

    fixtures: list[str] = Field(default_factory=list)
    pause: NonNegativeFloat = 0
    timeout: PositiveFloat | None = None

    db_query: str = ''
    db_response: list[str] = Field(default_factory=list)

    variables: dict[str, str] = Field(default_factory=dict)
    variables_to_set: CaptureBindings = Field(default_factory=dict)

    form: Form | None = None

    #: Source file the test was compiled from.
    filename: str | None = None
    #: Position of the case the test was expanded from.
    case_num: int | None = None

    @property
    def content_type(self) -> str:
        """Declared request content type, or an empty string."""
        for name, value in self.headers.items():
            if name.lower() == CONTENT_TYPE_HEADER:
                return value

        return ''

    def transform(self, replace: 'Callable[[str], str]') -> 'CompiledTest':
        """Return a copy with every template field passed through a function.

        Template fields are the method, path, query, header and cookie
        values, the request body, expected response bodies and headers,
        the database query and expected database rows.

        Args:
            replace: Function mapping a template string to its new value.

        Returns:
            A new compiled test.
        """
        def _map(values: dict[str, str]) -> dict[str, str]:
            return {key: replace(value) for key, value in values.items()}

        return self.model_copy(update={
            'method': replace(self.method),
            'path': replace(self.path),
            'query': replace(self.query),
            'headers': _map(self.headers),
            'cookies': _map(self.cookies),
            'request': self.request.replace(replace(self.request.value)) if self.request else None,
            'responses': {
                status: body.replace(replace(body.value))
                for status, body in self.responses.items()
            },
            'response_headers': {
                status: _map(headers)
                for status, headers in self.response_headers.items()
            },
            'db_query': replace(self.db_query),
            'db_response': [replace(row) for row in self.db_response],
        })
