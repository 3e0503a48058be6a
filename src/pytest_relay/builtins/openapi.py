"""OpenAPI response schema checker.

The checker validates JSON response bodies against the response schemas
of an OpenAPI 3 or Swagger 2 document. A response is validated against
the schema declared for its operation (path template and method) and
status code, falling back to the `default` response. Responses of
undocumented operations are not checked.
"""

from json import JSONDecodeError, loads
from logging import getLogger
from re import escape, fullmatch, sub
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from jsonschema.validators import Draft4Validator, Draft202012Validator, validator_for
from yaml import safe_load

from pytest_relay.schema import Mismatch

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest, Result

DEFAULT_RESPONSE = 'default'

logger = getLogger(__name__)


def _path_pattern(template: str) -> str:
    """Turn an OpenAPI path template into a regular expression."""
    return sub(r'\\\{[^/]+?\\\}', '[^/]+', escape(template))


class SchemaChecker:
    """Response checker backed by an OpenAPI document."""

    name = 'schema'

    def __init__(self, document: dict[str, Any]) -> None:
        """Initialize a checker.

        Args:
            document: Decoded OpenAPI 3 or Swagger 2 document.

        Raises:
            ValueError: If the document is not an API description.
        """
        if not isinstance(document, dict) or not isinstance(document.get('paths'), dict):
            raise ValueError('API description must be a mapping with `paths`')

        self.document = document
        self.is_swagger = 'swagger' in document

        self.base_path = self._get_base_path()
        self.operations = [
            (_path_pattern(template), item)
            for template, item in document['paths'].items()
            if isinstance(item, dict)
        ]

    @classmethod
    def from_file(cls, path: 'Path') -> 'SchemaChecker':
        """Build a checker from a YAML or JSON file."""
        logger.debug('Loading API description %s', path)

        with path.open('rt', encoding='utf-8') as content:
            return cls(safe_load(content))

    def _get_base_path(self) -> str:
        """Return the path prefix every operation is served under."""
        if self.is_swagger:
            base_path = self.document.get('basePath') or ''
        else:
            servers = self.document.get('servers') or [{}]
            base_path = urlsplit(servers[0].get('url') or '').path

        return base_path.rstrip('/')

    def find_schema(self, method: str, path: str, status: int) -> dict[str, Any] | None:
        """Find a response schema of an operation.

        Args:
            method: Request HTTP method.
            path: Request path, query string excluded.
            status: Response status code.

        Returns:
            The response JSON schema, or `None` if the operation, status
            or schema is not documented.
        """
        if self.base_path and path.startswith(self.base_path):
            path = path[len(self.base_path):] or '/'

        for pattern, item in self.operations:
            if not fullmatch(pattern, path):
                continue

            operation = item.get(method.lower())
            if not isinstance(operation, dict):
                continue

            responses = operation.get('responses') or {}
            response = responses.get(f'{status}', responses.get(status))
            if response is None:
                response = responses.get(DEFAULT_RESPONSE)

            if isinstance(response, dict):
                return self._get_response_schema(response)

        return None

    def _get_response_schema(self, response: dict[str, Any]) -> dict[str, Any] | None:
        """Extract a JSON schema from a response object."""
        if self.is_swagger:
            return response.get('schema')

        content = response.get('content') or {}
        for media_type, media in content.items():
            if 'json' in media_type and isinstance(media, dict):
                return media.get('schema')

        return None

    def make_validator(self, schema: dict[str, Any]) -> Any:  # noqa: ANN401
        """Build a validator resolving references within the document."""
        if self.is_swagger:
            schema = {**schema, 'definitions': self.document.get('definitions', {})}
            default = Draft4Validator
        else:
            schema = {**schema, 'components': self.document.get('components', {})}
            default = Draft202012Validator if f'{self.document.get('openapi')}'.startswith('3.1') else Draft4Validator

        return validator_for(schema, default=default)(schema)

    def check(self, test: 'CompiledTest', result: 'Result') -> 'Sequence[Mismatch]':
        """Validate the response body against its documented schema."""
        schema = self.find_schema(result.method or test.method, result.path, result.response_status_code)
        if schema is None:
            return []

        try:
            document = loads(result.response_body)
        except JSONDecodeError:
            return [Mismatch(
                message='response body is not valid JSON',
                field='$',
                checker=self.name,
            )]

        return [
            Mismatch(message=error.message, field=error.json_path, checker=self.name)
            for error in self.make_validator(schema).iter_errors(document)
        ]
