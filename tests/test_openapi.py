"""Tests for the OpenAPI response schema checker."""

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from pytest_relay.builtins.openapi import SchemaChecker
from pytest_relay.schema import CompiledTest, Result

if TYPE_CHECKING:
    from pyfakefs.fake_filesystem import FakeFilesystem


OPENAPI_DOCUMENT = '''
openapi: 3.0.3
info:
  title: Users
  version: '1'
servers:
  - url: https://api.example.com/v1
paths:
  /users/{userId}:
    get:
      responses:
        200:
          description: A user
          content:
            application/json:
              schema:
                $ref: '#/components/schemas/User'
        default:
          description: An error
          content:
            application/problem+json:
              schema:
                type: object
                required: [title]
  /health:
    get:
      responses:
        '200':
          description: Plain text
          content:
            text/plain:
              schema:
                type: string
components:
  schemas:
    User:
      type: object
      required: [id, name]
      properties:
        id:
          type: integer
        name:
          type: string
'''

SWAGGER_DOCUMENT = {
    'swagger': '2.0',
    'basePath': '/api',
    'paths': {
        '/items': {
            'get': {
                'responses': {
                    '200': {
                        'description': 'Items',
                        'schema': {
                            'type': 'array',
                            'items': {'$ref': '#/definitions/Item'},
                        },
                    },
                },
            },
        },
    },
    'definitions': {
        'Item': {
            'type': 'object',
            'required': ['id'],
            'properties': {'id': {'type': 'integer'}},
        },
    },
}


def make_result(path: str, body: str, status: int = 200, method: str = 'GET') -> Result:
    """Build a result of a request."""
    return Result(
        test=CompiledTest(name='checked', method=method, path=path),
        method=method,
        path=path,
        response_body=body,
        response_status_code=status,
    )


@pytest.fixture
def checker(fs: 'FakeFilesystem') -> SchemaChecker:
    """Provide a checker loaded from an OpenAPI 3 file."""
    fs.create_file('/api/openapi.yaml', contents=OPENAPI_DOCUMENT)

    return SchemaChecker.from_file(Path('/api/openapi.yaml'))


def test_schema_valid(checker: SchemaChecker) -> None:
    """Accept responses conforming to their schema."""
    result = make_result('/v1/users/42', '{"id": 42, "name": "John"}')

    assert checker.check(result.test, result) == []


def test_schema_every_error(checker: SchemaChecker) -> None:
    """Report every validation error as a mismatch."""
    result = make_result('/v1/users/42', '{"id": "42"}')

    mismatches = checker.check(result.test, result)

    assert sorted(mismatch.field or '' for mismatch in mismatches) == ['$', '$.id']
    assert all(mismatch.checker == 'schema' for mismatch in mismatches)


def test_schema_default_response(checker: SchemaChecker) -> None:
    """Validate undocumented statuses against the default response."""
    result = make_result('/v1/users/42', '{"detail": "boom"}', status=500)

    mismatch, = checker.check(result.test, result)

    assert "'title' is a required property" in mismatch.message


@pytest.mark.parametrize('path, method', (
    pytest.param('/v1/orders', 'GET', id='unknown path'),
    pytest.param('/v1/users/42', 'DELETE', id='unknown method'),
    pytest.param('/v1/health', 'GET', id='non-json content'),
))
def test_schema_undocumented(checker: SchemaChecker, path: str, method: str) -> None:
    """Skip undocumented operations and non-JSON responses."""
    result = make_result(path, 'not json', method=method)

    assert checker.check(result.test, result) == []


def test_schema_invalid_json(checker: SchemaChecker) -> None:
    """Report a documented JSON response that is not JSON."""
    result = make_result('/v1/users/42', '<html>')

    mismatch, = checker.check(result.test, result)

    assert mismatch.message == 'response body is not valid JSON'


def test_schema_swagger() -> None:
    """Resolve definitions of Swagger 2 documents."""
    checker = SchemaChecker(SWAGGER_DOCUMENT)

    valid = make_result('/api/items', '[{"id": 1}]')
    invalid = make_result('/api/items', '[{"id": 1}, {}]')

    assert checker.check(valid.test, valid) == []

    mismatch, = checker.check(invalid.test, invalid)
    assert mismatch.field == '$[1]'


def test_schema_invalid_document() -> None:
    """Reject documents without paths."""
    with pytest.raises(ValueError, match='must be a mapping with `paths`'):
        SchemaChecker({'openapi': '3.0.0'})
