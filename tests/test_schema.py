"""Tests for the JSON Schema of test sources."""

from json import loads

import jsonschema
import pytest
import yaml

from pytest_relay.jsonschema import SchemaGenerator


@pytest.fixture(scope='module')
def schema() -> dict:
    """Provide the generated JSON Schema."""
    return loads(SchemaGenerator.make_schema())


def test_schema_root(schema: dict) -> None:
    """Describe a source file as a list of test definitions."""
    assert schema['title'] == 'pytest-relay'
    assert schema['type'] == 'array'
    assert schema['items'] == {'$ref': '#/$defs/TestDefinition'}


def test_schema_aliases(schema: dict) -> None:
    """Document source keys as written in YAML."""
    properties = schema['$defs']['TestDefinition']['properties']

    assert {'requestFile', 'response', 'responseFiles', 'comparisonParams', 'dbQuery'} <= properties.keys()
    assert 'request_file' not in properties


def test_schema_body(schema: dict) -> None:
    """Document bodies by their source notations."""
    body = schema['$defs']['DataBody']

    assert {'type': 'string'} in body['anyOf']
    assert 'kind' not in body.get('properties', {})


@pytest.mark.parametrize('content, valid', (
    pytest.param(
        '''
        - name: create
          method: POST
          request:
            json:
              name: John
          response:
            201: '{"id": 1}'
          variables_to_set:
            201:
              userId: $.id
        ''',
        True,
        id='valid source',
    ),
    pytest.param(
        '''
        - name: create
          request:
            path: a.json
            text: b
        ''',
        False,
        id='body with two tags',
    ),
    pytest.param(
        '''
        - name: create
          unknown: 1
        ''',
        False,
        id='unknown key',
    ),
))
def test_schema_validates_sources(schema: dict, content: str, valid: bool) -> None:
    """Validate test sources against the generated schema."""
    validator = jsonschema.Draft202012Validator(schema)
    document = yaml.safe_load(content)

    assert validator.is_valid(document) is valid


def test_schema_body_text_key(schema: dict) -> None:
    """Document the `text` key for plain text starting with a bracket."""
    properties = schema['$defs']['TestDefinition']['properties']

    assert '`text:`' in properties['request']['description']
    assert '`text:`' in properties['response']['description']
    assert '`text` key' in schema['$defs']['DataBody']['description']
