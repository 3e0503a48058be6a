"""JSON Schema management."""

from functools import cache
from json import dumps
from typing import TYPE_CHECKING

from pydantic import TypeAdapter
from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue

from pytest_relay.schema import TestDefinition

if TYPE_CHECKING:
    from pydantic_core import core_schema as core


class SchemaGenerator(GenerateJsonSchema):
    """Custom JSON Schema generator for test source files.

    A test source file is a list of test definitions. Body values are
    documented by their source notations: a plain string or a mapping
    with exactly one of the `path`, `json` or `text` keys.
    """

    @classmethod
    @cache
    def get_adapter(cls) -> TypeAdapter[list[TestDefinition]]:
        """Return a cached adapter of the source file model."""
        return TypeAdapter(list[TestDefinition])

    @classmethod
    @cache
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema for test source files.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **cls.get_adapter().json_schema(
                by_alias=True,
                schema_generator=cls,
            ),
            'title': 'pytest-relay',
            'description': 'JSON Schema for pytest-relay test source files',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

    def model_schema(self, schema: 'core.ModelSchema') -> JsonSchemaValue:
        """Generate JSON Schema for a model.

        Bodies are documented by their source notations instead of their
        normalized `kind` and `value` fields.

        Args:
            schema: Pydantic core schema describing a model.

        Returns:
            The generated JSON schema.
        """
        if schema['cls'].__name__ != 'DataBody':
            return super().model_schema(schema)

        return {
            'title': 'Body',
            'description': (
                'Inline body text, JSON when it starts with `{` or `[`, '
                'or a mapping with exactly one of `path`, `json` or `text`. '
                'Plain text starting with `{` or `[` must use the `text` key.'
            ),
            'anyOf': [
                {'type': 'string'},
                {
                    'type': 'object',
                    'minProperties': 1,
                    'maxProperties': 1,
                    'additionalProperties': False,
                    'properties': {
                        'path': {'type': 'string'},
                        'json': {},
                        'text': {'type': 'string'},
                    },
                },
            ],
        }
