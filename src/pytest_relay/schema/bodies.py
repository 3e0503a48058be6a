"""Request and response body definitions.

A body is an explicit tagged variant: it either references a file
(`path`), or holds JSON text (`json`), or holds plain text (`text`).
File references are resolved at compile time and re-tagged by the
extension of the file they point to.
"""

from enum import StrEnum
from json import JSONDecodeError, dumps, loads
from typing import TYPE_CHECKING, Any

from pydantic import Field, model_validator

from pytest_relay.models import SchemaModel
from pytest_relay.names import PLACEHOLDER_PATTERN

if TYPE_CHECKING:
    from pathlib import Path

JSON_EXTENSION = '.json'


class BodyKind(StrEnum):
    """Tag of a body variant."""

    PATH = 'path'
    JSON = 'json'
    TEXT = 'text'


class DataBody(SchemaModel):
    """Tagged body value.

    In a test source a body is written either as a plain string or as a
    mapping with exactly one of the `path`, `json` or `text` keys. A plain
    string is tagged `json` when it starts with `{` or `[`, and `text`
    otherwise. The `json` key also accepts a YAML structure which is
    serialized to JSON text. Plain text starting with `{` or `[` must be
    written with the `text` key.
    """

    kind: BodyKind = Field(
        title='Body kind',
        description='Tag of the body variant: `path`, `json` or `text`.',
    )

    value: str = Field(
        title='Body value',
        description='File reference for `path` bodies, body text otherwise.',
    )

    @model_validator(mode='before')
    @classmethod
    def from_source(cls, data: Any) -> Any:  # noqa: ANN401
        """Normalize source notations into `kind` and `value`.

        Args:
            data: Raw body as written in a test source.

        Returns:
            Mapping with `kind` and `value` keys.

        Raises:
            ValueError: If a tagged mapping does not hold exactly one tag.
        """
        if isinstance(data, str):
            return cls.infer(data).model_dump()

        if not isinstance(data, dict) or {'kind', 'value'} <= data.keys():
            return data

        tags = [kind for kind in BodyKind if kind.value in data]
        if len(tags) != 1 or len(data) != 1:
            raise ValueError('Body must define exactly one of `path`, `json` or `text`')

        kind = tags[0]
        value = data[kind.value]
        if kind == BodyKind.JSON and not isinstance(value, str):
            value = dumps(value, ensure_ascii=False)

        return {'kind': kind, 'value': value}

    @classmethod
    def infer(cls, value: str) -> 'DataBody':
        """Build an inline body tagged by its leading character."""
        if value.lstrip().startswith(('{', '[')):
            return cls(kind=BodyKind.JSON, value=value)

        return cls(kind=BodyKind.TEXT, value=value)

    @classmethod
    def from_file(cls, path: 'Path') -> 'DataBody':
        """Build a body from file contents, tagged by file extension."""
        kind = BodyKind.JSON if path.suffix.lower() == JSON_EXTENSION else BodyKind.TEXT

        return cls(kind=kind, value=path.read_text(encoding='utf-8'))

    @property
    def is_json(self) -> bool:
        """Whether the body holds JSON text."""
        return self.kind == BodyKind.JSON

    @property
    def has_placeholders(self) -> bool:
        """Whether the body still holds `{{ $name }}` placeholders."""
        return PLACEHOLDER_PATTERN.search(self.value) is not None

    def replace(self, value: str) -> 'DataBody':
        """Return a copy of the body holding another value."""
        return self.model_copy(update={'value': value})

    def validate_json(self) -> None:
        """Check JSON syntax of a JSON body.

        Raises:
            ValueError: If the body is tagged `json` but is not valid JSON.
        """
        if not self.is_json:
            return

        try:
            loads(self.value)
        except JSONDecodeError as base:
            raise ValueError(f'Invalid JSON: {base}') from base
