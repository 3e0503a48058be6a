"""YAML test source parser.

This module turns the text of a test source into an ordered tuple of
validated test definitions. Declaration order is preserved.
"""

from typing import TYPE_CHECKING

from pydantic import ValidationError
from yaml import SafeLoader, load
from yaml.error import MarkedYAMLError, YAMLError

from pytest_relay.errors import CompileError, ErrorContext
from pytest_relay.schema import TestDefinition

if TYPE_CHECKING:
    from io import TextIOBase

if TYPE_CHECKING:
    from yaml import BaseLoader

#: Parsed test source: ordered test definitions.
type Definitions = tuple[TestDefinition, ...]


class DocumentParser:
    """Parser of YAML test sources.

    A source is a single YAML document holding a list of test
    definitions. An empty document is an empty list.
    """

    def __init__(self, loader: type['BaseLoader'] = SafeLoader) -> None:
        """Initialize the parser.

        Args:
            loader: YAML loader class used to read sources.
        """
        self.loader = loader

    def parse(self, content: 'TextIOBase | str', *,
              filename: str | None = None) -> Definitions:
        """Parse YAML content into validated test definitions.

        Args:
            content: YAML content as a string or file-like object.
            filename: Source file name used in error messages.

        Returns:
            Test definitions in declaration order.

        Raises:
            CompileError: If YAML parsing fails or a definition is invalid.
        """
        try:
            document = load(content, Loader=self.loader)  # noqa: S506

        except MarkedYAMLError as base:
            raise CompileError.from_yaml_error(base, filename=filename) from base

        except YAMLError as base:
            raise CompileError(
                'Invalid YAML',
                context=ErrorContext(filename=filename, error=base),
            ) from base

        if document is None:
            return ()

        if not isinstance(document, list):
            raise CompileError(
                'Test source must be a list of test definitions',
                context=ErrorContext(filename=filename),
            )

        definitions = []
        for position, data in enumerate(document):
            try:
                definitions.append(TestDefinition.model_validate(data))

            except ValidationError as base:
                raise CompileError.from_pydantic_error(
                    base,
                    data=data,
                    filename=filename,
                    test_num=position,
                ) from base

        return tuple(definitions)
