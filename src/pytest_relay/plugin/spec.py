"""Pytest collector of YAML test sources.

Each collected file is compiled with the shared `TestCompiler` and
every compiled test becomes a `RelayCase` item. Definitions with cases
produce one item per case, named `<name> #<index>`.
"""

from typing import TYPE_CHECKING

import pytest

from .case import RelayCase

if TYPE_CHECKING:
    from collections.abc import Iterable


class RelaySpec(pytest.File):
    """Pytest file collector for test source files.

    A source file that can not be compiled fails its collection and
    none of its tests are collected.
    """

    def collect(self) -> 'Iterable[RelayCase]':
        """Collect pytest items from a test source file.

        Returns:
            Iterable of `RelayCase` items in declaration order.

        Raises:
            CompileError: If the source file can not be compiled.
        """
        compiler = self.config.relay_compiler  # type: ignore[attr-defined]
        variable_names = self.config.relay_session.variable_names  # type: ignore[attr-defined]

        definitions = compiler.parse_file(self.path)
        variable_names |= compiler.variable_names(definitions)

        tests = compiler.compile(
            definitions,
            directory=self.path.parent,
            filename=f'{self.path}',
            reserved=variable_names,
        )

        for test in tests:
            yield RelayCase.from_parent(
                self,
                name=test.name,
                test=test,
            )
