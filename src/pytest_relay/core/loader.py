"""Test source tree traversal.

This module discovers test source files under a file or a directory and
yields their compiled tests lazily, one file at a time, in a
deterministic order.
"""

from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from pytest_relay.errors import CompileError, ErrorContext

from .compiler import TestCompiler

if TYPE_CHECKING:
    from collections.abc import Iterator

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest

SOURCE_SUFFIXES = ('.yaml', '.yml')

logger = getLogger(__name__)


class TestLoader:
    """Loader of compiled tests from a test source tree.

    Directories are walked recursively; source files are visited in
    lexicographic order of their POSIX paths. Declaration order is kept
    within every file.
    """

    __test__ = False

    def __init__(self, location: Path | str, *,
                 file_filter: str | None = None,
                 compiler: TestCompiler | None = None) -> None:
        """Initialize the loader.

        Args:
            location: Test source file or directory.
            file_filter: Optional substring a source path must contain.
            compiler: Compiler used for every source file.
        """
        self.location = Path(location)
        self.file_filter = file_filter
        self.compiler = compiler or TestCompiler()

    def discover(self) -> list[Path]:
        """List test source files in traversal order.

        Returns:
            Sorted source file paths.

        Raises:
            CompileError: If the location does not exist.
        """
        if self.location.is_file():
            files = [self.location]
        elif self.location.is_dir():
            files = sorted(
                (
                    path for path in self.location.rglob('*')
                    if path.is_file() and path.suffix.lower() in SOURCE_SUFFIXES
                ),
                key=lambda path: path.as_posix(),
            )
        else:
            raise CompileError(
                'Tests location does not exist',
                context=ErrorContext(filename=f'{self.location}'),
            )

        if self.file_filter:
            files = [path for path in files if self.file_filter in path.as_posix()]

        return files

    def load(self) -> 'Iterator[CompiledTest]':
        """Yield compiled tests of every source file in order.

        Variables declared or captured by a source are run-time variables
        for every source visited after it as well.

        Yields:
            Compiled tests.

        Raises:
            CompileError: If a source file can not be compiled. Tests of
                files visited earlier have been yielded already.
        """
        reserved: set[str] = set()

        for path in self.discover():
            logger.debug('Compiling test source %s', path)

            definitions = self.compiler.parse_file(path)
            reserved |= self.compiler.variable_names(definitions)

            yield from self.compiler.compile(
                definitions,
                directory=path.parent,
                filename=f'{path}',
                reserved=reserved,
            )

    def __iter__(self) -> 'Iterator[CompiledTest]':
        """Iterate over compiled tests."""
        return self.load()
