"""Database state checker.

The checker runs the database query of a test on a DB-API 2.0
connection and compares the returned rows with the expected ones. Rows
are turned into JSON objects keyed by column name; expected rows are
JSON object texts. Comparison honors the comparison flags of the test.
"""

from json import JSONDecodeError, loads
from typing import TYPE_CHECKING, Any

from pytest_relay.schema import Mismatch
from pytest_relay.values import to_text

from .comparison import Comparator

if TYPE_CHECKING:
    from collections.abc import Sequence

if TYPE_CHECKING:
    from pytest_relay.schema import CompiledTest, Result


class DatabaseChecker:
    """Checker of database state after a request."""

    name = 'database'

    def __init__(self, connection: Any) -> None:  # noqa: ANN401
        """Initialize a checker.

        Args:
            connection: Open DB-API 2.0 connection.
        """
        self.connection = connection

    def fetch(self, query: str) -> list[dict[str, Any]]:
        """Run a query and return its rows keyed by column name.

        Raises:
            Exception: Any error of the database driver.
        """
        cursor = self.connection.cursor()
        try:
            cursor.execute(query)
            columns = [column[0] for column in cursor.description or ()]
            return [
                dict(zip(columns, row, strict=True))
                for row in cursor.fetchall()
            ]
        finally:
            cursor.close()

    def check(self, test: 'CompiledTest', result: 'Result') -> 'Sequence[Mismatch]':
        """Compare database rows with the expected ones.

        Raises:
            ValueError: If an expected row is not a JSON object.
        """
        if not test.db_query:
            return []

        expected = []
        for num, row in enumerate(test.db_response):
            try:
                expected.append(loads(row))
            except JSONDecodeError as base:
                raise ValueError(f'Expected database row #{num} is not valid JSON: {base}') from base

        actual = self.fetch(test.db_query)

        result.db_query = test.db_query
        result.db_response = [to_text(row) for row in actual]

        comparator = Comparator(test.comparison, checker=self.name)
        return comparator.compare(expected, actual)
