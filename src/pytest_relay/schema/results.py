"""Run telemetry models: mismatches, results and summaries."""

from pydantic import BaseModel, ConfigDict, Field

from pytest_relay.models import SchemaModel

from .tests import CompiledTest  # noqa: TC001


class Mismatch(SchemaModel):
    """A single expected-versus-actual difference found by a checker.

    Mismatches are semantic errors: they mark the current test failed
    but never abort a run.
    """

    message: str
    #: Location of the difference, a JSON path or a header name.
    field: str | None = None
    #: Name of the checker that found the difference.
    checker: str | None = None

    def __str__(self) -> str:
        """String representation."""
        if self.field:
            return f'{self.field}: {self.message}'

        return self.message


class Result(BaseModel):
    """Telemetry of a single test execution.

    A result is created by the runner for every executed test, enriched
    by checkers, consumed by reporters and then discarded.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    test: CompiledTest

    method: str = ''
    path: str = ''
    query: str = ''
    request_body: str = ''

    response_body: str = ''
    response_content_type: str = ''
    response_status_code: int = 0
    response_status: str = ''
    response_headers: dict[str, list[str]] = Field(default_factory=dict)

    db_query: str = ''
    db_response: list[str] = Field(default_factory=list)

    errors: list[Mismatch] = Field(default_factory=list)

    @property
    def passed(self) -> bool:
        """Whether no checker reported a mismatch."""
        return not self.errors

    def header_values(self, name: str) -> list[str]:
        """Return all values of a response header, case-insensitively."""
        name = name.lower()

        return [
            value
            for key, values in self.response_headers.items()
            if key.lower() == name
            for value in values
        ]


class Summary(SchemaModel):
    """Aggregated outcome of a run."""

    success: bool = True
    failed: int = 0
    total: int = 0
