"""Run settings resolved from the environment.

Every setting can be provided as an environment variable prefixed with
`RELAY_` (for example `RELAY_HOST`) or in a `.env` file. Command-line
options take precedence over resolved settings.
"""

from pathlib import Path

from pydantic import Field, ImportString, PositiveFloat
from pydantic_settings import SettingsConfigDict

from pytest_relay.models import SettingsModel

ENV_PREFIX = 'RELAY_'


class RelaySettings(SettingsModel):
    """Settings of a run."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file='.env',
        env_file_encoding='utf-8',
    )

    host: str | None = Field(
        default=None,
        title='Target host',
        description='Base URL of the service under test.',
    )

    tests: Path | None = Field(
        default=None,
        title='Tests location',
        description='Test source file or directory.',
    )

    spec: Path | None = Field(
        default=None,
        title='API description',
        description='OpenAPI or Swagger document to validate responses against.',
    )

    timeout: PositiveFloat | None = Field(
        default=None,
        title='Request timeout',
        description='Seconds to wait for every response.',
    )

    file_filter: str | None = Field(
        default=None,
        title='File filter',
        description='Substring a test source path must contain to be run.',
    )

    db: ImportString | None = Field(
        default=None,
        title='Database connection factory',
        description='`module:name` of a callable returning a DB-API connection for database checks.',
    )

    fixtures_loader: ImportString | None = Field(
        default=None,
        title='Fixtures loader factory',
        description='`module:name` of a callable returning the fixtures loader.',
    )

    verbose: bool = Field(
        default=False,
        title='Verbose output',
        description='Report passed tests in detail too.',
    )
