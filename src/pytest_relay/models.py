"""Base Pydantic models.

Every model of a test source, of a compiled test and of the run
settings derives from one of the classes below, so that validation
rules are the same across the package.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Immutable, strictly validated model.

    Instances are frozen: the compiler and the variable store derive new
    copies instead of editing a model in place. Unknown keys are rejected,
    so a misspelled key in a test source is an error rather than being
    silently ignored. Fields accept both their Python names and their
    camelCase source aliases.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
        populate_by_name=True,
    )


class DescribedMixin(SchemaModel):
    """Free-text description shown by reporters only."""

    description: str | None = Field(
        default=None,
        title='Description',
        description='Human-readable description, shown in reports.',
    )


class SettingsModel(BaseSettings):
    """Immutable model of settings resolved from the environment.

    Unlike source models, settings ignore unknown keys: the environment
    and `.env` files routinely hold unrelated variables.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
