"""Runtime settings read from the environment."""

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the crdtypes command line.

    Every field can be set with a ``CRDTYPES_`` prefixed environment
    variable, e.g. ``CRDTYPES_WORKERS=4``, or in a ``.env`` file.
    ``LOG_LEVEL`` is honoured when ``CRDTYPES_LOG_LEVEL`` is not set.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRDTYPES_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("CRDTYPES_LOG_LEVEL", "LOG_LEVEL"),
        description="Logging level",
    )
    workers: int = Field(default=1, ge=1, description="Threads used to parse CRDs")
    package_version: str = Field(
        default="0.0.0-dev", description="Version stamped into the package dump"
    )
    package_name: str = Field(default="crds", description="Name of the package dump")
    http_timeout: float = Field(
        default=30, gt=0, description="Timeout in seconds for fetching remote CRDs"
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value):
        return value.upper()
