"""
Typed configuration models using Pydantic.

Everything an ingestion run can be tuned with lives here. Nothing in the
extraction or validation code reads configuration implicitly; values are
passed down explicitly per run.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_MAX_PAYLOAD_BYTES = 5 * 1024 * 1024


class IngestionConfig(BaseModel):
    """Settings applied to every ingestion run."""

    model_config = ConfigDict(frozen=True)

    default_country_code: str | None = Field(
        default=None,
        description="ISO-3166 code backfilled when a feed omits the country",
    )
    max_payload_bytes: int = Field(
        default=DEFAULT_MAX_PAYLOAD_BYTES,
        gt=0,
        description="Upper bound on raw payload size accepted for a run",
    )
    php_strict: bool = Field(
        default=False,
        description="Reject var_dump text whose array(N) counts do not match",
    )

    @field_validator("default_country_code")
    @classmethod
    def validate_country_code(cls, v: str | None) -> str | None:
        """Ensure the fallback country is a 2-3 letter code, uppercased."""
        if v is None:
            return None
        v = v.strip().upper()
        if not v.isalpha() or len(v) not in (2, 3):
            msg = f"default_country_code must be 2-3 letters, got: {v!r}"
            raise ValueError(msg)
        return v


class LoggingConfig(BaseModel):
    """Logging output configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO", description="Log level name")
    json_output: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Ensure the level is one the logging module knows."""
        v = v.upper()
        if v not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {v!r}"
            raise ValueError(msg)
        return v


class AppConfig(BaseModel):
    """Complete application configuration."""

    model_config = ConfigDict(frozen=True)

    ingestion: IngestionConfig = Field(default_factory=IngestionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def default_country_code(self) -> str | None:
        """Convenience accessor for the fallback country."""
        return self.ingestion.default_country_code
