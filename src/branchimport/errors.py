"""
Structural ingestion failures.

These abort a run before validation starts. Data-quality problems are
never raised; they are reported as ``ValidationError`` entries instead.
"""

from typing import ClassVar


class IngestionError(Exception):
    """Base class for failures that prevent any branch from being extracted."""

    code: ClassVar[str] = "INGESTION_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        """Serialisable form for transport layers."""
        return {"code": self.code, "message": self.message}


class FormatUndetectedError(IngestionError):
    """Payload did not match any known feed format."""

    code: ClassVar[str] = "FORMAT_UNDETECTED"


class ParseError(IngestionError):
    """Payload claimed a format but could not be parsed as it."""

    code: ClassVar[str] = "PARSE_ERROR"

    def __init__(self, message: str, *, format_name: str | None = None) -> None:
        if format_name:
            message = f"{format_name}: {message}"
        super().__init__(message)
        self.format_name = format_name


class PayloadTooLargeError(IngestionError):
    """Payload exceeds the configured upload limit."""

    code: ClassVar[str] = "PAYLOAD_TOO_LARGE"
