"""Record validation."""

from branchimport.validation.core import (
    ValidationError,
    ValidationErrorDetail,
    ValidationOutcome,
    Validator,
)

__all__ = ["ValidationError", "ValidationErrorDetail", "ValidationOutcome", "Validator"]
