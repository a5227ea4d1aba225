"""
Import report construction.

Derives an overall classification, a human message and count badges
from an ``ImportSummary`` and its validation errors. Performs no
validation of its own.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from branchimport.importing.aggregate import ImportSummary
from branchimport.validation.core import ValidationError


class Classification(str, Enum):
    """Overall outcome of an import run."""

    COMPLETE_SUCCESS = "complete_success"
    PARTIAL_SUCCESS = "partial_success"
    ALL_SKIPPED = "all_skipped"
    FAILURE = "failure"


class BadgeVariant(str, Enum):
    """Visual weight of a count badge."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"


@dataclass(frozen=True)
class Badge:
    """A labelled count shown next to the report headline."""

    label: str
    count: int
    variant: BadgeVariant

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "count": self.count, "variant": self.variant.value}


@dataclass(frozen=True)
class Report:
    """
    Structured import report.

    Attributes:
        classification: Overall outcome.
        message: One-line human summary.
        summary: Counts the report was built from.
        errors: Validation errors ordered by batch index.
        badges: Non-zero counts worth highlighting.
    """

    classification: Classification
    message: str
    summary: ImportSummary
    errors: tuple[ValidationError, ...] = ()
    badges: tuple[Badge, ...] = ()

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form for UI and JSON consumers."""
        return {
            "classification": self.classification.value,
            "message": self.message,
            "summary": self.summary.to_dict(),
            "badges": [badge.to_dict() for badge in self.badges],
            "validationErrors": [error.to_dict() for error in self.errors],
        }


# Summary attribute -> (badge label, variant), in display order
BADGE_SPECS: tuple[tuple[str, str, BadgeVariant], ...] = (
    ("imported", "Imported", BadgeVariant.SUCCESS),
    ("updated", "Updated", BadgeVariant.INFO),
    ("skipped", "Skipped", BadgeVariant.WARNING),
    ("invalid", "Invalid", BadgeVariant.DANGER),
)


class ReportFormatter:
    """Turns aggregation output into a ``Report``."""

    def format(
        self,
        summary: ImportSummary,
        errors: Sequence[ValidationError],
    ) -> Report:
        """
        Build the report for one run.

        Args:
            summary: Counts after persistence outcomes were merged.
            errors: Validation errors in any order.

        Returns:
            Report with errors sorted by ``index``.
        """
        ordered = tuple(sorted(errors, key=lambda e: e.index))
        classification = self.classify(summary, ordered)
        return Report(
            classification=classification,
            message=self.message(classification, summary, ordered),
            summary=summary,
            errors=ordered,
            badges=self.badges(summary),
        )

    @staticmethod
    def classify(
        summary: ImportSummary,
        errors: Sequence[ValidationError],
    ) -> Classification:
        """Apply the classification rules; the first matching rule wins."""
        if summary.persisted > 0:
            if errors:
                return Classification.PARTIAL_SUCCESS
            return Classification.COMPLETE_SUCCESS
        if summary.skipped > 0:
            return Classification.ALL_SKIPPED
        return Classification.FAILURE

    @staticmethod
    def badges(summary: ImportSummary) -> tuple[Badge, ...]:
        """One badge per non-zero count."""
        return tuple(
            Badge(label=label, count=getattr(summary, attr), variant=variant)
            for attr, label, variant in BADGE_SPECS
            if getattr(summary, attr) > 0
        )

    @staticmethod
    def message(
        classification: Classification,
        summary: ImportSummary,
        errors: Sequence[ValidationError],
    ) -> str:
        if classification is Classification.COMPLETE_SUCCESS:
            return (
                f"Branches uploaded successfully! {summary.imported} imported, "
                f"{summary.updated} updated, {summary.total} total."
            )
        if classification is Classification.PARTIAL_SUCCESS:
            return (
                "Branches were imported despite validation issues: "
                f"{summary.imported} imported, {summary.updated} updated, "
                f"{len(errors)} with validation errors."
            )
        if classification is Classification.ALL_SKIPPED:
            return f"No branches were imported; all {summary.skipped} were skipped."
        if summary.total == 0:
            return "No branches found in the upload."
        if summary.invalid:
            return (
                f"No branches were imported; {summary.invalid} of "
                f"{summary.total} failed validation."
            )
        return "No branches were imported."

    @staticmethod
    def validation_message(summary: ImportSummary) -> str:
        """Headline for a run that validated records without persisting them."""
        if summary.total == 0:
            return "No branches found in the upload."
        return (
            f"{summary.valid} of {summary.total} branches passed "
            "the required-field check."
        )
