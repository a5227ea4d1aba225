"""
Batch aggregation of validated branch records.

Every extracted record is accepted for persistence, including records
that failed the identity check; the caller decides what to store. The
aggregator only counts and collects.
"""

import dataclasses
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Sequence

import pandas as pd

from branchimport.schemas.branch import FIELD_ATTRIBUTES, BranchRecord, RawBranch
from branchimport.schemas.table import TABLE_COLUMNS, BranchTableSchema
from branchimport.utils.logging import get_logger
from branchimport.validation.core import ValidationError, Validator

log = get_logger(__name__)

_BOOLEAN_COLUMNS = frozenset({"atAirport"})
_FLOAT_COLUMNS = frozenset({"latitude", "longitude"})


class PersistOutcome(str, Enum):
    """What the persistence collaborator did with one record."""

    IMPORTED = "imported"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ImportSummary:
    """
    Counts for one import run.

    ``valid + invalid == total`` always holds, and persistence counts
    never exceed ``total``. Instances are immutable; use
    ``merge_outcomes`` to add persistence results.
    """

    total: int = 0
    valid: int = 0
    invalid: int = 0
    imported: int = 0
    updated: int = 0
    skipped: int = 0

    def __post_init__(self) -> None:
        counts = dataclasses.asdict(self)
        negative = [name for name, value in counts.items() if value < 0]
        if negative:
            msg = f"Summary counts must be non-negative: {', '.join(negative)}"
            raise ValueError(msg)
        if self.valid + self.invalid != self.total:
            msg = (
                f"valid ({self.valid}) + invalid ({self.invalid}) "
                f"must equal total ({self.total})"
            )
            raise ValueError(msg)
        if self.persisted + self.skipped > self.total:
            msg = (
                f"imported + updated + skipped ({self.persisted + self.skipped}) "
                f"exceeds total ({self.total})"
            )
            raise ValueError(msg)

    @property
    def persisted(self) -> int:
        """Records that were written (new or updated)."""
        return self.imported + self.updated

    def to_dict(self) -> dict[str, int]:
        return dataclasses.asdict(self)


def merge_outcomes(
    summary: ImportSummary,
    outcomes: Iterable[PersistOutcome],
) -> ImportSummary:
    """
    Fold persistence outcomes into a new summary.

    Args:
        summary: Summary produced by the aggregator.
        outcomes: One outcome per record handed to persistence.

    Returns:
        New summary with ``imported``/``updated``/``skipped`` increased.

    Raises:
        ValueError: If the outcomes would exceed the record total.
    """
    counts = Counter(PersistOutcome(outcome) for outcome in outcomes)
    return dataclasses.replace(
        summary,
        imported=summary.imported + counts[PersistOutcome.IMPORTED],
        updated=summary.updated + counts[PersistOutcome.UPDATED],
        skipped=summary.skipped + counts[PersistOutcome.SKIPPED],
    )


def records_to_frame(
    records: Sequence[BranchRecord],
    invalid_rows: Iterable[int] = (),
) -> pd.DataFrame:
    """
    Tabulate records in batch order and check them against ``BranchTableSchema``.

    Opening hours are not part of the table.

    Args:
        records: Records in batch order; row ``i`` is record ``i``.
        invalid_rows: Batch indices of records that failed the identity check.

    Returns:
        Validated DataFrame with ``TABLE_COLUMNS``.
    """
    invalid = set(invalid_rows)
    rows = list(range(len(records)))

    data: dict[str, pd.Series] = {
        "row": pd.Series(rows, dtype="int64"),
        "valid": pd.Series([row not in invalid for row in rows], dtype=bool),
        "unmapped": pd.Series([r.is_unmapped for r in records], dtype=bool),
    }
    for column in TABLE_COLUMNS[3:]:
        values: list[Any] = [getattr(r, FIELD_ATTRIBUTES[column]) for r in records]
        if column in _BOOLEAN_COLUMNS:
            data[column] = pd.Series(values, dtype="boolean")
        elif column in _FLOAT_COLUMNS:
            data[column] = pd.Series(values, dtype="float64")
        else:
            data[column] = pd.Series(values, dtype="string")

    df = pd.DataFrame(data, columns=TABLE_COLUMNS)
    return BranchTableSchema.validate(df)


@dataclass(frozen=True)
class AggregationResult:
    """Output of one aggregation run."""

    summary: ImportSummary
    errors: tuple[ValidationError, ...]
    accepted: tuple[BranchRecord, ...]

    @property
    def invalid_rows(self) -> frozenset[int]:
        """Batch indices of records missing an identity field."""
        return frozenset(e.index for e in self.errors if e.is_blocking)

    def accepted_frame(self) -> pd.DataFrame:
        """Accepted records as a schema-checked DataFrame."""
        return records_to_frame(self.accepted, self.invalid_rows)


class ImportAggregator:
    """
    Validates a batch and collects counts, errors and accepted records.

    Never raises for data-quality problems.
    """

    def __init__(self, validator: Validator | None = None) -> None:
        """
        Initialize aggregator.

        Args:
            validator: Rule set to apply. Defaults to the identity-field rules.
        """
        self.validator = validator or Validator()

    def aggregate(self, raw_branches: Sequence[RawBranch]) -> AggregationResult:
        """
        Validate every record of a batch.

        Args:
            raw_branches: Extracted records in batch order.

        Returns:
            Summary (persistence counts at zero), one error per record
            with any violation, and all records as ``BranchRecord``.
        """
        errors: list[ValidationError] = []
        accepted: list[BranchRecord] = []
        invalid = 0

        for index, raw in enumerate(raw_branches):
            outcome = self.validator.validate(raw, index)
            if not outcome.valid:
                invalid += 1
            if outcome.error is not None:
                errors.append(outcome.error)
            accepted.append(BranchRecord.from_raw(raw))

        total = len(raw_branches)
        summary = ImportSummary(total=total, valid=total - invalid, invalid=invalid)

        log.info(
            "Aggregated batch",
            total=summary.total,
            valid=summary.valid,
            invalid=summary.invalid,
            with_errors=len(errors),
        )
        return AggregationResult(
            summary=summary,
            errors=tuple(errors),
            accepted=tuple(accepted),
        )
