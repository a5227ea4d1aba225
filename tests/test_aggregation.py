"""Tests for batch aggregation, persistence outcomes and the table contract."""

import pandas as pd
import pandera.pandas as pa
import pytest

from branchimport.importing import (
    ImportAggregator,
    ImportSummary,
    InMemoryBranchStore,
    PersistOutcome,
    merge_outcomes,
    records_to_frame,
)
from branchimport.importing.store import BranchStore
from branchimport.ingestion.tabular import extract_csv
from branchimport.schemas import TABLE_COLUMNS, BranchRecord, BranchTableSchema, RawBranch


@pytest.fixture
def mixed_batch() -> list[RawBranch]:
    """Batch with a clean, a warning-only and a blocking record."""
    return [
        RawBranch(fields={"branchCode": "A1", "name": "One", "natoLocode": "GBMAN"}),
        RawBranch(fields={"branchCode": "B2", "name": "Two", "phone": "123"}),
        RawBranch(fields={"name": "Three"}),
    ]


class TestImportAggregator:
    """Tests for ImportAggregator.aggregate."""

    def test_counts_and_errors(self, mixed_batch: list[RawBranch]) -> None:
        """Test counts, error indices and that every record is accepted."""
        result = ImportAggregator().aggregate(mixed_batch)

        assert result.summary == ImportSummary(total=3, valid=2, invalid=1)
        assert [e.index for e in result.errors] == [1, 2]
        assert len(result.accepted) == 3
        assert result.accepted[2].name == "Three"
        assert result.invalid_rows == frozenset({2})

    def test_summary_invariant(self, mixed_batch: list[RawBranch]) -> None:
        """Test valid + invalid == total for any batch prefix."""
        aggregator = ImportAggregator()
        for n in range(len(mixed_batch) + 1):
            summary = aggregator.aggregate(mixed_batch[:n]).summary
            assert summary.valid + summary.invalid == summary.total == n

    def test_persistence_counts_start_at_zero(self, mixed_batch: list[RawBranch]) -> None:
        """Test imported/updated/skipped are left for persistence."""
        summary = ImportAggregator().aggregate(mixed_batch).summary
        assert (summary.imported, summary.updated, summary.skipped) == (0, 0, 0)

    def test_empty_batch(self) -> None:
        """Test an empty batch aggregates without errors."""
        result = ImportAggregator().aggregate([])
        assert result.summary.total == 0
        assert result.errors == ()

    def test_csv_end_to_end(self, end_to_end_csv: str) -> None:
        """Test the two-row CSV with an empty code in the second row."""
        result = ImportAggregator().aggregate(extract_csv(end_to_end_csv))

        assert result.summary.to_dict() == {
            "total": 2,
            "valid": 1,
            "invalid": 1,
            "imported": 0,
            "updated": 0,
            "skipped": 0,
        }
        assert len(result.errors) == 1
        error = result.errors[0].to_dict()
        assert error["index"] == 1
        assert error["branchCode"] is None
        assert error["branchName"] == "City Branch"
        assert error["error"]["missingFields"] == ["branchCode"]


class TestImportSummary:
    """Tests for summary immutability and invariants."""

    def test_inconsistent_counts_rejected(self) -> None:
        """Test valid + invalid must equal total."""
        with pytest.raises(ValueError, match="must equal total"):
            ImportSummary(total=3, valid=1, invalid=1)

    def test_persistence_counts_bounded(self) -> None:
        """Test persistence counts cannot exceed total."""
        with pytest.raises(ValueError, match="exceeds total"):
            ImportSummary(total=1, valid=1, invalid=0, imported=1, skipped=1)

    def test_negative_rejected(self) -> None:
        """Test negative counts are rejected."""
        with pytest.raises(ValueError, match="non-negative"):
            ImportSummary(total=0, valid=1, invalid=-1)

    def test_frozen(self) -> None:
        """Test summaries cannot be mutated."""
        summary = ImportSummary(total=1, valid=1, invalid=0)
        with pytest.raises(AttributeError):
            summary.imported = 1  # type: ignore[misc]


class TestMergeOutcomes:
    """Tests for folding persistence outcomes into a summary."""

    def test_merge(self) -> None:
        """Test outcomes are counted into a new summary."""
        base = ImportSummary(total=4, valid=3, invalid=1)
        merged = merge_outcomes(
            base,
            [
                PersistOutcome.IMPORTED,
                PersistOutcome.IMPORTED,
                PersistOutcome.UPDATED,
                PersistOutcome.SKIPPED,
            ],
        )
        assert (merged.imported, merged.updated, merged.skipped) == (2, 1, 1)
        assert base.imported == 0

    def test_accepts_plain_values(self) -> None:
        """Test outcome strings from a remote store are accepted."""
        merged = merge_outcomes(ImportSummary(total=1, valid=1, invalid=0), ["updated"])
        assert merged.updated == 1

    def test_too_many_outcomes(self) -> None:
        """Test more outcomes than records is an error."""
        with pytest.raises(ValueError):
            merge_outcomes(ImportSummary(total=1, valid=1, invalid=0), [PersistOutcome.SKIPPED] * 2)


class TestInMemoryBranchStore:
    """Tests for the reference upsert store."""

    def test_upsert(self) -> None:
        """Test insert, update, unchanged and code-less records."""
        store = InMemoryBranchStore()
        first = BranchRecord(branch_code="A1", name="One")
        changed = BranchRecord(branch_code="A1", name="One (renamed)")
        no_code = BranchRecord(name="Nameless")

        assert store.store([first, no_code]) == [PersistOutcome.IMPORTED, PersistOutcome.SKIPPED]
        assert store.store([first]) == [PersistOutcome.SKIPPED]
        assert store.store([changed]) == [PersistOutcome.UPDATED]
        assert len(store) == 1
        assert store.get("A1") == changed

    def test_satisfies_protocol(self) -> None:
        """Test the reference store implements BranchStore."""
        assert isinstance(InMemoryBranchStore(), BranchStore)


class TestAcceptedFrame:
    """Tests for the tabular hand-off of accepted records."""

    def test_frame_matches_schema(self, mixed_batch: list[RawBranch]) -> None:
        """Test the accepted frame validates and flags rows."""
        df = ImportAggregator().aggregate(mixed_batch).accepted_frame()

        assert list(df.columns) == TABLE_COLUMNS
        assert df["row"].tolist() == [0, 1, 2]
        assert df["valid"].tolist() == [True, True, False]
        assert df["unmapped"].tolist() == [False, True, True]
        assert df.loc[0, "natoLocode"] == "GBMAN"
        assert pd.isna(df.loc[2, "branchCode"])

    def test_typed_columns(self) -> None:
        """Test boolean and float columns keep their types."""
        record = BranchRecord.from_raw(
            RawBranch(
                fields={
                    "branchCode": "A1",
                    "name": "One",
                    "atAirport": True,
                    "latitude": 53.3656,
                    "longitude": "east",
                }
            )
        )
        df = records_to_frame([record])
        assert df.loc[0, "atAirport"] == True  # noqa: E712
        assert df.loc[0, "latitude"] == pytest.approx(53.3656)
        assert pd.isna(df.loc[0, "longitude"])

    def test_empty_frame(self) -> None:
        """Test an empty batch gives an empty but valid frame."""
        df = records_to_frame([])
        assert df.empty
        assert list(df.columns) == TABLE_COLUMNS

    def test_schema_rejects_extra_columns(self, mixed_batch: list[RawBranch]) -> None:
        """Test the table contract is strict about columns."""
        df = ImportAggregator().aggregate(mixed_batch).accepted_frame()
        df["extra"] = 1
        # breaks strict and ordered at once
        with pytest.raises((pa.errors.SchemaError, pa.errors.SchemaErrors)):
            BranchTableSchema.validate(df)
