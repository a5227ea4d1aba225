"""Batch aggregation and the persistence hand-off."""

from branchimport.importing.aggregate import (
    AggregationResult,
    ImportAggregator,
    ImportSummary,
    PersistOutcome,
    merge_outcomes,
    records_to_frame,
)
from branchimport.importing.store import BranchStore, InMemoryBranchStore

__all__ = [
    "AggregationResult",
    "BranchStore",
    "ImportAggregator",
    "ImportSummary",
    "InMemoryBranchStore",
    "PersistOutcome",
    "merge_outcomes",
    "records_to_frame",
]
