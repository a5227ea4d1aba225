"""
Canonical branch schema and tabular contracts.

All extractors converge on the field set defined here.
"""

from branchimport.schemas.branch import (
    CANONICAL_FIELDS,
    FIELD_ALIASES,
    IDENTITY_FIELDS,
    WEEKDAYS,
    BranchRecord,
    RawBranch,
    Weekday,
    resolve_alias,
    resolve_weekday,
)
from branchimport.schemas.table import TABLE_COLUMNS, BranchTableSchema

__all__ = [
    "CANONICAL_FIELDS",
    "FIELD_ALIASES",
    "IDENTITY_FIELDS",
    "TABLE_COLUMNS",
    "WEEKDAYS",
    "BranchRecord",
    "BranchTableSchema",
    "RawBranch",
    "Weekday",
    "resolve_alias",
    "resolve_weekday",
]
