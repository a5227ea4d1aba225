"""
Persistence collaborator contract.

Durable storage lives outside this package. ``BranchStore`` is the
contract a storage backend implements; ``InMemoryBranchStore`` is the
reference implementation used by the CLI and tests.
"""

from typing import Iterable, Protocol, runtime_checkable

from branchimport.importing.aggregate import PersistOutcome
from branchimport.schemas.branch import BranchRecord
from branchimport.utils.logging import get_logger

log = get_logger(__name__)


@runtime_checkable
class BranchStore(Protocol):
    """Something that can persist branch records."""

    def store(self, records: Iterable[BranchRecord]) -> list[PersistOutcome]:
        """Persist records; return one outcome per record, in input order."""
        ...


class InMemoryBranchStore:
    """
    Upsert-by-branch-code store held in a dict.

    Records without a branch code are skipped, as are records identical
    to the one already stored under their code.
    """

    def __init__(self) -> None:
        self._records: dict[str, BranchRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def get(self, branch_code: str) -> BranchRecord | None:
        return self._records.get(branch_code)

    def records(self) -> list[BranchRecord]:
        """Stored records in first-insertion order."""
        return list(self._records.values())

    def store(self, records: Iterable[BranchRecord]) -> list[PersistOutcome]:
        outcomes: list[PersistOutcome] = []
        for record in records:
            code = record.branch_code
            if not code:
                outcomes.append(PersistOutcome.SKIPPED)
                continue
            existing = self._records.get(code)
            if existing is None:
                outcomes.append(PersistOutcome.IMPORTED)
            elif existing == record:
                outcomes.append(PersistOutcome.SKIPPED)
                continue
            else:
                outcomes.append(PersistOutcome.UPDATED)
            self._records[code] = record

        log.debug(
            "Stored branch records",
            outcomes={o.value: outcomes.count(o) for o in PersistOutcome},
            stored=len(self._records),
        )
        return outcomes
