"""In-memory record accumulator for one client run."""

import logging
from typing import Iterable, List, Optional

from .types import Record

logger = logging.getLogger(__name__)


class RecordStore:
    """
    Accumulates decoded records and tracks which sequences have been seen.

    Records are kept in arrival order, not sequence order. A duplicate frame
    is appended again but does not change the seen set; duplicates are
    counted so callers can report them.

    The store is exported once at the end of a run and rejects inserts after
    that.
    """

    def __init__(self):
        self._seen: set[int] = set()
        self._records: List[Record] = []
        self._max_sequence = 0
        self._duplicates = 0
        self._exported = False

    @property
    def max_sequence(self) -> int:
        """Highest sequence number observed so far (0 if none)."""
        return self._max_sequence

    @property
    def duplicates(self) -> int:
        """Frames received for a sequence that was already seen."""
        return self._duplicates

    @property
    def seen(self) -> frozenset[int]:
        return frozenset(self._seen)

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    @property
    def exported(self) -> bool:
        return self._exported

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, sequence: int) -> bool:
        return sequence in self._seen

    def insert(self, record: Record) -> None:
        """Add a record, updating the seen set and max sequence."""
        if self._exported:
            raise RuntimeError("record store already exported")

        if record.sequence in self._seen:
            self._duplicates += 1
            logger.debug(f"Duplicate frame for sequence {record.sequence}")
        else:
            self._seen.add(record.sequence)

        self._records.append(record)
        if record.sequence > self._max_sequence:
            self._max_sequence = record.sequence

    def missing_sequences(self, upper: Optional[int] = None) -> List[int]:
        """
        Sequences in [1, upper] that have not been seen, ascending.

        Args:
            upper: Inclusive bound; defaults to max_sequence

        Returns:
            Missing sequence numbers (empty when the bound is 0)
        """
        bound = self._max_sequence if upper is None else upper
        return [seq for seq in range(1, bound + 1) if seq not in self._seen]

    def export(self) -> List[Record]:
        """Return records in arrival order and close the store to inserts."""
        self._exported = True
        return list(self._records)


def sorted_by_sequence(records: Iterable[Record]) -> List[Record]:
    """Order records by sequence number; stable for duplicates."""
    return sorted(records, key=lambda r: r.sequence)
