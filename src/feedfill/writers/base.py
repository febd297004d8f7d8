"""Common base for record persistence sinks."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Sequence

from ..store import sorted_by_sequence
from ..types import Record

logger = logging.getLogger(__name__)


class RecordWriter(ABC):
    """
    Persists an exported record set to a single file.

    Writes go to a sibling temp file first and are renamed into place, so a
    reader never sees a half-written output.
    """

    suffix: str = ""

    def __init__(self, path: Path, sort_by_sequence: bool = False):
        self.path = Path(path)
        self.sort_by_sequence = sort_by_sequence

    def write(self, records: Sequence[Record]) -> Path:
        """
        Write records and return the output path.

        Records are written in the order given unless sort_by_sequence is set.
        """
        rows: List[Record] = sorted_by_sequence(records) if self.sort_by_sequence else list(records)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_name(self.path.name + ".tmp")
        self._write_file(temp_path, rows)
        temp_path.replace(self.path)

        logger.info(f"Saved {len(rows)} record(s) to {self.path}")
        return self.path

    @abstractmethod
    def _write_file(self, path: Path, records: List[Record]) -> None:
        """Serialize records to path."""
        ...
