"""Parquet output with a fixed schema."""

from pathlib import Path
from typing import List

import pyarrow as pa
import pyarrow.parquet as pq

from ..types import Record
from .base import RecordWriter

RECORD_SCHEMA = pa.schema([
    pa.field("symbol", pa.string(), nullable=False),
    pa.field("side", pa.string(), nullable=False),
    pa.field("quantity", pa.uint32(), nullable=False),
    pa.field("price", pa.uint32(), nullable=False),
    pa.field("sequence", pa.uint32(), nullable=False),
])


def records_to_table(records: List[Record]) -> pa.Table:
    """Convert records to an Arrow table using the fixed schema."""
    return pa.Table.from_pylist([r.to_dict() for r in records], schema=RECORD_SCHEMA)


class ParquetRecordWriter(RecordWriter):
    """Writes records to a single Parquet file."""

    suffix = ".parquet"

    def _write_file(self, path: Path, records: List[Record]) -> None:
        # Dictionary encoding off so string columns stay plain strings
        pq.write_table(
            records_to_table(records),
            path,
            compression="snappy",
            use_dictionary=False,
        )
