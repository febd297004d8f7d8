"""Persistence sinks for exported records."""

from pathlib import Path

from ..errors import ConfigurationError
from .base import RecordWriter
from .json_writer import JsonRecordWriter
from .parquet_writer import ParquetRecordWriter, RECORD_SCHEMA, records_to_table

WRITERS = {
    JsonRecordWriter.suffix: JsonRecordWriter,
    ParquetRecordWriter.suffix: ParquetRecordWriter,
}


def writer_for_path(path: Path, sort_by_sequence: bool = False) -> RecordWriter:
    """Pick a writer from the output file suffix."""
    path = Path(path)
    writer_cls = WRITERS.get(path.suffix.lower())
    if writer_cls is None:
        supported = ", ".join(sorted(WRITERS))
        raise ConfigurationError(f"unsupported output type {path.suffix!r} (expected {supported})")
    return writer_cls(path, sort_by_sequence=sort_by_sequence)


__all__ = [
    "RecordWriter",
    "JsonRecordWriter",
    "ParquetRecordWriter",
    "RECORD_SCHEMA",
    "records_to_table",
    "writer_for_path",
]
