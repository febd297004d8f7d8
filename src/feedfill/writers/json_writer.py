"""JSON array output."""

from pathlib import Path
from typing import List

import orjson

from ..types import Record
from .base import RecordWriter


class JsonRecordWriter(RecordWriter):
    """
    Writes records as an indented JSON array of objects.

    Keys follow Record.to_dict(): symbol, side, quantity, price, sequence.
    Files from the older orders.json client used buySellIndicator and
    packetSequence for side and sequence; those names are not emitted.
    """

    suffix = ".json"

    def _write_file(self, path: Path, records: List[Record]) -> None:
        payload = orjson.dumps(
            [r.to_dict() for r in records],
            option=orjson.OPT_INDENT_2,
        )
        path.write_bytes(payload)
