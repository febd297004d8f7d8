"""Top-level flow: full stream, gap recovery, export."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from .config import FeedConfig
from .errors import RecoveryIncompleteError
from .recovery import RecoveryController, RecoveryStats
from .session import Session, open_session
from .store import RecordStore
from .types import CallType, Record
from .writers import RecordWriter

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one orchestrator run."""
    records: List[Record]
    max_sequence: int
    full_stream_records: int
    recovery: RecoveryStats
    duplicates: int = 0
    decode_errors: int = 0
    outputs: List[Path] = field(default_factory=list)


class StreamOrchestrator:
    """
    Runs one client cycle end to end.

    Flow:
    1. STREAM_ALL on a fresh session. Any failure here is fatal.
    2. RecoveryController backfills every gap in [1, max_sequence].
    3. The store is exported once and handed to each writer.
    """

    def __init__(self, config: FeedConfig, writers: Sequence[RecordWriter] = ()):
        config.validate()
        self.config = config
        self.writers = list(writers)
        self.store: Optional[RecordStore] = None

    async def _open_session(self) -> Session:
        return await open_session(
            self.config.host,
            self.config.port,
            self.store,
            connect_timeout=self.config.connect_timeout_seconds,
            receive_timeout=self.config.receive_timeout_seconds,
            read_size=self.config.read_size,
        )

    async def run(self) -> RunResult:
        self.store = RecordStore()

        # Phase 1: full stream (ConnectError/SessionError propagate)
        session = await self._open_session()
        await session.run(CallType.STREAM_ALL)
        full_stream_records = session.records_received
        # Recovery bound; resend replies never extend it
        upper = self.store.max_sequence

        if upper == 0:
            logger.warning("Full stream delivered no records")
        else:
            logger.info(
                f"Full stream delivered {full_stream_records} record(s), "
                f"max sequence {upper}"
            )

        # Phase 2: recovery
        controller = RecoveryController(
            self.store,
            self._open_session,
            policy=self.config.retry_policy(),
            max_passes=self.config.max_recovery_passes,
        )
        stats = await controller.run()

        missing = self.store.missing_sequences(upper)
        if missing:
            raise RecoveryIncompleteError(missing)
        logger.info("All packets received")

        # Phase 3: export
        records = self.store.export()
        result = RunResult(
            records=records,
            max_sequence=upper,
            full_stream_records=full_stream_records,
            recovery=stats,
            duplicates=self.store.duplicates,
            decode_errors=session.decode_errors + stats.decode_errors,
        )
        for writer in self.writers:
            result.outputs.append(writer.write(records))

        logger.info(
            f"Run summary: records={len(records)} max_sequence={result.max_sequence} "
            f"recovered={stats.recovered} attempts={stats.attempts} "
            f"duplicates={result.duplicates} decode_errors={result.decode_errors}"
        )
        return result
