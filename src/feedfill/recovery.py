"""Gap recovery: request every missing sequence until the store is complete."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from .backoff import RetryPolicy
from .errors import ConnectError, RecoveryExhaustedError, RecoveryIncompleteError, SessionError
from .session import Session
from .store import RecordStore
from .types import CallType

logger = logging.getLogger(__name__)

# The resend request carries the target sequence in a single byte.
MAX_ADDRESSABLE_SEQUENCE = 0xFF

SessionFactory = Callable[[], Awaitable[Session]]


@dataclass
class RecoveryStats:
    """Counters for one recovery run."""
    requested: int = 0  # Sequence requests started (once per sequence per pass)
    attempts: int = 0  # Sessions opened, including retries
    failures: int = 0  # Attempts that raised ConnectError/SessionError
    recovered: int = 0  # Sequences that went from missing to seen
    passes: int = 0
    decode_errors: int = 0


class RecoveryController:
    """
    Backfills gaps one sequence at a time.

    The upper bound is the store's max_sequence when run() starts; resend
    responses never extend it. Each pass re-derives the missing list from the
    store, and each sequence is re-checked right before it is requested since
    an earlier response may already have delivered it.

    Failed attempts are retried for the same sequence after the policy delay.
    With the default policy this never gives up.
    """

    def __init__(
        self,
        store: RecordStore,
        connect: SessionFactory,
        policy: Optional[RetryPolicy] = None,
        max_passes: Optional[int] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.store = store
        self._connect = connect
        self.policy = policy or RetryPolicy()
        self.max_passes = max_passes
        self._sleep = sleep
        self.stats = RecoveryStats()

    async def run(self) -> RecoveryStats:
        upper = self.store.max_sequence
        missing = self.store.missing_sequences(upper)
        if not missing:
            logger.info(f"No gaps in [1, {upper}], nothing to recover")
            return self.stats

        logger.info(f"Recovering {len(missing)} missing sequence(s) in [1, {upper}]")
        initial = len(missing)
        backoff = self.policy.new_backoff()

        while missing:
            self.stats.passes += 1
            before = len(missing)

            for sequence in missing:
                if sequence in self.store:
                    continue
                await self._recover_one(sequence)

            missing = self.store.missing_sequences(upper)
            if missing and self.max_passes is not None and self.stats.passes >= self.max_passes:
                raise RecoveryIncompleteError(missing)
            if missing and len(missing) == before:
                delay = backoff.next()
                logger.warning(
                    f"Pass {self.stats.passes} closed no gaps, {len(missing)} still missing; "
                    f"next pass in {delay:.1f}s"
                )
                await self._sleep(delay)
            else:
                backoff.reset()

        self.stats.recovered = initial
        logger.info(
            f"Recovery complete: {self.stats.recovered} recovered in "
            f"{self.stats.attempts} attempt(s), {self.stats.failures} failure(s)"
        )
        return self.stats

    async def _recover_one(self, sequence: int) -> None:
        """Request one sequence, retrying the same sequence until an attempt succeeds."""
        self.stats.requested += 1
        if sequence > MAX_ADDRESSABLE_SEQUENCE:
            logger.warning(
                f"Sequence {sequence} exceeds the 1-byte resend field; "
                f"request will carry {sequence & MAX_ADDRESSABLE_SEQUENCE}"
            )

        backoff = self.policy.new_backoff()
        failures = 0

        while True:
            self.stats.attempts += 1
            logger.info(f"Requesting missing sequence {sequence}")
            session = None
            try:
                session = await self._connect()
                await session.run(CallType.RESEND_ONE, sequence)
            except (ConnectError, SessionError) as e:
                failures += 1
                self.stats.failures += 1
                if self.policy.exhausted(failures):
                    raise RecoveryExhaustedError(sequence, failures) from e

                delay = backoff.next()
                logger.warning(
                    f"Failed to request missing sequence {sequence}: {e}, "
                    f"retrying in {delay:.1f}s"
                )
                await self._sleep(delay)
                continue
            finally:
                if session is not None:
                    self.stats.decode_errors += session.decode_errors

            if sequence not in self.store:
                logger.warning(f"Resend of sequence {sequence} completed without delivering it")
            return
