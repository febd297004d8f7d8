"""feedfill - gap-recovering client for a sequenced binary market-data feed.

The client:
- Requests the full record stream once
- Finds sequence numbers that never arrived
- Requests each missing sequence individually until it is filled
- Hands the complete record set to persistence writers
"""

from .codec import decode_record, encode_record, encode_request, split_frames, RECORD_SIZE, REQUEST_SIZE
from .config import FeedConfig
from .errors import (
    FeedFillError,
    ConnectError,
    SessionError,
    DecodeError,
    ConfigurationError,
    RecoveryError,
    RecoveryExhaustedError,
    RecoveryIncompleteError,
)
from .orchestrator import RunResult, StreamOrchestrator
from .recovery import RecoveryController, RecoveryStats
from .session import Session, open_session
from .store import RecordStore, sorted_by_sequence
from .types import CallType, Record, SessionState, Side

__version__ = "0.1.0"

__all__ = [
    # Codec
    "decode_record",
    "encode_record",
    "encode_request",
    "split_frames",
    "RECORD_SIZE",
    "REQUEST_SIZE",
    # Types
    "CallType",
    "Record",
    "SessionState",
    "Side",
    # Components
    "FeedConfig",
    "RecordStore",
    "sorted_by_sequence",
    "Session",
    "open_session",
    "RecoveryController",
    "RecoveryStats",
    "StreamOrchestrator",
    "RunResult",
    # Errors
    "FeedFillError",
    "ConnectError",
    "SessionError",
    "DecodeError",
    "ConfigurationError",
    "RecoveryError",
    "RecoveryExhaustedError",
    "RecoveryIncompleteError",
]
