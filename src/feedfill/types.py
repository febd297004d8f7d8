"""Wire-level value types and enumerations."""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto


class CallType(IntEnum):
    """Request call types understood by the feed server.

    STREAM_ALL: Emit the whole current record set once.
    RESEND_ONE: Retransmit exactly one sequence number.
    """
    STREAM_ALL = 1
    RESEND_ONE = 2


class Side(str, Enum):
    """Side indicator values published by the feed."""
    BUY = "B"
    SELL = "S"


class SessionState(Enum):
    """Lifecycle of a single request/response session.

    IDLE: Constructed, no transport yet.
    CONNECTED: Transport open, nothing written.
    REQUEST_SENT: Request frame written.
    RECEIVING: At least one read issued.
    CLOSED: Connection ended by either party (terminal).
    FAILED: Transport error or refused connection (terminal).
    """
    IDLE = auto()
    CONNECTED = auto()
    REQUEST_SENT = auto()
    RECEIVING = auto()
    CLOSED = auto()
    FAILED = auto()


@dataclass(frozen=True, slots=True)
class Record:
    """
    One decoded 17-byte record frame.

    Contract invariants:
    - symbol is exactly 4 characters, side exactly 1 (raw bytes, latin-1).
    - quantity, price and sequence fit in unsigned 32 bits.
    - sequence is the unique key; price scale is a producer contract.
    """
    symbol: str
    side: str
    quantity: int
    price: int
    sequence: int

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "side": self.side,
            "quantity": self.quantity,
            "price": self.price,
            "sequence": self.sequence,
        }
