"""
Frame codec for the feed wire protocol.

Outbound request (2 bytes):
    byte 0      call type (1 = stream all, 2 = resend one)
    byte 1      target sequence, truncated to 8 bits

Inbound record (17 bytes, big-endian):
    bytes 0-3   symbol
    byte  4     side indicator
    bytes 5-8   quantity (uint32)
    bytes 9-12  price (uint32)
    bytes 13-16 sequence (uint32)

Records arrive concatenated with no delimiter. Callers slice each received
chunk into consecutive windows from offset 0; a frame is never expected to
straddle two chunks.
"""

import struct
from typing import Iterator

from .errors import DecodeError
from .types import CallType, Record

REQUEST_FORMAT = struct.Struct("!BB")
RECORD_FORMAT = struct.Struct("!4sc3I")

REQUEST_SIZE = REQUEST_FORMAT.size  # 2
RECORD_SIZE = RECORD_FORMAT.size  # 17

_UINT32_MAX = 0xFFFFFFFF

# Symbol and side bytes are carried verbatim; latin-1 maps every byte to one char.
_TEXT_ENCODING = "latin-1"
_PADDING = b"\x00 \t\r\n"


def encode_request(call_type: CallType, resend_sequence: int = 0) -> bytes:
    """
    Build a request frame.

    The sequence field is a single byte, so anything above 255 is truncated
    to its low 8 bits. This mirrors the server's wire contract.
    """
    return REQUEST_FORMAT.pack(int(call_type) & 0xFF, resend_sequence & 0xFF)


def decode_record(frame: bytes) -> Record:
    """
    Decode one record frame.

    Args:
        frame: Exactly RECORD_SIZE bytes

    Returns:
        Decoded Record

    Raises:
        DecodeError: wrong length, or a blank symbol/side field
    """
    if len(frame) != RECORD_SIZE:
        raise DecodeError(f"invalid frame size {len(frame)}, expected {RECORD_SIZE}")

    raw_symbol, raw_side, quantity, price, sequence = RECORD_FORMAT.unpack(frame)

    if not raw_symbol.strip(_PADDING):
        raise DecodeError(f"blank symbol in frame with sequence {sequence}")
    if not raw_side.strip(_PADDING):
        raise DecodeError(f"blank side indicator in frame with sequence {sequence}")

    return Record(
        symbol=raw_symbol.decode(_TEXT_ENCODING),
        side=raw_side.decode(_TEXT_ENCODING),
        quantity=quantity,
        price=price,
        sequence=sequence,
    )


def encode_record(record: Record) -> bytes:
    """Encode a Record back into its 17-byte wire form."""
    try:
        symbol = record.symbol.encode(_TEXT_ENCODING)
        side = record.side.encode(_TEXT_ENCODING)
    except UnicodeEncodeError as e:
        raise ValueError(f"record text is not single-byte: {e}") from e

    if len(symbol) != 4:
        raise ValueError(f"symbol must be 4 bytes, got {len(symbol)}")
    if len(side) != 1:
        raise ValueError(f"side must be 1 byte, got {len(side)}")
    for name in ("quantity", "price", "sequence"):
        value = getattr(record, name)
        if not 0 <= value <= _UINT32_MAX:
            raise ValueError(f"{name} {value} does not fit in uint32")

    return RECORD_FORMAT.pack(symbol, side, record.quantity, record.price, record.sequence)


def split_frames(chunk: bytes) -> Iterator[bytes]:
    """
    Slice a received chunk into consecutive record-sized windows.

    A short trailing window is yielded as-is so decode_record rejects it.
    """
    for offset in range(0, len(chunk), RECORD_SIZE):
        yield chunk[offset:offset + RECORD_SIZE]
