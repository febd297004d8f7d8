r"""
Single request/response session over one TCP connection.

A Session is an explicit state machine:

    IDLE -> CONNECTED -> REQUEST_SENT -> RECEIVING -> CLOSED
       \________\______________\______________\_____-> FAILED

Each instance handles exactly one request cycle and is discarded afterwards.
Decoded records go straight into the RecordStore the session was built with.
"""

import asyncio
import logging
from typing import Optional

from .codec import decode_record, encode_request, split_frames
from .errors import ConnectError, DecodeError, SessionError
from .store import RecordStore
from .types import CallType, SessionState

logger = logging.getLogger(__name__)

DEFAULT_READ_SIZE = 64 * 1024

_TRANSITIONS = {
    SessionState.IDLE: {SessionState.CONNECTED, SessionState.FAILED},
    SessionState.CONNECTED: {SessionState.REQUEST_SENT, SessionState.CLOSED, SessionState.FAILED},
    SessionState.REQUEST_SENT: {SessionState.RECEIVING, SessionState.CLOSED, SessionState.FAILED},
    SessionState.RECEIVING: {SessionState.CLOSED, SessionState.FAILED},
    SessionState.CLOSED: set(),
    SessionState.FAILED: set(),
}


class Session:
    """Owns one connection to the feed server for one request."""

    def __init__(
        self,
        host: str,
        port: int,
        store: RecordStore,
        connect_timeout: Optional[float] = 10.0,
        receive_timeout: Optional[float] = None,
        read_size: int = DEFAULT_READ_SIZE,
    ):
        self.host = host
        self.port = port
        self.store = store
        self._connect_timeout = connect_timeout
        self._receive_timeout = receive_timeout
        self._read_size = read_size

        self._state = SessionState.IDLE
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

        self.records_received = 0
        self.decode_errors = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def name(self) -> str:
        return f"{self.host}:{self.port}"

    def _transition(self, new_state: SessionState) -> None:
        if new_state not in _TRANSITIONS[self._state]:
            raise SessionError(
                f"illegal session transition {self._state.name} -> {new_state.name}"
            )
        logger.debug(f"Session {self.name}: {self._state.name} -> {new_state.name}")
        self._state = new_state

    async def connect(self) -> None:
        """
        Open the transport.

        Raises:
            ConnectError: refused, unreachable, or timed out
            SessionError: session is not idle
        """
        if self._state is not SessionState.IDLE:
            raise SessionError(f"cannot connect from state {self._state.name}")

        try:
            self._reader, self._writer = await asyncio.wait_for(
                asyncio.open_connection(self.host, self.port),
                timeout=self._connect_timeout,
            )
        except (OSError, asyncio.TimeoutError) as e:
            self._transition(SessionState.FAILED)
            raise ConnectError(f"cannot connect to {self.name}: {e!r}") from e

        self._transition(SessionState.CONNECTED)
        logger.info(f"Connected to server {self.name}")

    async def run(self, call_type: CallType, resend_sequence: int = 0) -> None:
        """
        Send one request and receive its response.

        STREAM_ALL closes gracefully after the first chunk that yields a
        record. RESEND_ONE aborts the connection after the first chunk. Either
        way the session also completes when the server closes the stream.

        Raises:
            SessionError: transport fault (session ends FAILED)
        """
        if self._state is not SessionState.CONNECTED:
            raise SessionError(f"cannot run request from state {self._state.name}")

        call_type = CallType(call_type)
        try:
            self._writer.write(encode_request(call_type, resend_sequence))
            await self._writer.drain()
            self._transition(SessionState.REQUEST_SENT)

            while True:
                chunk = await self._read_chunk()
                if self._state is SessionState.REQUEST_SENT:
                    self._transition(SessionState.RECEIVING)

                if not chunk:
                    logger.info(f"Connection closed by {self.name}")
                    await self._close()
                    return

                records = self._feed(chunk)

                if call_type is CallType.RESEND_ONE:
                    self._abort()
                    logger.info(f"Connection closed after resend of sequence {resend_sequence}")
                    return
                if records:
                    await self._close()
                    logger.info(f"Connection closed after {records} record(s)")
                    return
        except (OSError, asyncio.TimeoutError) as e:
            self._fail()
            raise SessionError(f"session with {self.name} failed: {e!r}") from e

    async def _read_chunk(self) -> bytes:
        if self._receive_timeout:
            return await asyncio.wait_for(
                self._reader.read(self._read_size),
                timeout=self._receive_timeout,
            )
        return await self._reader.read(self._read_size)

    def _feed(self, chunk: bytes) -> int:
        """Decode every frame in a chunk into the store; return records added."""
        added = 0
        for frame in split_frames(chunk):
            try:
                record = decode_record(frame)
            except DecodeError as e:
                self.decode_errors += 1
                logger.warning(f"Dropping frame from {self.name}: {e}")
                continue

            self.store.insert(record)
            added += 1
            logger.debug(
                f"Parsed record seq={record.sequence} symbol={record.symbol!r} "
                f"side={record.side!r} qty={record.quantity} price={record.price}"
            )

        self.records_received += added
        return added

    async def _close(self) -> None:
        """Graceful close."""
        self._transition(SessionState.CLOSED)
        self._writer.close()
        try:
            await self._writer.wait_closed()
        except OSError as e:
            logger.debug(f"Ignoring error while closing {self.name}: {e}")

    def _abort(self) -> None:
        """Tear the transport down without a graceful shutdown."""
        self._transition(SessionState.CLOSED)
        self._writer.transport.abort()

    def _fail(self) -> None:
        if self._writer is not None:
            self._writer.transport.abort()
        if self._state not in (SessionState.CLOSED, SessionState.FAILED):
            self._transition(SessionState.FAILED)


async def open_session(
    host: str,
    port: int,
    store: RecordStore,
    connect_timeout: Optional[float] = 10.0,
    receive_timeout: Optional[float] = None,
    read_size: int = DEFAULT_READ_SIZE,
) -> Session:
    """Create a Session and connect it."""
    session = Session(
        host,
        port,
        store,
        connect_timeout=connect_timeout,
        receive_timeout=receive_timeout,
        read_size=read_size,
    )
    await session.connect()
    return session
