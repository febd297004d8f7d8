"""Shared fixtures: a loopback feed server and record helpers."""

import asyncio
import socket
import struct
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio

from feedfill.codec import encode_record
from feedfill.types import Record, Side


def make_record(sequence: int, symbol: str = "MSFT", side: str = Side.BUY.value) -> Record:
    """Build a record with deterministic quantity/price for a sequence."""
    return Record(
        symbol=symbol,
        side=side,
        quantity=100 + sequence,
        price=25_000 + sequence * 10,
        sequence=sequence,
    )


class FeedServer:
    """
    Minimal feed server on 127.0.0.1.

    - STREAM_ALL: writes every snapshot record in one write, then waits for
      the client to hang up. An empty snapshot closes right away.
    - RESEND_ONE: writes the record mapped to the request byte. The first
      `fail_resends` resend connections are reset instead.
    - silent=True: accepts requests and never answers.
    """

    def __init__(self):
        self.snapshot: List[Record] = []
        self.snapshot_extra = b""
        self.resend: Dict[int, List[Record]] = {}
        self.fail_resends = 0
        self.silent = False
        self.requests: List[Tuple[int, int]] = []
        self._server: Optional[asyncio.AbstractServer] = None
        self.port = 0

    async def start(self) -> None:
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self._server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()

    def set_snapshot(self, sequences, *extra: Record) -> None:
        self.snapshot = [make_record(s) for s in sequences] + list(extra)

    def set_resends(self, sequences) -> None:
        for seq in sequences:
            self.resend[seq & 0xFF] = [make_record(seq)]

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            request = await reader.readexactly(2)
            call_type, seq = request[0], request[1]
            self.requests.append((call_type, seq))

            if self.silent:
                await reader.read()
                return

            if call_type == 1:
                payload = b"".join(encode_record(r) for r in self.snapshot) + self.snapshot_extra
            else:
                if self.fail_resends > 0:
                    self.fail_resends -= 1
                    self._reset(writer)
                    return
                payload = b"".join(encode_record(r) for r in self.resend.get(seq, []))

            if not payload:
                return

            writer.write(payload)
            await writer.drain()
            # Hold the connection until the client hangs up
            await reader.read()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            if not writer.transport.is_closing():
                writer.close()

    @staticmethod
    def _reset(writer: asyncio.StreamWriter) -> None:
        """Close with RST so the client sees a connection reset."""
        sock = writer.get_extra_info("socket")
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))
        writer.transport.abort()


@pytest_asyncio.fixture
async def feed_server():
    server = FeedServer()
    await server.start()
    try:
        yield server
    finally:
        await server.stop()


@pytest.fixture
def closed_port() -> int:
    """A loopback port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port


ENV_VARS = [
    "FEED_HOST", "FEED_PORT", "CONNECT_TIMEOUT_SECONDS", "RECEIVE_TIMEOUT_SECONDS",
    "READ_SIZE", "RETRY_DELAY_SECONDS", "RETRY_BACKOFF_MULTIPLIER",
    "RETRY_MAX_DELAY_SECONDS", "MAX_RETRIES", "MAX_RECOVERY_PASSES",
    "OUTPUT_PATH", "SORT_BY_SEQUENCE", "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Environment with no feedfill variables set."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
