"""Tests for Session against a loopback feed server."""

import warnings
from pathlib import Path

import pytest

import feedfill.session
from feedfill.errors import ConnectError, SessionError
from feedfill.session import Session, open_session
from feedfill.store import RecordStore
from feedfill.types import CallType, SessionState

from conftest import make_record


class TestSessionStateMachine:
    """Transitions that need no transport."""

    def test_module_source_compiles_without_warnings(self):
        path = Path(feedfill.session.__file__)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            compile(path.read_text(), str(path), "exec")

    @pytest.mark.asyncio
    async def test_run_before_connect_rejected(self):
        session = Session("127.0.0.1", 1, RecordStore())
        with pytest.raises(SessionError, match="IDLE"):
            await session.run(CallType.STREAM_ALL)
        assert session.state is SessionState.IDLE

    @pytest.mark.asyncio
    async def test_refused_connection_fails(self, closed_port):
        session = Session("127.0.0.1", closed_port, RecordStore(), connect_timeout=2.0)
        with pytest.raises(ConnectError):
            await session.connect()
        assert session.state is SessionState.FAILED

    @pytest.mark.asyncio
    async def test_failed_session_cannot_reconnect(self, closed_port):
        session = Session("127.0.0.1", closed_port, RecordStore(), connect_timeout=2.0)
        with pytest.raises(ConnectError):
            await session.connect()
        with pytest.raises(SessionError):
            await session.connect()


@pytest.mark.integration
class TestStreamAll:
    """STREAM_ALL request cycle."""

    @pytest.mark.asyncio
    async def test_records_fed_into_store(self, feed_server):
        feed_server.set_snapshot([1, 2, 4, 5])
        store = RecordStore()

        session = await open_session("127.0.0.1", feed_server.port, store)
        assert session.state is SessionState.CONNECTED
        await session.run(CallType.STREAM_ALL)

        assert session.state is SessionState.CLOSED
        assert session.records_received == 4
        assert [r.sequence for r in store.records] == [1, 2, 4, 5]
        assert store.missing_sequences() == [3]
        assert feed_server.requests == [(1, 0)]

    @pytest.mark.asyncio
    async def test_empty_stream_closes_cleanly(self, feed_server):
        store = RecordStore()

        session = await open_session("127.0.0.1", feed_server.port, store)
        await session.run(CallType.STREAM_ALL)

        assert session.state is SessionState.CLOSED
        assert store.max_sequence == 0
        assert store.missing_sequences() == []

    @pytest.mark.asyncio
    async def test_bad_trailing_frame_dropped(self, feed_server):
        feed_server.set_snapshot([1, 2])
        feed_server.snapshot_extra = b"\x00" * 9
        store = RecordStore()

        session = await open_session("127.0.0.1", feed_server.port, store)
        await session.run(CallType.STREAM_ALL)

        assert session.decode_errors == 1
        assert store.seen == {1, 2}

    @pytest.mark.asyncio
    async def test_duplicate_frames(self, feed_server):
        feed_server.set_snapshot([1, 2], make_record(2))
        store = RecordStore()

        session = await open_session("127.0.0.1", feed_server.port, store)
        await session.run(CallType.STREAM_ALL)

        assert len(store.seen) == 2
        assert len(store) == 3
        assert store.duplicates == 1

    @pytest.mark.asyncio
    async def test_session_is_single_use(self, feed_server):
        feed_server.set_snapshot([1])
        session = await open_session("127.0.0.1", feed_server.port, RecordStore())
        await session.run(CallType.STREAM_ALL)

        with pytest.raises(SessionError):
            await session.run(CallType.STREAM_ALL)


@pytest.mark.integration
class TestResendOne:
    """RESEND_ONE request cycle."""

    @pytest.mark.asyncio
    async def test_resend_fills_gap(self, feed_server):
        feed_server.set_resends([3])
        store = RecordStore()

        session = await open_session("127.0.0.1", feed_server.port, store)
        await session.run(CallType.RESEND_ONE, 3)

        assert session.state is SessionState.CLOSED
        assert 3 in store
        assert feed_server.requests == [(2, 3)]

    @pytest.mark.asyncio
    async def test_server_reset_raises_session_error(self, feed_server):
        feed_server.set_resends([3])
        feed_server.fail_resends = 1
        store = RecordStore()

        session = await open_session("127.0.0.1", feed_server.port, store)
        with pytest.raises(SessionError):
            await session.run(CallType.RESEND_ONE, 3)

        assert session.state is SessionState.FAILED
        assert 3 not in store

    @pytest.mark.asyncio
    async def test_receive_timeout(self, feed_server):
        feed_server.silent = True
        session = await open_session(
            "127.0.0.1", feed_server.port, RecordStore(), receive_timeout=0.1,
        )

        with pytest.raises(SessionError):
            await session.run(CallType.RESEND_ONE, 3)
        assert session.state is SessionState.FAILED

    @pytest.mark.asyncio
    async def test_unknown_sequence_closes_without_record(self, feed_server):
        store = RecordStore()
        session = await open_session("127.0.0.1", feed_server.port, store)
        await session.run(CallType.RESEND_ONE, 42)

        assert session.state is SessionState.CLOSED
        assert len(store) == 0
