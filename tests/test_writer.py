"""Unit tests for background session persistence."""
import asyncio

import pytest

from finadvisor.memory import Message, SessionWriter, default_session
from finadvisor.memory.in_memory import InMemoryConversationStore


class SlowStore(InMemoryConversationStore):
    """In-memory store whose writes take a while and are recorded."""

    def __init__(self, delay: float = 0.01):
        super().__init__()
        self.delay = delay
        self.writes: list[int] = []
        self.active = 0
        self.max_active = 0

    async def _write_records(self, records):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            await super()._write_records(records)
            self.writes.append(len(next(iter(records.values()))))
        finally:
            self.active -= 1


def session_with(count: int):
    session = default_session("u1")
    for i in range(count):
        session.append_message(Message(text=f"message {i}", sender="user"))
    return session


class TestSessionWriter:
    """Tests for SessionWriter."""

    @pytest.mark.asyncio
    async def test_submit_and_flush(self):
        """Test that a submitted session is saved once flushed."""
        store = SlowStore()
        writer = SessionWriter(store)

        writer.submit(session_with(2))
        assert writer.has_pending("u1")
        await writer.flush("u1")

        loaded = await store.load("u1")
        assert len(loaded.messages) == 3
        assert not writer.has_pending("u1")

    @pytest.mark.asyncio
    async def test_newest_snapshot_written_last(self):
        """Test that rapid submits coalesce and the newest state wins."""
        store = SlowStore()
        writer = SessionWriter(store)

        for count in range(1, 6):
            writer.submit(session_with(count))
            await asyncio.sleep(0)
        await writer.flush()

        loaded = await store.load("u1")
        assert len(loaded.messages) == 6
        assert len(store.writes) < 5
        assert store.max_active == 1

    @pytest.mark.asyncio
    async def test_snapshot_is_isolated(self):
        """Test that later mutation of the session does not change a queued write."""
        store = SlowStore()
        writer = SessionWriter(store)
        session = session_with(1)

        writer.submit(session)
        session.append_message(Message(text="after submit", sender="user"))
        await writer.flush()

        loaded = await store.load("u1")
        assert len(loaded.messages) == 2

    @pytest.mark.asyncio
    async def test_discard_drops_queued_snapshot(self):
        """Test that a queued snapshot can be dropped before it is written."""
        store = SlowStore(delay=0.05)
        writer = SessionWriter(store)

        writer.submit(session_with(1))
        await asyncio.sleep(0.01)
        writer.submit(session_with(4))
        writer.discard("u1")
        await writer.flush("u1")

        loaded = await store.load("u1")
        assert len(loaded.messages) == 2
        assert len(store.writes) == 1

    @pytest.mark.asyncio
    async def test_flush_without_writes(self):
        """Test that flushing an idle writer returns immediately."""
        writer = SessionWriter(SlowStore())
        await writer.flush()
        await writer.flush("missing")
