"""Unit tests for OutboundQueue."""

import asyncio

import pytest

from erp_client.infrastructure.messaging import OutboundQueue


@pytest.mark.unit
class TestOutboundQueue:
    """Tests for OutboundQueue."""

    @pytest.mark.asyncio
    async def test_flush_sends_in_fifo_order(self):
        queue = OutboundQueue()
        for frame in ("a", "b", "c"):
            queue.enqueue(frame)
        sent = []

        async def send(frame):
            sent.append(frame)

        count = await queue.flush(send, lambda: True)

        assert count == 3
        assert sent == ["a", "b", "c"]
        assert len(queue) == 0

    @pytest.mark.asyncio
    async def test_failed_send_requeues_at_head(self):
        """A failure must neither drop nor reorder frames."""
        queue = OutboundQueue()
        for frame in ("a", "b", "c"):
            queue.enqueue(frame)
        sent = []

        async def send(frame):
            if frame == "b":
                raise ConnectionError("socket gone")
            sent.append(frame)

        with pytest.raises(ConnectionError):
            await queue.flush(send, lambda: True)

        assert sent == ["a"]
        assert list(queue) == ["b", "c"]

    @pytest.mark.asyncio
    async def test_cancelled_send_requeues(self):
        queue = OutboundQueue()
        queue.enqueue("a")

        async def send(_frame):
            await asyncio.sleep(10)

        task = asyncio.create_task(queue.flush(send, lambda: True))
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert list(queue) == ["a"]

    @pytest.mark.asyncio
    async def test_flush_stops_when_not_ready(self):
        queue = OutboundQueue()
        queue.enqueue("a")
        queue.enqueue("b")
        sent = []

        async def send(frame):
            sent.append(frame)

        count = await queue.flush(send, lambda: not sent)

        assert count == 1
        assert list(queue) == ["b"]

    @pytest.mark.asyncio
    async def test_frames_enqueued_during_flush_are_sent_after(self):
        queue = OutboundQueue()
        queue.enqueue("a")
        sent = []

        async def send(frame):
            sent.append(frame)
            if frame == "a":
                queue.enqueue("late")

        await queue.flush(send, lambda: True)

        assert sent == ["a", "late"]

    def test_clear(self):
        queue = OutboundQueue()
        queue.enqueue("a")

        queue.clear()

        assert not queue
