"""Tests for background work tracking."""

import asyncio

import pytest
from structlog.testing import capture_logs

from tattle.services import BackgroundWorkTracker, release_when_done


class TestBackgroundWorkTracker:
    def test_begin_and_end(self):
        tracker = BackgroundWorkTracker()

        token = tracker.begin("report transaction")
        assert tracker.pending == 1
        assert not token.released

        tracker.end(token)
        assert tracker.pending == 0
        assert token.released

    def test_double_release_is_ignored(self):
        tracker = BackgroundWorkTracker()
        first = tracker.begin("a")
        second = tracker.begin("b")

        tracker.end(first)
        tracker.end(first)

        assert tracker.pending == 1
        assert not second.released

    def test_tokens_are_distinct(self):
        tracker = BackgroundWorkTracker()

        assert tracker.begin("a").token_id != tracker.begin("a").token_id

    async def test_wait_idle_when_nothing_pending(self):
        assert await BackgroundWorkTracker().wait_idle(timeout=0.1)

    async def test_wait_idle_waits_for_release(self):
        tracker = BackgroundWorkTracker()
        token = tracker.begin("report transaction")

        async def finish():
            await asyncio.sleep(0.01)
            tracker.end(token)

        asyncio.get_running_loop().create_task(finish())

        assert await tracker.wait_idle(timeout=1.0)
        assert tracker.pending == 0

    async def test_wait_idle_timeout(self):
        tracker = BackgroundWorkTracker()
        tracker.begin("stuck")

        assert not await tracker.wait_idle(timeout=0.01)


class TestReleaseWhenDone:
    async def test_releases_on_success(self):
        tracker = BackgroundWorkTracker()
        token = tracker.begin("ok")

        async def work():
            assert tracker.pending == 1

        task = asyncio.get_running_loop().create_task(work())
        release_when_done(tracker, token, task)
        await task

        assert token.released
        assert tracker.pending == 0

    async def test_releases_on_error(self):
        tracker = BackgroundWorkTracker()
        token = tracker.begin("failing")

        async def work():
            raise RuntimeError("delivery blew up")

        task = asyncio.get_running_loop().create_task(work())
        release_when_done(tracker, token, task)
        with pytest.raises(RuntimeError):
            await task

        assert token.released
        assert tracker.pending == 0

    async def test_releases_on_cancel_mid_work(self):
        tracker = BackgroundWorkTracker()
        token = tracker.begin("cancelled")

        task = asyncio.get_running_loop().create_task(asyncio.sleep(10))
        release_when_done(tracker, token, task)
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert token.released

    async def test_releases_when_cancelled_before_start(self):
        tracker = BackgroundWorkTracker()
        token = tracker.begin("never started")
        started = []

        async def work():
            started.append(True)

        task = asyncio.get_running_loop().create_task(work())
        release_when_done(tracker, token, task)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert started == []
        assert token.released
        assert tracker.pending == 0

    async def test_failing_release_is_logged(self, tracker):
        def broken_end(token):
            raise RuntimeError("tracker gone")

        tracker.end = broken_end
        token = tracker.begin("report transaction")

        async def work():
            pass

        with capture_logs() as logs:
            task = asyncio.get_running_loop().create_task(work())
            release_when_done(tracker, token, task)
            await task
            await asyncio.sleep(0)

        assert [e["event"] for e in logs] == ["Failed to release background work token"]
        assert "tracker gone" in logs[0]["error"]
