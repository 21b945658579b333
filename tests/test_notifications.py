"""Tests for the notification queue."""

import asyncio

import pytest

from querydesk.core.notifications import NotificationQueue


class TestExpiry:
    def test_expires_after_ttl(self, scheduler):
        queue = NotificationQueue(ttl_ms=6000, scheduler=scheduler)
        nid = queue.success("Upload complete", "sales • 120 rows")

        scheduler.advance(5.999)
        assert [n.id for n in queue.items] == [nid]

        scheduler.advance(0.001)
        assert queue.items == []

    def test_dismissed_early_does_not_reappear(self, scheduler):
        queue = NotificationQueue(ttl_ms=6000, scheduler=scheduler)
        nid = queue.error("Query failed", "Status 500")

        scheduler.advance(2.0)
        assert queue.dismiss(nid) is True
        assert queue.items == []

        scheduler.advance(4.0)
        assert queue.items == []
        assert all(t.cancelled for t in scheduler.timers)

    def test_dismiss_is_idempotent(self, scheduler):
        queue = NotificationQueue(scheduler=scheduler)
        nid = queue.success("Table deleted")

        assert queue.dismiss(nid) is True
        assert queue.dismiss(nid) is False
        assert queue.dismiss("unknown") is False

    def test_expired_then_dismissed(self, scheduler):
        queue = NotificationQueue(ttl_ms=1000, scheduler=scheduler)
        nid = queue.success("Query completed")
        scheduler.advance(1.0)

        assert queue.dismiss(nid) is False


class TestOrderingAndChanges:
    def test_insertion_order(self, scheduler):
        queue = NotificationQueue(scheduler=scheduler)
        queue.success("first")
        queue.error("second", "details")
        queue.success("third")

        assert [n.title for n in queue.items] == ["first", "second", "third"]
        assert [n.kind for n in queue.items] == ["success", "error", "success"]
        assert queue.items[1].message == "details"

    def test_each_removal_notifies_once(self, scheduler):
        changes = []
        queue = NotificationQueue(ttl_ms=1000, scheduler=scheduler, on_change=lambda: changes.append(len(queue)))
        nid = queue.success("hello")
        queue.dismiss(nid)
        scheduler.advance(5.0)

        assert changes == [1, 0]

    def test_clear_cancels_timers(self, scheduler):
        queue = NotificationQueue(scheduler=scheduler)
        queue.success("a")
        queue.success("b")

        queue.clear()

        assert queue.items == []
        assert all(t.cancelled for t in scheduler.timers)


@pytest.mark.asyncio
async def test_default_scheduler_is_event_loop():
    queue = NotificationQueue(ttl_ms=10)
    queue.success("short lived")
    kept = queue.push("error", "dismissed")
    queue.dismiss(kept)

    await asyncio.sleep(0.05)

    assert queue.items == []


class TestWithoutRunningLoop:
    def test_push_outside_loop_is_kept_and_armed_later(self):
        queue = NotificationQueue(ttl_ms=6000)

        nid = queue.error("Could not save history", "test storage error: write failed")

        assert [n.id for n in queue.items] == [nid]

        async def _inside_loop():
            return queue.arm_pending()

        assert asyncio.run(_inside_loop()) == 1
        assert asyncio.run(_inside_loop()) == 0

    def test_dismiss_before_arming(self):
        queue = NotificationQueue()
        nid = queue.success("Table deleted")

        assert queue.dismiss(nid) is True

        async def _inside_loop():
            return queue.arm_pending()

        assert asyncio.run(_inside_loop()) == 0

    def test_later_push_in_loop_arms_earlier_ones(self):
        queue = NotificationQueue(ttl_ms=1000)
        queue.success("first")

        async def _push_in_loop():
            queue.success("second")
            await asyncio.sleep(1.05)
            return queue.items

        assert asyncio.run(_push_in_loop()) == []
