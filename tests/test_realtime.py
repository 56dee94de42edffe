"""Unit tests for the in-process realtime hub and change filters."""
import asyncio

import pytest

from heartbeat.services.realtime import ChangeEvent, ChangeType, ChannelFilter, RealtimeHub


def test_filter_parse():
    channel_filter = ChannelFilter.parse("chat_room_id=eq.room-1")
    assert channel_filter.column == "chat_room_id"
    assert channel_filter.value == "room-1"
    assert channel_filter.matches({"chat_room_id": "room-1"})
    assert not channel_filter.matches({"chat_room_id": "room-2"})
    assert not channel_filter.matches({})


@pytest.mark.parametrize("expression", ["chat_room_id", "chat_room_id=neq.x", "=eq.x"])
def test_filter_parse_rejects_unsupported(expression):
    with pytest.raises(ValueError):
        ChannelFilter.parse(expression)


def test_filter_compares_booleans_loosely():
    assert ChannelFilter("read", "false").matches({"read": False})
    assert not ChannelFilter("read", "true").matches({"read": False})


def test_publish_delivers_to_matching_subscriptions():
    async def scenario():
        hub = RealtimeHub()
        inserts = hub.subscribe("emergency_requests", ChangeType.INSERT, ChannelFilter("status", "open"))
        everything = hub.subscribe("emergency_requests")
        other_table = hub.subscribe("chat_messages")

        opened = ChangeEvent("emergency_requests", ChangeType.INSERT, {"id": "1", "status": "open"})
        updated = ChangeEvent("emergency_requests", ChangeType.UPDATE, {"id": "1", "status": "closed"})
        assert hub.publish(opened) == 2
        assert hub.publish(updated) == 1

        assert (await asyncio.wait_for(inserts.__anext__(), 1)) == opened
        assert (await asyncio.wait_for(everything.__anext__(), 1)) == opened
        assert (await asyncio.wait_for(everything.__anext__(), 1)) == updated
        assert other_table._queue.empty()
        hub.clear()

    asyncio.run(scenario())


def test_close_ends_iteration_and_unsubscribes():
    async def scenario():
        hub = RealtimeHub()
        subscription = hub.subscribe("blood_donations")
        received = []

        async def consume():
            async for change in subscription:
                received.append(change)

        task = asyncio.ensure_future(consume())
        hub.publish(ChangeEvent("blood_donations", ChangeType.INSERT, {"id": "d1"}))
        for _ in range(100):
            if received:
                break
            await asyncio.sleep(0.01)
        subscription.close()
        await asyncio.wait_for(task, 1)

        assert [c.record["id"] for c in received] == ["d1"]
        assert subscription.closed
        assert hub.subscription_count() == 0
        # Nothing is delivered after close
        assert hub.publish(ChangeEvent("blood_donations", ChangeType.INSERT, {"id": "d2"})) == 0

    asyncio.run(scenario())


def test_subscription_context_manager_closes():
    async def scenario():
        hub = RealtimeHub()
        async with hub.subscribe("rewards") as subscription:
            assert hub.subscription_count("rewards") == 1
        assert subscription.closed
        assert hub.subscription_count("rewards") == 0

    asyncio.run(scenario())


def test_subscribe_requires_running_loop():
    with pytest.raises(RuntimeError):
        RealtimeHub().subscribe("rewards")


def test_full_queue_drops_events():
    async def scenario():
        hub = RealtimeHub()
        subscription = hub.subscribe("chat_messages", maxsize=1)
        hub.publish(ChangeEvent("chat_messages", ChangeType.INSERT, {"id": "m1"}))
        hub.publish(ChangeEvent("chat_messages", ChangeType.INSERT, {"id": "m2"}))
        await asyncio.sleep(0)
        assert subscription._queue.qsize() == 1
        assert (await subscription.__anext__()).record["id"] == "m1"
        hub.clear()

    asyncio.run(scenario())


def test_change_event_message():
    change = ChangeEvent("chat_messages", ChangeType.UPDATE, {"id": "m1", "read": True})
    assert change.to_message() == {"table": "chat_messages", "type": "UPDATE", "record": {"id": "m1", "read": True}}


def test_change_feed_publishes_committed_changes_only(client, donor, db):
    from heartbeat.models.profile import Profile
    from heartbeat.services.realtime import realtime_hub

    async def scenario():
        subscription = realtime_hub.subscribe("profiles", ChangeType.UPDATE, ChannelFilter("id", donor["id"]))

        profile = db.query(Profile).filter(Profile.id == donor["id"]).one()
        profile.city = "Rolled Back"
        db.flush()
        db.rollback()

        profile = db.query(Profile).filter(Profile.id == donor["id"]).one()
        profile.city = "Committed"
        db.commit()

        change = await asyncio.wait_for(subscription.__anext__(), 1)
        assert change.record["city"] == "Committed"
        assert change.record["blood_type"] == "O+"
        assert subscription._queue.empty()
        subscription.close()

    asyncio.run(scenario())
