import asyncio

import pytest

from featherlog.services.broadcaster import Broadcaster


async def test_every_subscriber_gets_every_event_in_order():
    broadcaster = Broadcaster[int](queue_size=10)
    first = broadcaster.subscribe()
    second = broadcaster.subscribe()

    assert broadcaster.publish(1) == 2
    assert broadcaster.publish(2) == 2

    assert [await first.get(), await first.get()] == [1, 2]
    assert [await second.get(), await second.get()] == [1, 2]


async def test_subscription_only_sees_events_after_subscribe():
    broadcaster = Broadcaster[str]()
    broadcaster.publish("before")
    subscription = broadcaster.subscribe()
    broadcaster.publish("after")

    assert await subscription.get() == "after"


async def test_publish_without_subscribers_is_a_noop():
    assert Broadcaster[str]().publish("nobody") == 0


async def test_close_is_idempotent_and_unsubscribes():
    broadcaster = Broadcaster[int]()
    subscription = broadcaster.subscribe()
    assert broadcaster.subscriber_count == 1

    subscription.close()
    subscription.close()

    assert subscription.closed
    assert broadcaster.subscriber_count == 0
    assert broadcaster.publish(1) == 0
    assert await subscription.get() is None


async def test_closing_one_subscription_leaves_others_alone():
    broadcaster = Broadcaster[int]()
    gone = broadcaster.subscribe()
    kept = broadcaster.subscribe()

    gone.close()
    broadcaster.publish(7)

    assert await kept.get() == 7


async def test_close_wakes_a_waiting_consumer():
    broadcaster = Broadcaster[int]()
    subscription = broadcaster.subscribe()

    waiter = asyncio.create_task(subscription.get())
    await asyncio.sleep(0)
    subscription.close()

    assert await asyncio.wait_for(waiter, timeout=1) is None


async def test_overflowing_subscriber_is_dropped():
    broadcaster = Broadcaster[int](queue_size=2)
    slow = broadcaster.subscribe()
    fast = broadcaster.subscribe()

    broadcaster.publish(1)
    assert await fast.get() == 1
    broadcaster.publish(2)
    assert await fast.get() == 2
    delivered = broadcaster.publish(3)

    assert delivered == 1
    assert slow.closed and slow.overflowed
    assert not fast.closed
    assert broadcaster.subscriber_count == 1
    assert await slow.get() is None


async def test_async_iteration_stops_on_close():
    broadcaster = Broadcaster[int]()
    received = []

    async with broadcaster.subscribe() as subscription:
        broadcaster.publish(1)
        broadcaster.publish(2)

        async def consume():
            async for event in subscription:
                received.append(event)
                if len(received) == 2:
                    subscription.close()

        await asyncio.wait_for(consume(), timeout=1)

    assert received == [1, 2]
    assert broadcaster.subscriber_count == 0


async def test_close_all_ends_every_subscription():
    broadcaster = Broadcaster[int]()
    subscriptions = [broadcaster.subscribe() for _ in range(3)]

    broadcaster.close_all()

    assert broadcaster.subscriber_count == 0
    assert all(s.closed for s in subscriptions)


def test_queue_size_must_be_positive():
    with pytest.raises(ValueError):
        Broadcaster(queue_size=0)
