import asyncio

import pytest

from bindery.brokers import AsyncBroker, AsyncValueBroker
from bindery.channels import SubscriberListPool
from bindery.events import AsyncActionSubscriber, AsyncValueActionSubscriber


@pytest.mark.asyncio
async def test_publish_async_waits_for_every_subscriber():
    broker = AsyncBroker()
    finished = []

    def handler(name: str, delay: float):
        async def handle():
            await asyncio.sleep(delay)
            finished.append(name)

        return AsyncActionSubscriber(handle)

    broker.subscribe_async(handler("slow", 0.03))
    broker.subscribe_async(handler("medium", 0.02))
    broker.subscribe_async(handler("fast", 0.01))

    await broker.publish_async()

    assert sorted(finished) == ["fast", "medium", "slow"]


@pytest.mark.asyncio
async def test_handlers_run_concurrently():
    broker = AsyncValueBroker[int]()
    gate = asyncio.Event()
    seen = []

    async def waiter(value: int):
        await gate.wait()
        seen.append(("waiter", value))

    async def opener(value: int):
        seen.append(("opener", value))
        gate.set()

    broker.subscribe_async_value(AsyncValueActionSubscriber(waiter))
    broker.subscribe_async_value(AsyncValueActionSubscriber(opener))

    await asyncio.wait_for(broker.publish_async(3), timeout=1)

    assert seen == [("opener", 3), ("waiter", 3)]


@pytest.mark.asyncio
async def test_publish_async_without_subscribers_completes_immediately():
    await asyncio.wait_for(AsyncBroker().publish_async(), timeout=0.1)


@pytest.mark.asyncio
async def test_disposed_async_broker_ignores_publish():
    broker = AsyncBroker()
    called = []

    async def handle():
        called.append(True)

    subscription = broker.subscribe_async(AsyncActionSubscriber(handle))
    broker.dispose()
    broker.dispose()
    subscription.dispose()

    await broker.publish_async()

    assert called == []
    assert broker.subscribe_async(AsyncActionSubscriber(handle)).disposed


@pytest.mark.asyncio
async def test_unsubscribed_handler_is_not_awaited():
    broker = AsyncValueBroker[str]()
    received = []

    async def handle(value: str):
        received.append(value)

    subscription = broker.subscribe_async_value(AsyncValueActionSubscriber(handle))
    await broker.publish_async("a")
    subscription.dispose()
    await broker.publish_async("b")

    assert received == ["a"]


def test_disposed_brokers_return_lists_to_pool():
    pool = SubscriberListPool()
    first = AsyncBroker(pool)
    first.subscribe_async(AsyncActionSubscriber(lambda: asyncio.sleep(0)))

    first.dispose()
    assert len(pool) == 1

    second = AsyncValueBroker[int](pool)
    assert len(pool) == 0
    assert len(second._subscribers) == 0


def test_stale_subscription_does_not_touch_recycled_list():
    pool = SubscriberListPool()
    first = AsyncBroker(pool)
    subscriber = AsyncActionSubscriber(lambda: asyncio.sleep(0))
    stale = first.subscribe_async(subscriber)
    first.dispose()

    second = AsyncBroker(pool)
    second.subscribe_async(subscriber)
    stale.dispose()

    assert len(second._subscribers) == 1
