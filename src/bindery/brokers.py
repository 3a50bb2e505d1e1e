"""Multicast brokers for signals and values, synchronous and asynchronous.

Synchronous brokers store their subscribers in a :class:`~bindery.channels.Channel`
created by the composition root's :class:`~bindery.channels.ChannelFactory`.
Asynchronous brokers keep plain subscriber lists rented from a shared
:class:`~bindery.channels.SubscriberListPool`.

Once disposed, a broker ignores publishes and hands out inert subscriptions.
"""

import asyncio
from typing import Any, Optional, TypeVar

from bindery.channels import ChannelFactory, SubscriberListPool, create_channel
from bindery.disposables import Disposable, Subscription
from bindery.events import (
    AsyncPublisher,
    AsyncSubscriber,
    AsyncValuePublisher,
    AsyncValueSubscriber,
    Publisher,
    Subscriber,
    ValuePublisher,
    ValueSubscriber,
)

__all__ = ["Broker", "ValueBroker", "AsyncBroker", "AsyncValueBroker"]

T = TypeVar("T")


class Broker(Publisher, Subscriber, Disposable):
    """Signal broker: ``publish()`` notifies every subscriber in subscription order."""

    def __init__(self, channel_factory: Optional[ChannelFactory] = None):
        self._channel = create_channel(channel_factory)
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def publish(self) -> None:
        if self._disposed:
            return
        self._channel.emit()

    def subscribe(self, subscriber: Subscriber) -> Subscription:
        if self._disposed:
            return Subscription.empty()
        return self._channel.add(subscriber.publish)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._channel.clear()


class ValueBroker(Publisher, ValuePublisher[T], ValueSubscriber[T], Disposable):
    """Value broker.

    Besides value subscribers, it accepts signal subscribers through
    :meth:`subscribe`; those are notified after the value subscribers on every
    publish, without the value.
    """

    def __init__(self, channel_factory: Optional[ChannelFactory] = None):
        self._channel = create_channel(channel_factory)
        self._signal_channel = create_channel(channel_factory)
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def publish(self, value: T) -> None:
        if self._disposed:
            return
        self._emit(value)

    def subscribe(self, subscriber: Subscriber) -> Subscription:
        if self._disposed:
            return Subscription.empty()
        return self._signal_channel.add(subscriber.publish)

    def subscribe_value(self, subscriber: ValueSubscriber[T]) -> Subscription:
        if self._disposed:
            return Subscription.empty()
        return self._channel.add(subscriber.publish)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._channel.clear()
        self._signal_channel.clear()

    def _emit(self, value: T):
        self._channel.emit(value)
        self._signal_channel.emit()


class _PooledSubscribers:
    """Subscriber list rented from a pool, shared by both asynchronous brokers."""

    def __init__(self, pool: Optional[SubscriberListPool]):
        self._pool = pool
        self._subscribers: list[Any] = pool.rent() if pool else []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def snapshot(self) -> list[Any]:
        return list(self._subscribers)

    def add(self, subscriber: Any) -> Subscription:
        if self._disposed:
            return Subscription.empty()
        self._subscribers.append(subscriber)
        return Subscription(lambda: self._remove(subscriber))

    def _remove(self, subscriber: Any):
        # the list belongs to another broker once returned to the pool
        if self._disposed:
            return
        for index, candidate in enumerate(self._subscribers):
            if candidate is subscriber:
                del self._subscribers[index]
                return

    def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        subscribers, self._subscribers = self._subscribers, []
        if self._pool:
            self._pool.give_back(subscribers)
        else:
            subscribers.clear()

    def __len__(self) -> int:
        return len(self._subscribers)


class AsyncBroker(AsyncPublisher, AsyncSubscriber, Disposable):
    """Asynchronous signal broker.

    ``await publish_async()`` runs every subscriber's handler concurrently and
    resolves once all of them have completed. It imposes no timeout; cancelling
    is left to the subscribers.
    """

    def __init__(self, pool: Optional[SubscriberListPool] = None):
        self._subscribers = _PooledSubscribers(pool)

    @property
    def disposed(self) -> bool:
        return self._subscribers.disposed

    async def publish_async(self) -> None:
        subscribers = self._subscribers.snapshot()
        if not subscribers:
            return
        await asyncio.gather(*(subscriber.publish_async() for subscriber in subscribers))

    def subscribe_async(self, subscriber: AsyncSubscriber) -> Subscription:
        return self._subscribers.add(subscriber)

    def dispose(self) -> None:
        self._subscribers.dispose()


class AsyncValueBroker(AsyncValuePublisher[T], AsyncValueSubscriber[T], Disposable):
    """Asynchronous value broker; see :class:`AsyncBroker`."""

    def __init__(self, pool: Optional[SubscriberListPool] = None):
        self._subscribers = _PooledSubscribers(pool)

    @property
    def disposed(self) -> bool:
        return self._subscribers.disposed

    async def publish_async(self, value: T) -> None:
        subscribers = self._subscribers.snapshot()
        if not subscribers:
            return
        await asyncio.gather(
            *(subscriber.publish_async(value) for subscriber in subscribers)
        )

    def subscribe_async_value(
        self, subscriber: AsyncValueSubscriber[T]
    ) -> Subscription:
        return self._subscribers.add(subscriber)

    def dispose(self) -> None:
        self._subscribers.dispose()
