"""Publish/subscribe interfaces.

Two shapes of event exist: a *signal* carries no payload, a *value* carries a
typed payload. Each has a synchronous and an asynchronous variant, giving four
publisher/subscriber interface pairs:

    - signal: ``Publisher.subscribe`` / ``Subscriber.publish()``
    - value: ``ValuePublisher.subscribe_value`` / ``ValueSubscriber.publish(value)``
    - async signal: ``AsyncPublisher.subscribe_async`` /
      ``AsyncSubscriber.publish_async()``
    - async value: ``AsyncValuePublisher.subscribe_async_value`` /
      ``AsyncValueSubscriber.publish_async(value)``

The value interfaces are generic; the payload type declared on a class, e.g.
``class Health(Property[int])``, is what connection resolution inspects.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Callable, Generic, TypeVar

from bindery.disposables import Subscription

__all__ = [
    "Subscriber",
    "ValueSubscriber",
    "AsyncSubscriber",
    "AsyncValueSubscriber",
    "Publisher",
    "ValuePublisher",
    "BufferedPublisher",
    "AsyncPublisher",
    "AsyncValuePublisher",
    "Initializable",
    "ActionSubscriber",
    "ValueActionSubscriber",
    "AsyncActionSubscriber",
    "AsyncValueActionSubscriber",
    "subscribe_action",
    "subscribe_value_action",
]

T = TypeVar("T")


class Subscriber(ABC):
    @abstractmethod
    def publish(self) -> None:
        pass


class ValueSubscriber(ABC, Generic[T]):
    @abstractmethod
    def publish(self, value: T) -> None:
        pass


class AsyncSubscriber(ABC):
    @abstractmethod
    async def publish_async(self) -> None:
        pass


class AsyncValueSubscriber(ABC, Generic[T]):
    @abstractmethod
    async def publish_async(self, value: T) -> None:
        pass


class Publisher(ABC):
    @abstractmethod
    def subscribe(self, subscriber: Subscriber) -> Subscription:
        pass


class ValuePublisher(ABC, Generic[T]):
    @abstractmethod
    def subscribe_value(self, subscriber: ValueSubscriber[T]) -> Subscription:
        pass


class BufferedPublisher(ValuePublisher[T]):
    """A value publisher that remembers the last value it published."""

    @property
    @abstractmethod
    def has_value(self) -> bool:
        pass

    @property
    @abstractmethod
    def value(self) -> T:
        pass


class AsyncPublisher(ABC):
    @abstractmethod
    def subscribe_async(self, subscriber: AsyncSubscriber) -> Subscription:
        pass


class AsyncValuePublisher(ABC, Generic[T]):
    @abstractmethod
    def subscribe_async_value(
        self, subscriber: AsyncValueSubscriber[T]
    ) -> Subscription:
        pass


class Initializable(ABC):
    """Components initialised by the container right after construction."""

    @abstractmethod
    def initialize(self) -> None:
        pass


class ActionSubscriber(Subscriber):
    def __init__(self, action: Callable[[], None]):
        self._action = action

    def publish(self) -> None:
        self._action()


class ValueActionSubscriber(ValueSubscriber[T]):
    def __init__(self, action: Callable[[T], None]):
        self._action = action

    def publish(self, value: T) -> None:
        self._action(value)


class AsyncActionSubscriber(AsyncSubscriber):
    def __init__(self, action: Callable[[], Awaitable[None]]):
        self._action = action

    async def publish_async(self) -> None:
        await self._action()


class AsyncValueActionSubscriber(AsyncValueSubscriber[T]):
    def __init__(self, action: Callable[[T], Awaitable[None]]):
        self._action = action

    async def publish_async(self, value: T) -> None:
        await self._action(value)


def subscribe_action(publisher: Publisher, action: Callable[[], None]) -> Subscription:
    """Subscribe a plain callable to a signal publisher."""
    return publisher.subscribe(ActionSubscriber(action))


def subscribe_value_action(
    publisher: ValuePublisher[T], action: Callable[[T], None]
) -> Subscription:
    """Subscribe a plain callable to a value publisher."""
    return publisher.subscribe_value(ValueActionSubscriber(action))
