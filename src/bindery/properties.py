"""Buffered value publishers that replay their last value to late subscribers."""

import asyncio
import inspect
from abc import abstractmethod
from typing import Any, Callable, Optional, TypeVar

from bindery.brokers import ValueBroker
from bindery.channels import ChannelFactory, create_channel
from bindery.disposables import Disposable, Subscription
from bindery.events import (
    BufferedPublisher,
    Initializable,
    Publisher,
    Subscriber,
    ValueSubscriber,
)

__all__ = ["Property", "ReadOnlyProperty"]

T = TypeVar("T")


class Property(ValueBroker[T], BufferedPublisher[T]):
    """A value broker that remembers the last published value.

    Subscribers attaching after a value exists are immediately invoked once:
    value subscribers with the value, signal subscribers without it.

    Example:
        >>> health = Property[int]()
        >>> health.publish(42)
        >>> subscribe_value_action(health, print)
        42
    """

    def __init__(self, channel_factory: Optional[ChannelFactory] = None):
        super().__init__(channel_factory)
        self._has_value = False
        self._value: Any = None

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def value(self) -> T:
        if not self._has_value:
            raise LookupError(f"{type(self).__name__} has no value yet")
        return self._value

    def publish(self, value: T) -> None:
        if self.disposed:
            return
        self._has_value = True
        self._value = value
        self._emit(value)
        self.on_published(value)

    def on_published(self, value: T) -> None:
        """Hook invoked after subscribers have been notified of `value`."""

    def subscribe(self, subscriber: Subscriber) -> Subscription:
        if self.disposed:
            return Subscription.empty()
        if self._has_value:
            subscriber.publish()
        return super().subscribe(subscriber)

    def subscribe_value(self, subscriber: ValueSubscriber[T]) -> Subscription:
        if self.disposed:
            return Subscription.empty()
        if self._has_value:
            subscriber.publish(self._value)
        return super().subscribe_value(subscriber)


class ReadOnlyProperty(BufferedPublisher[T], Publisher, Initializable, Disposable):
    """A buffered value populated only by its owner.

    Subclasses implement :meth:`setup`, which receives the protected setter and
    starts whatever routine produces values. It is invoked once, by
    :meth:`initialize`; the container calls that when it creates the instance.
    `setup` may return:

        - a :class:`Disposable`, released along with the property;
        - an awaitable, scheduled as a task on the running event loop and
          cancelled if still pending when the property is disposed;
        - ``None``.
    """

    def __init__(self, channel_factory: Optional[ChannelFactory] = None):
        self._channel = create_channel(channel_factory)
        self._signal_channel = create_channel(channel_factory)
        self._has_value = False
        self._value: Any = None
        self._initialized = False
        self._disposed = False
        self._resource: Optional[Disposable] = None
        self._task: Optional[asyncio.Future] = None

    @abstractmethod
    def setup(self, set_value: Callable[[T], None]) -> Any:
        pass

    def initialize(self) -> None:
        if self._initialized or self._disposed:
            return
        self._initialized = True
        result = self.setup(self._set_value)
        if inspect.isawaitable(result):
            self._task = asyncio.ensure_future(result, loop=asyncio.get_running_loop())
        elif isinstance(result, Disposable):
            self._resource = result

    @property
    def has_value(self) -> bool:
        return self._has_value

    @property
    def value(self) -> T:
        if not self._has_value:
            raise LookupError(f"{type(self).__name__} has no value yet")
        return self._value

    @property
    def disposed(self) -> bool:
        return self._disposed

    def subscribe(self, subscriber: Subscriber) -> Subscription:
        if self._disposed:
            return Subscription.empty()
        if self._has_value:
            subscriber.publish()
        return self._signal_channel.add(subscriber.publish)

    def subscribe_value(self, subscriber: ValueSubscriber[T]) -> Subscription:
        if self._disposed:
            return Subscription.empty()
        if self._has_value:
            subscriber.publish(self._value)
        return self._channel.add(subscriber.publish)

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._channel.clear()
        self._signal_channel.clear()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        if self._resource is not None:
            self._resource.dispose()

    def _set_value(self, value: T):
        if self._disposed:
            return
        self._has_value = True
        self._value = value
        self._channel.emit(value)
        self._signal_channel.emit()
