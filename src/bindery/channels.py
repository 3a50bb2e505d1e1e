"""Subscriber storage backends for the synchronous brokers.

A :class:`Channel` holds the callbacks attached to a broker and invokes them in
subscription order. The backend is chosen once, at composition time, through a
:class:`ChannelFactory`:

    - ``"list"`` (default): strong references, kept until the subscription is disposed.
    - ``"weak"``: weak references, dropped once the subscriber is garbage collected.

This module also provides the :class:`SubscriberListPool` used by the
asynchronous brokers to recycle their subscriber lists.
"""

import logging
import weakref
from abc import ABC, abstractmethod
from typing import Any, Callable, Literal, Optional, Union

from bindery.disposables import Subscription
from bindery.options import BinderyOptions

__all__ = [
    "Channel",
    "ListChannel",
    "WeakChannel",
    "ChannelFactory",
    "SubscriberListPool",
]

logger = logging.getLogger(__name__)

ChannelBackend = Literal["list", "weak"]


class Channel(ABC):
    @abstractmethod
    def add(self, callback: Callable[..., Any]) -> Subscription:
        """Attach a callback, returning the handle that detaches it."""

    @abstractmethod
    def emit(self, *args: Any) -> None:
        """Invoke every attached callback, in attachment order."""

    @abstractmethod
    def clear(self) -> None:
        pass

    @abstractmethod
    def __len__(self) -> int:
        pass


class _Entry:
    __slots__ = ("callback", "active")

    def __init__(self, callback: Callable[..., Any]):
        self.callback = callback
        self.active = True


class ListChannel(Channel):
    def __init__(self):
        self._entries: list[_Entry] = []

    def add(self, callback: Callable[..., Any]) -> Subscription:
        entry = _Entry(callback)
        self._entries.append(entry)
        return Subscription(lambda: self._remove(entry))

    def emit(self, *args: Any) -> None:
        # iterate over a snapshot; entries removed mid-emit are skipped
        for entry in list(self._entries):
            if entry.active:
                entry.callback(*args)

    def clear(self) -> None:
        for entry in self._entries:
            entry.active = False
        self._entries.clear()

    def _remove(self, entry: _Entry):
        entry.active = False
        try:
            self._entries.remove(entry)
        except ValueError:
            pass

    def __len__(self) -> int:
        return len(self._entries)


WeakCallback = Union[weakref.ref, weakref.WeakMethod]


class _WeakEntry:
    __slots__ = ("reference", "active")

    def __init__(self, reference: WeakCallback):
        self.reference = reference
        self.active = True


class WeakChannel(Channel):
    """Channel holding weak references to its callbacks.

    Bound methods are referenced through :class:`weakref.WeakMethod`, so
    subscribing ``subscriber.publish`` does not keep ``subscriber`` alive.
    Callbacks that cannot be weakly referenced (e.g. builtins) are rejected.
    """

    def __init__(self):
        self._entries: list[_WeakEntry] = []

    def add(self, callback: Callable[..., Any]) -> Subscription:
        entry = _WeakEntry(self._make_weak_ref(callback))
        self._entries.append(entry)
        return Subscription(lambda: self._remove(entry))

    def emit(self, *args: Any) -> None:
        collected = False
        for entry in list(self._entries):
            if not entry.active:
                continue
            callback = entry.reference()
            if callback is None:
                collected = True
                continue
            callback(*args)
        if collected:
            self._prune()

    def clear(self) -> None:
        for entry in self._entries:
            entry.active = False
        self._entries.clear()

    def _make_weak_ref(self, callback: Callable[..., Any]) -> WeakCallback:
        def on_collected(_reference):
            logger.debug("Weakly referenced subscriber collected")

        if hasattr(callback, "__self__") and hasattr(callback, "__func__"):
            return weakref.WeakMethod(callback, on_collected)
        return weakref.ref(callback, on_collected)

    def _prune(self):
        live = []
        for entry in self._entries:
            if entry.reference() is None:
                entry.active = False
            else:
                live.append(entry)
        self._entries = live

    def _remove(self, entry: _WeakEntry):
        entry.active = False
        try:
            self._entries.remove(entry)
        except ValueError:
            pass

    def __len__(self) -> int:
        return sum(1 for entry in self._entries if entry.reference() is not None)


class ChannelFactory:
    """Creates channels of the backend selected at composition time."""

    _backends: dict[str, Callable[[], Channel]] = {
        "list": ListChannel,
        "weak": WeakChannel,
    }

    def __init__(self, backend: ChannelBackend = "list"):
        if backend not in self._backends:
            raise ValueError(f"Unknown channel backend '{backend}'")
        self.backend = backend

    @classmethod
    def from_options(cls, options: BinderyOptions) -> "ChannelFactory":
        return cls(options.channel_backend)

    def create(self) -> Channel:
        return self._backends[self.backend]()


def create_channel(channel_factory: Optional[ChannelFactory]) -> Channel:
    return channel_factory.create() if channel_factory else ListChannel()


class SubscriberListPool:
    """A stack of reusable subscriber lists.

    Lists are rented when an asynchronous broker is created and returned,
    emptied, when it is disposed. The pool is owned by the composition root
    and shared by every broker it creates.
    """

    def __init__(self):
        self._lists: list[list[Any]] = []

    def rent(self) -> list[Any]:
        return self._lists.pop() if self._lists else []

    def give_back(self, subscribers: list[Any]):
        subscribers.clear()
        self._lists.append(subscribers)

    def __len__(self) -> int:
        return len(self._lists)
