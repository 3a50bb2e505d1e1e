"""Disposable handles and bags used to tie links to scope lifetimes."""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Callable, Optional

__all__ = ["Disposable", "Subscription", "DisposableBag"]


class Disposable(ABC):
    """Something holding resources that are released by calling :meth:`dispose`.

    Implementations must tolerate :meth:`dispose` being called more than once.
    """

    @abstractmethod
    def dispose(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.dispose()


class Subscription(Disposable):
    """A handle on one publisher-subscriber link.

    Disposing the handle runs its release callback exactly once.
    """

    def __init__(self, on_dispose: Optional[Callable[[], None]] = None):
        self._on_dispose = on_dispose

    @classmethod
    def empty(cls) -> "Subscription":
        """An already-released handle, returned by disposed publishers."""
        return cls()

    @property
    def disposed(self) -> bool:
        return self._on_dispose is None

    def dispose(self) -> None:
        on_dispose, self._on_dispose = self._on_dispose, None
        if on_dispose is not None:
            on_dispose()


class DisposableBag(Disposable):
    """An ordered collection of disposables released together.

    Disposables added after the bag has been disposed are released immediately.
    """

    def __init__(self, disposables: Iterable[Disposable] = ()):
        self._disposables: list[Disposable] = list(disposables)
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def add(self, disposable: Disposable) -> Disposable:
        if self._disposed:
            disposable.dispose()
        else:
            self._disposables.append(disposable)
        return disposable

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        disposables, self._disposables = self._disposables, []
        for disposable in disposables:
            disposable.dispose()

    def __len__(self) -> int:
        return len(self._disposables)
