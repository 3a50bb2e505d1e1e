"""Declarative class decorators that mark types for registration and connection.

Markers are stored on the decorated class itself and are not inherited by
subclasses: a subclass must carry its own markers to take part in wiring.

Example:
    >>> @register_to("Player")
    ... class HealthValue(Property[int]):
    ...     pass
    >>>
    >>> @register_to("Player")
    ... @subscribe_from(HealthValue)
    ... class HealthLabel(ValueSubscriber[int]):
    ...     def publish(self, value: int) -> None:
    ...         print(value)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar, Union

from bindery.domain import (
    GLOBAL_SCOPE,
    Lifetime,
    RegistrationKind,
    ScopeKey,
)

__all__ = [
    "RegistrationMarker",
    "ConnectionDirection",
    "ConnectionMarker",
    "register_to",
    "register_to_global",
    "register_asset_to",
    "register_asset_to_global",
    "publish_to",
    "subscribe_from",
    "registration_markers",
    "connection_markers",
]

MARKERS_ATTRIBUTE = "__bindery_markers__"

C = TypeVar("C", bound=type)


@dataclass(frozen=True)
class RegistrationMarker:
    scope_key: ScopeKey
    lifetime: Lifetime = Lifetime.SINGLETON
    kind: RegistrationKind = RegistrationKind.DOMAIN
    check_ancestors: bool = False
    address: Optional[str] = None


class ConnectionDirection(Enum):
    PUBLISH_TO = "publish_to"
    SUBSCRIBE_FROM = "subscribe_from"


@dataclass(frozen=True)
class ConnectionMarker:
    direction: ConnectionDirection
    counterpart: type


Marker = Union[RegistrationMarker, ConnectionMarker]


def register_to(
    scope_key: ScopeKey, lifetime: Lifetime = Lifetime.SINGLETON
) -> Callable[[C], C]:
    """Register the decorated class into every scope built for `scope_key`.

    May be applied several times to register a class under several keys.
    """
    _check_hashable(scope_key)
    return _marking(RegistrationMarker(scope_key, lifetime))


def register_to_global(lifetime: Lifetime = Lifetime.SINGLETON) -> Callable[[C], C]:
    """Register the decorated class once, as close to the root scope as possible.

    Global registrations are re-applied whenever a child scope is built, and are
    skipped if the class is already registered anywhere up the scope chain.
    """
    return _marking(RegistrationMarker(GLOBAL_SCOPE, lifetime, check_ancestors=True))


def register_asset_to(
    scope_key: ScopeKey, address: Optional[str] = None
) -> Callable[[C], C]:
    """Register an externally loaded asset for the decorated class.

    Args:
        scope_key: The scope key to register under.
        address: The asset address; defaults to the class name.
    """
    _check_hashable(scope_key)
    return _marking(
        RegistrationMarker(
            scope_key, kind=RegistrationKind.EXTERNAL_ASSET, address=address
        )
    )


def register_asset_to_global(address: Optional[str] = None) -> Callable[[C], C]:
    """Register an externally loaded asset for the decorated class in the root scope.

    Args:
        address: The asset address; defaults to the class name.
    """
    return _marking(
        RegistrationMarker(
            GLOBAL_SCOPE,
            kind=RegistrationKind.EXTERNAL_ASSET,
            check_ancestors=True,
            address=address,
        )
    )


def publish_to(subscriber_type: type) -> Callable[[C], C]:
    """Mark the decorated class as publishing to instances of `subscriber_type`."""
    _check_type(subscriber_type)
    return _marking(ConnectionMarker(ConnectionDirection.PUBLISH_TO, subscriber_type))


def subscribe_from(publisher_type: type) -> Callable[[C], C]:
    """Mark the decorated class as subscribing to instances of `publisher_type`."""
    _check_type(publisher_type)
    return _marking(
        ConnectionMarker(ConnectionDirection.SUBSCRIBE_FROM, publisher_type)
    )


def registration_markers(cls: type) -> list[RegistrationMarker]:
    """The registration markers declared on `cls` itself, in declaration order.

    Markers on base classes are not included.
    """
    return [m for m in _markers_of(cls) if isinstance(m, RegistrationMarker)]


def connection_markers(cls: type) -> list[ConnectionMarker]:
    """The connection markers declared on `cls` itself, in declaration order."""
    return [m for m in _markers_of(cls) if isinstance(m, ConnectionMarker)]


def _markers_of(cls: Any) -> list[Marker]:
    try:
        own = vars(cls)
    except TypeError:
        return []
    return list(own.get(MARKERS_ATTRIBUTE, ()))


def _marking(marker: Marker) -> Callable[[C], C]:
    def decorator(target: C) -> C:
        if not isinstance(target, type):
            raise TypeError(f"{target!r} is not a class")
        # decorators apply bottom-up, so prepend to keep declaration order
        existing = list(vars(target).get(MARKERS_ATTRIBUTE, ()))
        setattr(target, MARKERS_ATTRIBUTE, (marker, *existing))
        return target

    return decorator


def _check_hashable(scope_key: ScopeKey):
    try:
        hash(scope_key)
    except TypeError:
        raise TypeError(f"Scope key {scope_key!r} is not hashable") from None


def _check_type(counterpart: Any):
    if not isinstance(counterpart, type):
        raise TypeError(f"Connection counterpart {counterpart!r} is not a class")
