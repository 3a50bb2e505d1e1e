"""Classification of publisher/subscriber pairs into connection shapes.

A pair of classes is inspected once, when the connection catalog is built; the
resulting :class:`~bindery.domain.ConnectionShape` tells the resolver which
subscribe method to call at runtime. Pairs are tried in a fixed priority:
signal, value, asynchronous signal, asynchronous value.
"""

from functools import lru_cache
from typing import Any, Optional, TypeVar, get_args, get_origin

from bindery.domain import ConnectionShape, ShapeKind
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

__all__ = ["classify_shape", "find_type_argument", "NO_SHAPE"]

NO_SHAPE = ConnectionShape(ShapeKind.NONE)


def find_type_argument(
    cls: type, generic_base: type, substitutions: Optional[dict] = None
) -> Any:
    """Find the type argument `cls` supplies to the single-parameter `generic_base`.

    Type variables are followed through intermediate generic classes, so for
    ``class Health(Property[int])`` the argument to ``ValuePublisher`` is ``int``.

    Args:
        cls: The class to inspect.
        generic_base: A generic base class taking one type parameter.
        substitutions: Type variable bindings accumulated while walking the bases.

    Returns:
        The type argument, or `Any` when `cls` leaves it unbound.
    """
    if substitutions is None:
        substitutions = {}

    for base in cls.__dict__.get("__orig_bases__", cls.__bases__):
        origin = get_origin(base) or base
        if not isinstance(origin, type) or not issubclass(origin, generic_base):
            continue

        args = tuple(
            substitutions.get(arg, arg) if isinstance(arg, TypeVar) else arg
            for arg in get_args(base)
        )
        if origin is generic_base:
            return _bound(args[0]) if args else Any

        parameters = getattr(origin, "__parameters__", ())
        return find_type_argument(origin, generic_base, dict(zip(parameters, args)))

    return Any


def _bound(argument: Any) -> Any:
    return Any if isinstance(argument, TypeVar) else argument


def _payload_compatible(published: Any, accepted: Any) -> bool:
    if published is Any or accepted is Any:
        return True
    if isinstance(published, type) and isinstance(accepted, type):
        return issubclass(published, accepted)
    return published == accepted


@lru_cache(maxsize=None)
def classify_shape(subscriber_type: type, publisher_type: type) -> ConnectionShape:
    """Decide how instances of `subscriber_type` attach to instances of `publisher_type`.

    Returns:
        The first matching shape in priority order, or a NONE shape if the two
        classes share no compatible publish/subscribe pairing.
    """
    if issubclass(publisher_type, Publisher) and issubclass(subscriber_type, Subscriber):
        return ConnectionShape(ShapeKind.SIGNAL)

    if issubclass(publisher_type, ValuePublisher) and issubclass(
        subscriber_type, ValueSubscriber
    ):
        published = find_type_argument(publisher_type, ValuePublisher)
        accepted = find_type_argument(subscriber_type, ValueSubscriber)
        if _payload_compatible(published, accepted):
            return ConnectionShape(ShapeKind.VALUE, published)

    if issubclass(publisher_type, AsyncPublisher) and issubclass(
        subscriber_type, AsyncSubscriber
    ):
        return ConnectionShape(ShapeKind.ASYNC_SIGNAL)

    if issubclass(publisher_type, AsyncValuePublisher) and issubclass(
        subscriber_type, AsyncValueSubscriber
    ):
        published = find_type_argument(publisher_type, AsyncValuePublisher)
        accepted = find_type_argument(subscriber_type, AsyncValueSubscriber)
        if _payload_compatible(published, accepted):
            return ConnectionShape(ShapeKind.ASYNC_VALUE, published)

    return NO_SHAPE
