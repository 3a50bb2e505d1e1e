"""Runtime wiring of instantiated publishers and subscribers.

When a scope is built, every newly registered type that takes part in a
connection is resolved and connected to the counterparts reachable from that
scope. The subscriptions created are owned by the scope and released when it is
disposed.

A pair of instances is connected at most once while the link is alive, so a
connection declared from both ends, or discovered from both endpoints, yields a
single subscription.
"""

import logging
from typing import Any, Optional

from bindery.container import ContainerBuilder, Scope
from bindery.disposables import Subscription
from bindery.domain import ConnectionShape, ShapeKind, type_name
from bindery.connection_catalog import ConnectionCatalog
from bindery.options import BinderyOptions

__all__ = ["ConnectionResolver"]

logger = logging.getLogger(__name__)

_SUBSCRIBE_METHODS = {
    ShapeKind.SIGNAL: "subscribe",
    ShapeKind.VALUE: "subscribe_value",
    ShapeKind.ASYNC_SIGNAL: "subscribe_async",
    ShapeKind.ASYNC_VALUE: "subscribe_async_value",
}


class ConnectionResolver:
    """Connects instances according to a :class:`ConnectionCatalog`.

    Args:
        catalog: The edges to wire.
        options: Diagnostic flags; `connection_log_enabled` logs every link made.
    """

    def __init__(self, catalog: ConnectionCatalog, options: BinderyOptions):
        self._catalog = catalog
        self._options = options
        self._links: set[tuple[int, int]] = set()

    def bind(self, builder: ContainerBuilder, concrete_type: type):
        """Connect the `concrete_type` component once `builder` has been built.

        Types without any declared connection are ignored.
        """
        if not self._catalog.has_connections(concrete_type):
            return
        builder.register_build_callback(
            lambda scope: self.connect(scope, scope.resolve(concrete_type))
        )

    def bind_instance(self, builder: ContainerBuilder, instance: Any):
        if not self._catalog.has_connections(type(instance)):
            return
        builder.register_build_callback(lambda scope: self.connect(scope, instance))

    def connect(
        self, scope: Scope, instance: Any, as_type: Optional[type] = None
    ) -> list[Subscription]:
        """Connect `instance` to every counterpart resolvable from `scope`.

        Args:
            scope: The scope counterparts are resolved from, and which owns the
                subscriptions made.
            instance: The component to wire.
            as_type: The type whose connections apply; defaults to the
                instance's class.

        Returns:
            The subscriptions made, in catalog order.
        """
        concrete_type = as_type or type(instance)
        subscriptions = []

        for publishable_type in self._catalog.get_publishable_types(concrete_type):
            publisher = self._counterpart(scope, concrete_type, publishable_type)
            if publisher is not None:
                subscriptions.extend(
                    self._link(scope, instance, concrete_type, publisher, publishable_type)
                )

        for subscribable_type in self._catalog.get_subscribable_types(concrete_type):
            subscriber = self._counterpart(scope, concrete_type, subscribable_type)
            if subscriber is not None:
                subscriptions.extend(
                    self._link(scope, subscriber, subscribable_type, instance, concrete_type)
                )

        return subscriptions

    def _counterpart(self, scope: Scope, concrete_type: type, counterpart_type: type):
        counterpart = scope.try_resolve(counterpart_type)
        if counterpart is None:
            logger.debug(
                "No %s reachable from scope for %s",
                type_name(counterpart_type),
                type_name(concrete_type),
            )
        return counterpart

    def _link(
        self,
        scope: Scope,
        subscriber: Any,
        subscribable_type: type,
        publisher: Any,
        publishable_type: type,
    ) -> list[Subscription]:
        if subscriber is publisher:
            return []

        link = (id(subscriber), id(publisher))
        if link in self._links:
            return []

        shape = self._catalog.shape_of(subscribable_type, publishable_type)
        if not shape.connectable:
            logger.warning(
                "Skipping connection of %s to %s: shapes do not match",
                type_name(subscribable_type),
                type_name(publishable_type),
            )
            return []

        subscription = _subscribe(shape, subscriber, publisher)
        self._links.add(link)
        scope.add_disposable(subscription)
        scope.add_dispose_callback(lambda: self._links.discard(link))

        if self._options.connection_log_enabled:
            logger.info(
                "connected [%s] to [%s] as %s",
                type_name(subscribable_type),
                type_name(publishable_type),
                shape,
            )
        return [subscription]


def _subscribe(shape: ConnectionShape, subscriber: Any, publisher: Any) -> Subscription:
    return getattr(publisher, _SUBSCRIBE_METHODS[shape.kind])(subscriber)
