"""Symmetric tables of publisher/subscriber edges.

``@publish_to(X)`` on class ``P`` and ``@subscribe_from(P)`` on class ``X`` both
describe the same edge, ``X -> P``, and are stored once. The connection shape
of every edge is classified here, when the catalog is built, rather than when
instances are wired.
"""

import logging
from typing import Optional

from bindery.domain import ConnectionEdge, ConnectionShape, type_name
from bindery.markers import ConnectionDirection, connection_markers
from bindery.shapes import NO_SHAPE, classify_shape
from bindery.universe import TypeUniverse

__all__ = ["ConnectionCatalog"]

logger = logging.getLogger(__name__)


class ConnectionCatalog:
    """Index of the connection edges declared on a type universe.

    Each edge appears once however many of its ends declare it, and in the
    order it was first declared.

    Args:
        universe: The classes whose connection markers are indexed.
    """

    def __init__(self, universe: TypeUniverse):
        self._edges: dict[tuple[type, type], ConnectionEdge] = {}
        self._publishable: dict[type, list[type]] = {}
        self._subscribable: dict[type, list[type]] = {}

        for concrete_type in universe:
            for marker in connection_markers(concrete_type):
                if marker.direction is ConnectionDirection.PUBLISH_TO:
                    self._add_edge(marker.counterpart, concrete_type)
                else:
                    self._add_edge(concrete_type, marker.counterpart)

    def _add_edge(self, subscribable_type: type, publishable_type: type):
        key = (subscribable_type, publishable_type)
        if key in self._edges:
            return

        shape = classify_shape(subscribable_type, publishable_type)
        if not shape.connectable:
            logger.debug(
                "%s cannot subscribe to %s: no matching publish/subscribe interfaces",
                type_name(subscribable_type),
                type_name(publishable_type),
            )

        self._edges[key] = ConnectionEdge(subscribable_type, publishable_type, shape)
        self._publishable.setdefault(subscribable_type, []).append(publishable_type)
        self._subscribable.setdefault(publishable_type, []).append(subscribable_type)

    def get_publishable_types(self, subscribable_type: type) -> tuple[type, ...]:
        """The types `subscribable_type` subscribes to."""
        return tuple(self._publishable.get(subscribable_type, ()))

    def get_subscribable_types(self, publishable_type: type) -> tuple[type, ...]:
        """The types that subscribe to `publishable_type`."""
        return tuple(self._subscribable.get(publishable_type, ()))

    def get_edge(
        self, subscribable_type: type, publishable_type: type
    ) -> Optional[ConnectionEdge]:
        return self._edges.get((subscribable_type, publishable_type))

    def shape_of(self, subscribable_type: type, publishable_type: type) -> ConnectionShape:
        edge = self.get_edge(subscribable_type, publishable_type)
        return edge.shape if edge else NO_SHAPE

    def has_connections(self, concrete_type: type) -> bool:
        return concrete_type in self._publishable or concrete_type in self._subscribable

    def edges(self) -> tuple[ConnectionEdge, ...]:
        return tuple(self._edges.values())

    def __len__(self) -> int:
        return len(self._edges)
