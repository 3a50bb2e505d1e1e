"""Bindery runtime wiring engine.

Bindery decides, from declarative class decorators, which classes are
instantiated into which scope of a hierarchical container, and connects the
event publishers of instantiated objects to their subscribers without either
side holding a reference to the other. Links live exactly as long as the scope
that made them.

Key Features:
    - Scope-keyed registration markers, with global registrations applied once
      as close to the root as possible
    - Connections declared from either end and classified once into signal,
      value, asynchronous signal or asynchronous value shapes
    - Brokers, buffered properties and asynchronous brokers for dispatch
    - Scanned or explicit type universes
    - Subscriptions tied to scope disposal

Basic Usage:
    >>> from bindery.markers import register_to, subscribe_from
    >>> from bindery.builders import make_root_scope, create_scope
    >>> from bindery.events import ValueSubscriber
    >>> from bindery.properties import Property
    >>> from bindery.universe import TypeUniverse
    >>>
    >>> @register_to("Player")
    ... class HealthValue(Property[int]):
    ...     pass
    >>>
    >>> @register_to("Player")
    ... @subscribe_from(HealthValue)
    ... class HealthLabel(ValueSubscriber[int]):
    ...     def publish(self, value: int) -> None:
    ...         print(f"HP {value}")
    >>>
    >>> root = make_root_scope(TypeUniverse([HealthValue, HealthLabel]))
    >>> player = create_scope(root, "Player")
    >>> player.resolve(HealthValue).publish(42)
    HP 42

The package consists of several modules:
    - markers: Registration and connection decorators
    - universe: Type scanning and explicit manifests
    - registration_catalog, connection_catalog: Marker indexes
    - registration_binder, connection_resolver: Per-scope registration and wiring
    - events, brokers, properties: Publish/subscribe primitives
    - container: Hierarchical scopes
    - builders: Composition root entry points
"""
