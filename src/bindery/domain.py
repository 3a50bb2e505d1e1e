"""Domain models used throughout the wiring engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Optional

__all__ = [
    "GlobalScope",
    "GLOBAL_SCOPE",
    "ScopeKey",
    "Lifetime",
    "RegistrationKind",
    "RegistrationEntry",
    "ShapeKind",
    "ConnectionShape",
    "ConnectionEdge",
    "type_name",
]


class GlobalScope:
    """The well-known scope key whose registrations apply to every scope."""

    _instance: Optional["GlobalScope"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "Global"


GLOBAL_SCOPE = GlobalScope()

ScopeKey = Hashable
"""Any hashable value grouping registrations, e.g. a string, a class or GLOBAL_SCOPE."""


class Lifetime(Enum):
    """How long a registered component lives.

    SINGLETON components are created once in the registering scope and shared
    with its whole subtree. SCOPED components are created once per resolving scope.
    """

    SINGLETON = "singleton"
    SCOPED = "scoped"


class RegistrationKind(Enum):
    DOMAIN = "domain"
    EXTERNAL_ASSET = "external_asset"


@dataclass(frozen=True)
class RegistrationEntry:
    """A single instruction to register a concrete type into scopes keyed by `scope_key`.

    Attributes:
        concrete_type: The class to register.
        scope_key: The scope key the entry is grouped under.
        lifetime: Lifetime of the registered component.
        kind: Whether the component is constructed (DOMAIN) or loaded (EXTERNAL_ASSET).
        check_ancestors: If True, the entry is skipped when the type is already
            registered anywhere up the scope chain, rather than only in the current scope.
        address: Address of the external asset, for EXTERNAL_ASSET entries.
    """

    concrete_type: type
    scope_key: ScopeKey
    lifetime: Lifetime = Lifetime.SINGLETON
    kind: RegistrationKind = RegistrationKind.DOMAIN
    check_ancestors: bool = False
    address: Optional[str] = None

    @property
    def asset_address(self) -> str:
        return self.address or self.concrete_type.__name__


class ShapeKind(Enum):
    """The four recognised publish/subscribe pairings, plus NONE for a mismatch."""

    SIGNAL = "signal"
    VALUE = "value"
    ASYNC_SIGNAL = "async_signal"
    ASYNC_VALUE = "async_value"
    NONE = "none"


@dataclass(frozen=True)
class ConnectionShape:
    """Tagged union describing how a subscriber attaches to a publisher.

    `value_type` is only set for the VALUE and ASYNC_VALUE kinds, and may be
    `Any` when the payload type could not be determined from the declared bases.
    """

    kind: ShapeKind
    value_type: Any = None

    @property
    def connectable(self) -> bool:
        return self.kind is not ShapeKind.NONE

    def __str__(self) -> str:
        if self.kind in (ShapeKind.VALUE, ShapeKind.ASYNC_VALUE):
            return f"{self.kind.value}[{type_name(self.value_type)}]"
        return self.kind.value


@dataclass(frozen=True)
class ConnectionEdge:
    """A directed link from a subscribable type to a publishable type."""

    subscribable_type: type
    publishable_type: type
    shape: ConnectionShape


def type_name(value: Any) -> str:
    if isinstance(value, type):
        return value.__qualname__
    return repr(value)
