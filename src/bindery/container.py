"""A small hierarchical dependency-injection container.

Components are registered on a :class:`ContainerBuilder` and materialised
lazily by the :class:`Scope` it builds. Scopes form a tree: a child scope may
resolve components registered in its ancestors, but not vice versa.

Every registration is exposed under its concrete class and under each abstract
base class it implements, so a component can be resolved either by what it is
or by the interfaces it provides. Constructor parameters are injected by type
hint, in the same way provider functions declare their dependencies.

Example:
    >>> builder = ContainerBuilder()
    >>> builder.register(Database)
    >>> builder.register(UserService, Lifetime.SCOPED)
    >>> root = builder.build()
    >>> request = root.create_child_scope()
    >>> request.resolve(UserService).database is root.resolve(Database)
    True
"""

import inspect
import logging
from dataclasses import dataclass
from typing import (
    Annotated,
    Any,
    Callable,
    Iterator,
    Optional,
    Union,
    get_args,
    get_origin,
    get_type_hints,
)

from bindery.disposables import Disposable, DisposableBag, Subscription
from bindery.domain import Lifetime, type_name
from bindery.errors import DependencyError
from bindery.events import Initializable

__all__ = ["Registration", "ContainerBuilder", "Scope", "Installation"]

logger = logging.getLogger(__name__)

_NO_INSTANCE = object()


@dataclass(frozen=True, eq=False)
class Registration:
    """A component registered on a builder.

    Attributes:
        implementation_type: The class constructed, or the type an instance is
            registered as.
        lifetime: Lifetime of constructed components.
        provided_types: Every type the component can be resolved as.
        instance: The pre-built component, for instance registrations.
    """

    implementation_type: type
    lifetime: Lifetime
    provided_types: tuple[type, ...]
    instance: Any = _NO_INSTANCE

    @property
    def is_instance(self) -> bool:
        return self.instance is not _NO_INSTANCE


@dataclass(frozen=True)
class _Dependency:
    name: str
    type: Any
    optional: bool
    has_default: bool


BuildCallback = Callable[["Scope"], None]
Installation = Callable[["ContainerBuilder"], None]


class ContainerBuilder:
    """Collects registrations and callbacks, then builds a :class:`Scope`.

    Args:
        parent: The scope the built scope will be a child of, if any.
    """

    def __init__(self, parent: Optional["Scope"] = None):
        self.parent = parent
        self._registrations: list[Registration] = []
        self._build_callbacks: list[BuildCallback] = []
        self._dispose_callbacks: list[Callable[[], None]] = []
        self._built = False

    @property
    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._registrations)

    def register(
        self, concrete_type: type, lifetime: Lifetime = Lifetime.SINGLETON
    ) -> Registration:
        """Register a class to be constructed on first resolution.

        Args:
            concrete_type: The class to construct.
            lifetime: SINGLETON to share one instance with the whole subtree of
                the built scope, SCOPED for one instance per resolving scope.

        Returns:
            The new registration.

        Raises:
            TypeError: If `concrete_type` is not a concrete class.
        """
        if not isinstance(concrete_type, type) or inspect.isabstract(concrete_type):
            raise TypeError(f"{concrete_type!r} is not a concrete class")
        return self._add(
            Registration(concrete_type, lifetime, _provided_types(concrete_type))
        )

    def register_instance(
        self, instance: Any, as_type: Optional[type] = None
    ) -> Registration:
        """Register an already-built component.

        Instances registered this way are owned by the caller: the scope does
        not dispose them.
        """
        as_type = as_type or type(instance)
        return self._add(
            Registration(
                as_type, Lifetime.SINGLETON, _provided_types(as_type), instance
            )
        )

    def exists(self, service_type: Any, include_parents: bool = False) -> bool:
        """Whether `service_type` is already provided by this builder.

        Args:
            service_type: The type to look for.
            include_parents: Also look in the parent scope and its ancestors.
        """
        if any(service_type in r.provided_types for r in self._registrations):
            return True
        return (
            include_parents
            and self.parent is not None
            and self.parent.contains(service_type)
        )

    def register_build_callback(self, callback: BuildCallback):
        """Run `callback` with the scope once it has been built."""
        self._build_callbacks.append(callback)

    def register_dispose_callback(self, callback: Callable[[], None]):
        """Run `callback` when the built scope is disposed."""
        self._dispose_callbacks.append(callback)

    def build(self) -> "Scope":
        """Build the scope, then run the build callbacks in registration order.

        If a build callback raises, the new scope is disposed and the error is
        propagated.

        Raises:
            DependencyError: If the builder was already built, or the parent
                scope has been disposed.
        """
        if self._built:
            raise DependencyError("Container builder has already been built")
        self._built = True

        scope = Scope(self._registrations, self.parent)
        for callback in self._dispose_callbacks:
            scope.add_dispose_callback(callback)

        try:
            for callback in self._build_callbacks:
                callback(scope)
        except Exception:
            scope.dispose()
            raise

        return scope

    def abort(self):
        """Discard the builder without building it.

        The dispose callbacks registered so far are run, in registration order,
        so resources acquired while installing are released.
        """
        if self._built:
            raise DependencyError("Container builder has already been built")
        self._built = True
        callbacks, self._dispose_callbacks = self._dispose_callbacks, []
        for callback in callbacks:
            callback()
        logger.debug("Aborted container builder")

    def _add(self, registration: Registration) -> Registration:
        if self._built:
            raise DependencyError("Container builder has already been built")
        self._registrations.append(registration)
        return registration


class Scope(Disposable):
    """A built container scope: resolves components and owns their lifetimes.

    Disposing a scope disposes, in order, its children (newest first), its
    teardown list (in registration order), and the `Disposable` components it
    constructed (newest first). Disposal happens once; later calls do nothing.
    """

    def __init__(
        self, registrations: list[Registration], parent: Optional["Scope"] = None
    ):
        if parent is not None and parent.disposed:
            raise DependencyError("Cannot create a child of a disposed scope")
        self._registrations = list(registrations)
        self._parent = parent
        self._children: list[Scope] = []
        self._instances: dict[Registration, Any] = {}
        self._owned: list[Disposable] = []
        self._teardown = DisposableBag()
        self._disposed = False
        if parent is not None:
            parent._children.append(self)

    @property
    def parent(self) -> Optional["Scope"]:
        return self._parent

    @property
    def children(self) -> tuple["Scope", ...]:
        return tuple(self._children)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def lineage(self) -> Iterator["Scope"]:
        """This scope, then each of its ancestors up to the root."""
        scope = self
        while scope is not None:
            yield scope
            scope = scope._parent

    def contains(self, service_type: Any) -> bool:
        return any(scope._candidates(service_type) for scope in self.lineage())

    def resolve(self, service_type: Any) -> Any:
        """Resolve a component by type, constructing it if needed.

        Raises:
            DependencyError: If the type is not registered, is provided by more
                than one registration in the same scope, cannot be constructed,
                or the scope has been disposed.
        """
        return self._resolve(service_type, ())

    def try_resolve(self, service_type: Any) -> Optional[Any]:
        """Like :meth:`resolve`, but returns None if the type is not registered."""
        self._check_alive()
        found = self._find(service_type)
        if found is None:
            return None
        return self._instance_of(*found, ())

    def create_child_scope(self, installation: Optional[Installation] = None) -> "Scope":
        """Build a child scope, letting `installation` add registrations to it first."""
        self._check_alive()
        builder = ContainerBuilder(self)
        if installation is not None:
            try:
                installation(builder)
            except Exception:
                builder.abort()
                raise
        return builder.build()

    def add_disposable(self, disposable: Disposable) -> Disposable:
        return self._teardown.add(disposable)

    def add_dispose_callback(self, callback: Callable[[], None]) -> Disposable:
        return self._teardown.add(Subscription(callback))

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True

        children, self._children = self._children, []
        for child in reversed(children):
            child.dispose()

        self._teardown.dispose()

        owned, self._owned = self._owned, []
        for component in reversed(owned):
            component.dispose()
        self._instances.clear()

        if self._parent is not None and not self._parent.disposed:
            self._parent._children.remove(self)
        logger.debug("Disposed scope %r", self)

    def _check_alive(self):
        if self._disposed:
            raise DependencyError("Scope has been disposed")

    def _candidates(self, service_type: Any) -> list[Registration]:
        return [r for r in self._registrations if service_type in r.provided_types]

    def _find(self, service_type: Any) -> Optional[tuple["Scope", Registration]]:
        for scope in self.lineage():
            candidates = scope._candidates(service_type)
            if len(candidates) > 1:
                raise DependencyError(
                    f"No unique component found for type {type_name(service_type)}"
                )
            if candidates:
                return scope, candidates[0]
        return None

    def _resolve(self, service_type: Any, chain: tuple[type, ...]) -> Any:
        self._check_alive()
        found = self._find(service_type)
        if found is None:
            raise DependencyError(
                f"No component registered for type {type_name(service_type)}"
            )
        return self._instance_of(*found, chain)

    def _instance_of(
        self, owner: "Scope", registration: Registration, chain: tuple[type, ...]
    ) -> Any:
        if registration.is_instance:
            return registration.instance

        holder = owner if registration.lifetime is Lifetime.SINGLETON else self
        if registration in holder._instances:
            return holder._instances[registration]

        implementation_type = registration.implementation_type
        if implementation_type in chain:
            cycle = " -> ".join(type_name(t) for t in (*chain, implementation_type))
            raise DependencyError(f"Circular dependency: {cycle}")

        instance = holder._construct(implementation_type, (*chain, implementation_type))
        holder._instances[registration] = instance
        return instance

    def _construct(self, cls: type, chain: tuple[type, ...]) -> Any:
        kwargs = {}
        for dependency in _get_dependencies(cls):
            if isinstance(dependency.type, type) and issubclass(dependency.type, Scope):
                kwargs[dependency.name] = self
                continue

            found = self._find(dependency.type)
            if found is not None:
                kwargs[dependency.name] = self._instance_of(*found, chain)
            elif dependency.optional and not dependency.has_default:
                kwargs[dependency.name] = None
            elif not dependency.has_default:
                raise DependencyError(
                    "Dependency <%s> of component <%s> cannot be resolved: "
                    "no component registered for type %s"
                    % (dependency.name, type_name(cls), type_name(dependency.type))
                )

        instance = cls(**kwargs)
        logger.debug("Constructed %s", type_name(cls))

        if isinstance(instance, Disposable):
            self._owned.append(instance)
        if isinstance(instance, Initializable):
            instance.initialize()
        return instance


def _provided_types(cls: type) -> tuple[type, ...]:
    return (cls,) + tuple(
        base for base in cls.__mro__[1:] if inspect.isabstract(base)
    )


def _get_dependencies(cls: type) -> list[_Dependency]:
    if cls.__init__ is object.__init__:
        return []

    sig = inspect.signature(cls)
    hints = get_type_hints(cls.__init__, include_extras=True)
    result = []

    for name, param in sig.parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue

        has_default = param.default is not param.empty
        try:
            annotation = hints[name]
        except KeyError:
            if has_default:
                continue
            raise DependencyError(
                "Dependency <%s> of component <%s> is not annotated"
                % (name, type_name(cls))
            )

        if get_origin(annotation) is Annotated:
            annotation = get_args(annotation)[0]

        optional = False
        if get_origin(annotation) is Union:
            members = [a for a in get_args(annotation) if a is not type(None)]
            if len(members) == 1:
                annotation, optional = members[0], True

        result.append(_Dependency(name, annotation, optional, has_default))

    return result
