from abc import ABC, abstractmethod
from typing import Annotated, Optional

import pytest

from bindery.container import ContainerBuilder, Scope
from bindery.disposables import Disposable
from bindery.domain import Lifetime
from bindery.errors import DependencyError
from bindery.events import Initializable


class Greeter(ABC):
    @abstractmethod
    def greet(self, name: str) -> str:
        pass


class EnglishGreeter(Greeter):
    def greet(self, name: str) -> str:
        return f"Hello {name}"


class Printer:
    def __init__(self):
        self.printed = []


class Service:
    def __init__(self, greeter: Greeter, printer: Annotated[Printer, "printer"]):
        self.greeter = greeter
        self.printer = printer

    def run(self, name: str):
        self.printer.printed.append(self.greeter.greet(name))


class Connection(Disposable):
    def __init__(self, log: list):
        self.log = log
        self.closed = False

    def dispose(self) -> None:
        self.closed = True


@pytest.fixture
def root() -> Scope:
    builder = ContainerBuilder()
    builder.register(EnglishGreeter)
    builder.register(Printer, Lifetime.SCOPED)
    builder.register(Service, Lifetime.SCOPED)
    return builder.build()


def test_resolves_by_concrete_type_and_implemented_interface(root):
    assert root.resolve(Greeter) is root.resolve(EnglishGreeter)


def test_injects_constructor_dependencies_by_type_hint(root):
    service = root.resolve(Service)
    service.run("Arthur")

    assert root.resolve(Printer).printed == ["Hello Arthur"]


def test_singletons_are_shared_with_child_scopes(root):
    child = root.create_child_scope()

    assert child.resolve(Greeter) is root.resolve(Greeter)


def test_scoped_components_are_created_per_resolving_scope(root):
    first = root.create_child_scope()
    second = root.create_child_scope()

    assert first.resolve(Printer) is first.resolve(Printer)
    assert first.resolve(Printer) is not second.resolve(Printer)
    assert first.resolve(Service).printer is first.resolve(Printer)


def test_parent_cannot_see_child_registrations(root):
    child = root.create_child_scope(lambda builder: builder.register(Connection))

    assert child.contains(Connection)
    assert not root.contains(Connection)
    assert root.try_resolve(Connection) is None


def test_unregistered_type_raises(root):
    with pytest.raises(DependencyError):
        root.resolve(Connection)


def test_ambiguous_interface_raises():
    class FrenchGreeter(Greeter):
        def greet(self, name: str) -> str:
            return f"Bonjour {name}"

    builder = ContainerBuilder()
    builder.register(EnglishGreeter)
    builder.register(FrenchGreeter)
    scope = builder.build()

    with pytest.raises(DependencyError, match="No unique component found"):
        scope.resolve(Greeter)


def test_unannotated_dependency_raises():
    class Untyped:
        def __init__(self, thing):
            self.thing = thing

    builder = ContainerBuilder()
    builder.register(Untyped)

    with pytest.raises(DependencyError, match="not annotated"):
        builder.build().resolve(Untyped)


def test_optional_and_defaulted_dependencies():
    class Settings:
        def __init__(self, greeter: Optional[Greeter], retries: int = 3, *args, **kwargs):
            self.greeter = greeter
            self.retries = retries

    builder = ContainerBuilder()
    builder.register(Settings)
    settings = builder.build().resolve(Settings)

    assert settings.greeter is None
    assert settings.retries == 3


def test_scope_parameter_receives_resolving_scope(root):
    class Factory:
        def __init__(self, scope: Scope):
            self.scope = scope

    child = root.create_child_scope(
        lambda builder: builder.register(Factory, Lifetime.SCOPED)
    )

    assert child.resolve(Factory).scope is child


class Chicken:
    def __init__(self, egg: "Egg"):
        self.egg = egg


class Egg:
    def __init__(self, chicken: Chicken):
        self.chicken = chicken


def test_circular_dependency_raises():
    builder = ContainerBuilder()
    builder.register(Chicken)
    builder.register(Egg)

    with pytest.raises(DependencyError, match="Circular dependency"):
        builder.build().resolve(Chicken)


def test_exists_checks_builder_and_optionally_ancestors(root):
    builder = ContainerBuilder(root)
    builder.register(Connection)

    assert builder.exists(Connection)
    assert not builder.exists(Greeter)
    assert builder.exists(Greeter, include_parents=True)


def test_register_instance_is_resolved_as_is_and_not_disposed():
    connection = Connection([])
    builder = ContainerBuilder()
    builder.register_instance(connection, as_type=Connection)
    scope = builder.build()

    assert scope.resolve(Disposable) is connection

    scope.dispose()
    assert not connection.closed


def test_initializable_components_are_initialized_on_creation():
    class Warmup(Initializable):
        def __init__(self):
            self.calls = 0

        def initialize(self) -> None:
            self.calls += 1

    builder = ContainerBuilder()
    builder.register(Warmup)
    scope = builder.build()
    scope.resolve(Warmup)

    assert scope.resolve(Warmup).calls == 1


def test_disposal_cascades_children_first_then_teardown_then_components():
    log = []

    class Tracked(Disposable):
        def __init__(self):
            self.disposals = 0

        def dispose(self) -> None:
            self.disposals += 1
            log.append("component")

    builder = ContainerBuilder()
    builder.register(Tracked)
    builder.register_dispose_callback(lambda: log.append("root teardown"))
    root = builder.build()
    tracked = root.resolve(Tracked)

    first = root.create_child_scope(
        lambda b: b.register_dispose_callback(lambda: log.append("first"))
    )
    second = root.create_child_scope(
        lambda b: b.register_dispose_callback(lambda: log.append("second"))
    )
    grandchild = first.create_child_scope(
        lambda b: b.register_dispose_callback(lambda: log.append("grandchild"))
    )
    root.add_dispose_callback(lambda: log.append("root late"))

    root.dispose()
    root.dispose()

    assert log == [
        "second",
        "grandchild",
        "first",
        "root teardown",
        "root late",
        "component",
    ]
    assert tracked.disposals == 1
    assert all(s.disposed for s in (root, first, second, grandchild))


def test_disposed_child_is_detached_from_parent(root):
    child = root.create_child_scope()
    child.dispose()

    assert root.children == ()
    with pytest.raises(DependencyError):
        child.resolve(Greeter)


def test_failing_build_callback_disposes_scope():
    log = []
    builder = ContainerBuilder()
    builder.register_dispose_callback(lambda: log.append("disposed"))

    def fail(scope: Scope):
        raise RuntimeError("boom")

    builder.register_build_callback(fail)

    with pytest.raises(RuntimeError):
        builder.build()
    assert log == ["disposed"]


def test_builder_cannot_be_built_twice():
    builder = ContainerBuilder()
    builder.build()

    with pytest.raises(DependencyError):
        builder.build()
