import types

import pytest

from bindery.options import BinderyOptions
from bindery.universe import ModuleFilter, TypeUniverse


def make_module(name: str, source: str) -> types.ModuleType:
    module = types.ModuleType(name)
    exec(source, module.__dict__)
    return module


@pytest.fixture
def game_module() -> types.ModuleType:
    return make_module(
        "game.components",
        """
from abc import ABC, abstractmethod
from collections import OrderedDict


class Base(ABC):
    @abstractmethod
    def run(self): ...


class Health:
    pass


class Mana(Base):
    def run(self):
        pass
""",
    )


def test_module_filter_rejects_defaults_and_stdlib():
    module_filter = ModuleFilter()

    assert module_filter.accepts("game.components")
    assert module_filter.accepts("__main__")
    assert not module_filter.accepts("pydantic")
    assert not module_filter.accepts("pydantic.fields")
    assert not module_filter.accepts("bindery.brokers")
    assert not module_filter.accepts("collections.abc")
    assert not module_filter.accepts("_private")


def test_module_filter_matches_whole_name_segments():
    module_filter = ModuleFilter(excluded=["game"])

    assert not module_filter.accepts("game")
    assert not module_filter.accepts("game.components")
    assert module_filter.accepts("gameplay")


def test_module_filter_included_prefixes_restrict_scan():
    module_filter = ModuleFilter(included=["game"])

    assert module_filter.accepts("game.components")
    assert not module_filter.accepts("audio")


def test_module_filter_can_accept_stdlib():
    assert ModuleFilter(exclude_stdlib=False).accepts("collections")


def test_module_filter_from_options_adds_exclusions():
    module_filter = ModuleFilter.from_options(BinderyOptions(excluded_modules=["audio"]))

    assert not module_filter.accepts("audio.mixer")
    assert not module_filter.accepts("pytest")


def test_scan_keeps_concrete_classes_defined_in_accepted_modules(game_module):
    other = make_module("audio.mixer", "class Mixer:\n    pass\n")

    universe = TypeUniverse.scan(
        ModuleFilter(excluded=["audio"]), modules=[game_module, other]
    )

    assert [t.__name__ for t in universe] == ["Health", "Mana"]


def test_scan_logs_collected_modules_when_enabled(game_module, caplog):
    options = BinderyOptions(collect_module_log_enabled=True)

    with caplog.at_level("INFO", logger="bindery.universe"):
        TypeUniverse.scan(modules=[game_module], options=options)

    assert "game.components" in caplog.text


def test_manifest_universe_is_indexable_and_deduplicated():
    class A:
        pass

    class B:
        pass

    universe = TypeUniverse([A, B, A])

    assert len(universe) == universe.concrete_type_count == 2
    assert universe[0] is A
    assert universe.get_concrete_type(1) is B
    assert B in universe


def test_manifest_universe_rejects_non_classes():
    with pytest.raises(TypeError):
        TypeUniverse([object(), int])


def test_from_modules_skips_abstract_classes(game_module):
    universe = TypeUniverse.from_modules(game_module)

    assert [t.__name__ for t in universe] == ["Health", "Mana"]
