import pytest
from hypothesis import given, settings, strategies as st

from bindery.assets import MappingAssetLoader
from bindery.builders import (
    create_object_scope,
    create_scope,
    install_bindery,
    make_root_scope,
)
from bindery.container import ContainerBuilder
from bindery.domain import GLOBAL_SCOPE, Lifetime, RegistrationEntry, RegistrationKind
from bindery.errors import AssetLoadError
from bindery.markers import (
    register_asset_to,
    register_asset_to_global,
    register_to,
    register_to_global,
)
from bindery.options import BinderyOptions
from bindery.registration_binder import ScopeRegistrationBinder
from bindery.universe import TypeUniverse


@register_to_global()
class Clock:
    pass


@register_to("Player")
class Avatar:
    pass


@register_to("Player", Lifetime.SCOPED)
@register_to("Enemy", Lifetime.SCOPED)
class Inventory:
    pass


class Level:
    def __init__(self, name: str):
        self.name = name


@register_to(Level)
class LevelMusic:
    def __init__(self, level: Level):
        self.level = level


@register_asset_to("Player", address="prefabs/hat")
class Hat:
    pass


@register_asset_to_global()
class Palette:
    pass


@register_asset_to("Arena")
class Map:
    pass


@register_asset_to("Arena")
class Theme:
    pass


@register_asset_to_global()
class Backdrop:
    pass


UNIVERSE = TypeUniverse([Clock, Avatar, Inventory, LevelMusic])


@pytest.fixture
def root():
    return make_root_scope(UNIVERSE, BinderyOptions())


def test_global_entries_are_registered_in_root(root):
    assert root.contains(Clock)
    assert not root.contains(Avatar)


@settings(max_examples=25, deadline=None)
@given(st.lists(st.sampled_from(["Player", "Enemy", None, "Unknown"]), max_size=6))
def test_global_entries_are_never_registered_twice_down_the_chain(keys):
    scope = make_root_scope(UNIVERSE, BinderyOptions())
    clock = scope.resolve(Clock)

    for key in keys:
        scope = create_scope(scope, key)
        assert not scope.resolve(ScopeRegistrationBinder).bind(
            ContainerBuilder(scope)
        )
        assert scope.resolve(Clock) is clock


def test_keyed_entries_are_registered_in_each_sibling(root):
    first = create_scope(root, "Player")
    second = create_scope(root, "Player")

    assert first.resolve(Avatar) is not second.resolve(Avatar)
    assert first.resolve(Inventory) is not second.resolve(Inventory)


def test_scope_keys_apply_in_order_and_skip_duplicates(root):
    binder = root.resolve(ScopeRegistrationBinder)
    builder = ContainerBuilder(root)

    applied = binder.bind(builder, "Player", None, "Enemy")

    assert [e.concrete_type for e in applied] == [Avatar, Inventory]


def test_try_register_reports_skips(root):
    binder = root.resolve(ScopeRegistrationBinder)
    builder = ContainerBuilder(root)
    entry = RegistrationEntry(Avatar, "Player")

    assert binder.try_register(builder, entry)
    assert not binder.try_register(builder, entry)


def test_object_scope_applies_entries_keyed_by_class(root):
    level = Level("caves")

    scope = create_object_scope(root, level)

    assert scope.resolve(Level) is level
    assert scope.resolve(LevelMusic).level is level


def test_registration_log(caplog):
    root = make_root_scope(UNIVERSE, BinderyOptions(registration_log_enabled=True))

    with caplog.at_level("INFO", logger="bindery.registration_binder"):
        create_scope(root, "Player")

    assert "registered [Avatar] to ['Player']" in caplog.text


def test_install_is_idempotent(root):
    builder = ContainerBuilder()
    binder = install_bindery(builder, UNIVERSE)

    assert install_bindery(builder, UNIVERSE) is binder
    assert install_bindery(ContainerBuilder(root)) is root.resolve(
        ScopeRegistrationBinder
    )


def test_assets_are_loaded_registered_and_released():
    hat, palette = object(), object()
    loader = MappingAssetLoader({"prefabs/hat": hat, "Palette": palette})
    root = make_root_scope(TypeUniverse([Hat, Palette]), asset_loader=loader)

    player = create_scope(root, "Player")

    assert root.resolve(Palette) is palette
    assert player.resolve(Hat) is hat
    assert loader.outstanding("prefabs/hat") == 1

    player.dispose()
    assert loader.outstanding("prefabs/hat") == 0

    root.dispose()
    assert loader.outstanding("Palette") == 0


def test_missing_asset_fails_scope_construction():
    loader = MappingAssetLoader({"Palette": object()})
    root = make_root_scope(TypeUniverse([Hat, Palette]), asset_loader=loader)

    with pytest.raises(AssetLoadError, match="prefabs/hat"):
        create_scope(root, "Player")


def test_failed_scope_construction_releases_assets_already_loaded():
    loader = MappingAssetLoader({"Map": object()})
    root = make_root_scope(TypeUniverse([Map, Theme]), asset_loader=loader)

    with pytest.raises(AssetLoadError, match="Theme"):
        create_scope(root, "Arena")

    assert loader.loads["Map"] == 1
    assert loader.outstanding("Map") == 0
    assert root.children == ()


def test_failed_root_construction_releases_assets_already_loaded():
    loader = MappingAssetLoader({"Palette": object()})

    with pytest.raises(AssetLoadError, match="Backdrop"):
        make_root_scope(TypeUniverse([Palette, Backdrop]), asset_loader=loader)

    assert loader.loads["Palette"] == 1
    assert loader.outstanding("Palette") == 0


def test_asset_entries_require_a_loader():
    with pytest.raises(AssetLoadError) as error:
        make_root_scope(TypeUniverse([Palette]))

    assert error.value.address == "Palette"


def test_asset_address_defaults_to_class_name():
    entry = RegistrationEntry(
        Palette, GLOBAL_SCOPE, kind=RegistrationKind.EXTERNAL_ASSET
    )

    assert entry.asset_address == "Palette"
