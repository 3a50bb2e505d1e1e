"""Composition root: entry points that assemble the wiring engine into scopes."""

import logging
from typing import Any, Optional

from bindery.assets import AssetLoader
from bindery.channels import ChannelFactory, SubscriberListPool
from bindery.connection_catalog import ConnectionCatalog
from bindery.connection_resolver import ConnectionResolver
from bindery.container import ContainerBuilder, Installation, Scope
from bindery.domain import ScopeKey
from bindery.options import BinderyOptions
from bindery.registration_binder import ScopeRegistrationBinder
from bindery.registration_catalog import RegistrationCatalog
from bindery.universe import TypeUniverse

__all__ = ["install_bindery", "make_root_scope", "create_scope", "create_object_scope"]

logger = logging.getLogger(__name__)


def install_bindery(
    builder: ContainerBuilder,
    universe: Optional[TypeUniverse] = None,
    options: Optional[BinderyOptions] = None,
    asset_loader: Optional[AssetLoader] = None,
) -> ScopeRegistrationBinder:
    """
    Register the wiring engine's services into a container builder.

    If the builder's ancestors already provide the engine, nothing is registered
    and the inherited binder is returned.

    Args:
        builder: The builder to install into, normally the root's.
        universe: The classes to catalogue; defaults to a scan of loaded modules.
        options: Diagnostic options; defaults to ones read from the environment.
        asset_loader: Loader for external-asset registrations, if any.

    Returns:
        The binder that applies registrations to scopes built below this one.
    """
    for registration in builder.registrations:
        if isinstance(registration.instance, ScopeRegistrationBinder):
            return registration.instance
    if builder.parent is not None and builder.parent.contains(ScopeRegistrationBinder):
        return builder.parent.resolve(ScopeRegistrationBinder)

    options = options or BinderyOptions()
    universe = universe if universe is not None else TypeUniverse.scan(options=options)
    registration_catalog = RegistrationCatalog(universe)
    connection_catalog = ConnectionCatalog(universe)
    resolver = ConnectionResolver(connection_catalog, options)
    binder = ScopeRegistrationBinder(
        registration_catalog, resolver, options, asset_loader
    )

    for service in (
        options,
        universe,
        registration_catalog,
        connection_catalog,
        SubscriberListPool(),
        ChannelFactory.from_options(options),
        resolver,
        binder,
    ):
        builder.register_instance(service)
    if asset_loader is not None:
        builder.register_instance(asset_loader)

    logger.debug("Installed wiring engine over %r", universe)
    return binder


def make_root_scope(
    universe: Optional[TypeUniverse] = None,
    options: Optional[BinderyOptions] = None,
    asset_loader: Optional[AssetLoader] = None,
    installation: Optional[Installation] = None,
) -> Scope:
    """
    Build a root scope with the wiring engine installed and the global entries applied.

    Args:
        universe: The classes to catalogue; defaults to a scan of loaded modules.
        options: Diagnostic options; defaults to ones read from the environment.
        asset_loader: Loader for external-asset registrations, if any.
        installation: Extra registrations for the root scope. They are added
            before the catalogued ones, which are skipped for types it provides.

    Returns:
        The root scope. Global components are wired as soon as it is built.

    Raises:
        AssetLoadError: If a global asset cannot be loaded.
    """
    builder = ContainerBuilder()
    binder = install_bindery(builder, universe, options, asset_loader)
    try:
        if installation is not None:
            installation(builder)
        binder.bind(builder)
    except Exception:
        builder.abort()
        raise
    return builder.build()


def create_scope(
    scope: Scope,
    *scope_keys: Optional[ScopeKey],
    installation: Optional[Installation] = None,
) -> Scope:
    """
    Build a child of `scope` with the entries of each scope key applied.

    Global entries not yet registered up the chain are applied too.

    Raises:
        AssetLoadError: If an asset cannot be loaded.
        DependencyError: If the wiring engine is not installed in `scope`.
    """
    binder = scope.resolve(ScopeRegistrationBinder)

    def install(builder: ContainerBuilder):
        if installation is not None:
            installation(builder)
        binder.bind(builder, *scope_keys)

    return scope.create_child_scope(install)


def create_object_scope(
    scope: Scope, scope_object: Any, installation: Optional[Installation] = None
) -> Scope:
    """Build a child of `scope` around `scope_object`, keyed by the object's class."""
    binder = scope.resolve(ScopeRegistrationBinder)

    def install(builder: ContainerBuilder):
        if installation is not None:
            installation(builder)
        binder.bind_object(builder, scope_object)

    return scope.create_child_scope(install)
