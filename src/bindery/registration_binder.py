"""Application of catalogued registrations to container builders."""

import logging
from typing import Any, Optional

from bindery.assets import AssetLoader
from bindery.connection_resolver import ConnectionResolver
from bindery.container import ContainerBuilder
from bindery.domain import (
    GLOBAL_SCOPE,
    RegistrationEntry,
    RegistrationKind,
    ScopeKey,
    type_name,
)
from bindery.errors import AssetLoadError
from bindery.options import BinderyOptions
from bindery.registration_catalog import RegistrationCatalog

__all__ = ["ScopeRegistrationBinder"]

logger = logging.getLogger(__name__)


class ScopeRegistrationBinder:
    """Registers the catalogued types for a scope into its container builder.

    Global entries are applied to every scope but are skipped when the type is
    already registered anywhere up the scope chain, so each global type ends up
    registered once, as close to the root as possible. Keyed entries are only
    checked against the scope being built, so sibling scopes each get their own.

    Args:
        catalog: The registration entries to apply.
        connection_resolver: Wires each registered type once the scope is built.
        options: Diagnostic flags; `registration_log_enabled` logs every entry applied.
        asset_loader: Loads EXTERNAL_ASSET entries. Scopes with asset entries
            cannot be built without one.
    """

    def __init__(
        self,
        catalog: RegistrationCatalog,
        connection_resolver: ConnectionResolver,
        options: BinderyOptions,
        asset_loader: Optional[AssetLoader] = None,
    ):
        self._catalog = catalog
        self._connection_resolver = connection_resolver
        self._options = options
        self._asset_loader = asset_loader

    def bind(
        self, builder: ContainerBuilder, *scope_keys: Optional[ScopeKey]
    ) -> list[RegistrationEntry]:
        """Apply the global entries, then the entries of each key in turn.

        Args:
            builder: The builder of the scope being created.
            scope_keys: Keys whose entries to apply; None keys are ignored.

        Returns:
            The entries actually registered.

        Raises:
            AssetLoadError: If an asset entry cannot be loaded.
        """
        applied = self._apply(builder, self._catalog.get_registrations(GLOBAL_SCOPE))
        for scope_key in scope_keys:
            if scope_key is None:
                continue
            applied.extend(
                self._apply(builder, self._catalog.get_registrations(scope_key))
            )
        return applied

    def bind_object(
        self, builder: ContainerBuilder, scope_object: Any
    ) -> list[RegistrationEntry]:
        """Bind a scope built around `scope_object`.

        The object itself is registered as an instance and wired, and the
        entries keyed by its class are applied along with the global ones.
        """
        builder.register_instance(scope_object)
        self._connection_resolver.bind_instance(builder, scope_object)
        return self.bind(builder, type(scope_object))

    def try_register(self, builder: ContainerBuilder, entry: RegistrationEntry) -> bool:
        """Register a single entry.

        Returns:
            False if the type is already registered within the entry's reach,
            in which case nothing is done.
        """
        if builder.exists(entry.concrete_type, include_parents=entry.check_ancestors):
            logger.debug(
                "%s already registered, skipping entry for %r",
                type_name(entry.concrete_type),
                entry.scope_key,
            )
            return False

        if entry.kind is RegistrationKind.EXTERNAL_ASSET:
            self._register_asset(builder, entry)
        else:
            builder.register(entry.concrete_type, entry.lifetime)
        self._connection_resolver.bind(builder, entry.concrete_type)

        if self._options.registration_log_enabled:
            logger.info(
                "registered [%s] to [%r]", type_name(entry.concrete_type), entry.scope_key
            )
        return True

    def _apply(self, builder: ContainerBuilder, entries) -> list[RegistrationEntry]:
        return [entry for entry in entries if self.try_register(builder, entry)]

    def _register_asset(self, builder: ContainerBuilder, entry: RegistrationEntry):
        address = entry.asset_address
        if self._asset_loader is None:
            raise AssetLoadError(address, "no asset loader configured")

        loader = self._asset_loader
        asset = loader.load(address)
        builder.register_instance(asset, as_type=entry.concrete_type)
        builder.register_dispose_callback(lambda: loader.release(asset))
