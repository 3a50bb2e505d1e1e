"""Registration entries grouped by scope key."""

import logging
from collections import defaultdict

from bindery.domain import GLOBAL_SCOPE, RegistrationEntry, ScopeKey, type_name
from bindery.markers import registration_markers
from bindery.universe import TypeUniverse

__all__ = ["RegistrationCatalog"]

logger = logging.getLogger(__name__)


class RegistrationCatalog:
    """Index of the registration markers found on a type universe.

    Entries under each key keep universe order, then marker declaration order.
    The global key is always present, possibly with no entries.
    """

    def __init__(self, universe: TypeUniverse):
        entries: dict[ScopeKey, list[RegistrationEntry]] = defaultdict(list)
        entries[GLOBAL_SCOPE] = []

        for concrete_type in universe:
            for marker in registration_markers(concrete_type):
                entries[marker.scope_key].append(
                    RegistrationEntry(
                        concrete_type,
                        marker.scope_key,
                        marker.lifetime,
                        marker.kind,
                        marker.check_ancestors,
                        marker.address,
                    )
                )

        self._entries = {key: tuple(value) for key, value in entries.items()}
        logger.debug(
            "Catalogued registrations for %d scope keys", len(self._entries)
        )

    def get_registrations(self, scope_key: ScopeKey) -> tuple[RegistrationEntry, ...]:
        """The entries to apply when building a scope for `scope_key`.

        Args:
            scope_key: The key the scope is built for, or `GLOBAL_SCOPE`.

        Returns:
            The entries in catalog order; empty for an unknown key.
        """
        return self._entries.get(scope_key, ())

    def scope_keys(self) -> tuple[ScopeKey, ...]:
        """Every key with entries, plus the global key."""
        return tuple(self._entries)

    def __repr__(self) -> str:
        groups = ", ".join(
            f"{key!r}: [{', '.join(type_name(e.concrete_type) for e in entries)}]"
            for key, entries in self._entries.items()
        )
        return f"RegistrationCatalog({{{groups}}})"
