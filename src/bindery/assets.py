"""Loading of externally addressed assets.

Assets are components that are not constructed by the container but fetched
from somewhere else by address, such as a prefab or a configuration blob. The
loader is blocking: the scope being built waits for the asset.
"""

import logging
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Mapping
from typing import Any

from bindery.errors import AssetLoadError

__all__ = ["AssetLoader", "MappingAssetLoader"]

logger = logging.getLogger(__name__)


class AssetLoader(ABC):
    @abstractmethod
    def load(self, address: str) -> Any:
        """Load the asset at `address`.

        Raises:
            AssetLoadError: If the address is unknown or the asset cannot be loaded.
        """

    @abstractmethod
    def release(self, asset: Any) -> None:
        """Release an asset previously returned by :meth:`load`."""


class MappingAssetLoader(AssetLoader):
    """Serves assets from an in-memory mapping of address to asset.

    Load and release counts are tracked per address, which makes the loader
    handy in tests.

    Args:
        assets: Assets by address. Each asset is released by identity, so an
            object should appear under one address only.
    """

    def __init__(self, assets: Mapping[str, Any]):
        self._assets = dict(assets)
        self._addresses = {id(asset): address for address, asset in self._assets.items()}
        self.loads: Counter = Counter()
        self.releases: Counter = Counter()

    def load(self, address: str) -> Any:
        if not isinstance(address, str) or not address:
            raise AssetLoadError(str(address), "invalid address")
        try:
            asset = self._assets[address]
        except KeyError:
            raise AssetLoadError(address, "no such asset") from None
        self.loads[address] += 1
        logger.debug("Loaded asset '%s'", address)
        return asset

    def release(self, asset: Any) -> None:
        address = self._addresses.get(id(asset))
        if address is None:
            logger.debug("Ignoring release of unknown asset %r", asset)
            return
        self.releases[address] += 1
        logger.debug("Released asset '%s'", address)

    def outstanding(self, address: str) -> int:
        """Number of loads of `address` not yet released."""
        return self.loads[address] - self.releases[address]
